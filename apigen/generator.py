"""
Главный модуль генератора - чистый интерфейс
"""

from typing import Any, Dict, List

from .config import GeneratorConfig
from .internal.generator.engine import GenerationEngine
from .internal.parser.openapi import OpenApiParser
from .internal.types.models import ParsedAPISpec


class ApiClientGenerator:
    """Чистый интерфейс для генерации API клиентов"""

    def __init__(self, config: GeneratorConfig, openapi_spec: Dict[str, Any] = None):
        self.config = config
        self.openapi_spec = openapi_spec

    def parse(self) -> ParsedAPISpec:
        """Разбор спецификации из словаря или из входного файла"""
        if self.openapi_spec is None:
            parser = OpenApiParser.from_file(self.config.input_file)
        else:
            parser = OpenApiParser(self.openapi_spec, self.config.input_file)
        return parser.parse()

    def engine(self) -> GenerationEngine:
        return GenerationEngine(self.config, self.parse())

    def generate(self) -> List[str]:
        """Генерация клиента, возвращает пути записанных файлов"""
        return self.engine().generate()


def generate_client(
    config: GeneratorConfig, openapi_spec: Dict[str, Any] = None
) -> List[str]:
    """Создание API клиента из OpenAPI спецификации"""
    generator = ApiClientGenerator(config, openapi_spec)
    return generator.generate()
