import logging
import os
import threading
from typing import Callable, Dict, List, Optional, Type

from ...config import GeneratorConfig, OutputLanguage
from ..errors import GenerationIOError
from ..parser.openapi import OpenApiParser
from ..types.models import ParsedAPISpec
from .base import BaseLanguageGenerator
from .context import build_context
from .python import PythonGenerator
from .typescript import TypeScriptGenerator
from .watcher import FileWatcher

logger = logging.getLogger(__name__)

GENERATORS: Dict[OutputLanguage, Type[BaseLanguageGenerator]] = {
    OutputLanguage.TYPESCRIPT: TypeScriptGenerator,
    OutputLanguage.PYTHON: PythonGenerator,
}

FALLBACK_LANGUAGE = OutputLanguage.TYPESCRIPT

RegenerateCallback = Callable[[List[str]], None]


def resolve_language(language) -> OutputLanguage:
    """Язык, для которого реально будет сгенерирован клиент"""
    language = OutputLanguage.parse(language)
    return language if language in GENERATORS else FALLBACK_LANGUAGE


class GenerationEngine:
    """Выбор генератора по языку, генерация и перегенерация при изменениях"""

    def __init__(self, config: GeneratorConfig, spec: ParsedAPISpec):
        self.config = config
        self.spec = spec
        self.context = build_context(config, spec)

    def get_generator(self) -> BaseLanguageGenerator:
        requested = OutputLanguage.parse(self.config.language)
        language = resolve_language(requested)

        if language != requested:
            logger.warning(
                f"Note: {requested.value} not yet fully implemented, "
                f"generating {language.value} client"
            )

        return GENERATORS[language](self.config)

    def generate(self) -> List[str]:
        """Генерация клиента, возвращает пути записанных файлов"""
        # Генератор выбирается до любой работы с диском
        generator = self.get_generator()

        logger.info(f"Generating {generator.language.value} client library...")
        logger.info(f"  Input: {self.config.input_file}")
        logger.info(f"  Output: {generator.output_dir}")
        logger.info(f"  Client Name: {self.config.client_name}")

        try:
            os.makedirs(generator.output_dir, exist_ok=True)
        except OSError as e:
            raise GenerationIOError(
                f"Cannot create output directory: {e}", generator.output_dir
            ) from e

        written = generator.generate(self.context)
        logger.info("✓ Generation complete!")
        return written

    def regenerate(self) -> List[str]:
        """Перечитать входной файл и сгенерировать заново"""
        self.spec = OpenApiParser.from_file(self.config.input_file).parse()
        self.context = build_context(self.config, self.spec)
        return self.generate()

    def handle_change(self, on_regenerate: Optional[RegenerateCallback] = None) -> bool:
        """Обработка одного изменения; ошибка логируется и не прерывает наблюдение"""
        logger.info("📄 File changed, regenerating...")
        try:
            written = self.regenerate()
            if on_regenerate is not None:
                on_regenerate(written)
        except Exception:
            logger.exception("Error regenerating")
            return False
        return True

    def watch(
        self,
        on_regenerate: Optional[RegenerateCallback] = None,
        watcher: Optional[FileWatcher] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        """Наблюдение за входным файлом до установки stop_event"""
        watcher = watcher or FileWatcher(self.config.input_file)
        logger.info(f"👀 Watching for changes to {self.config.input_file}...")
        watcher.run(lambda: self.handle_change(on_regenerate), stop_event=stop_event)
