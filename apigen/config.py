"""
Конфигурация для генерации API клиента
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import toml

from .internal.errors import ConfigError, UnsupportedLanguageError

CONFIG_FILE_NAME = "apigen.toml"


class OutputLanguage(str, Enum):
    """Поддерживаемые языки генерируемого клиента"""

    TYPESCRIPT = "typescript"
    PYTHON = "python"
    GO = "go"

    @classmethod
    def parse(cls, value: Union[str, "OutputLanguage"]) -> "OutputLanguage":
        """Строгий разбор значения языка, без подстановки значения по умолчанию"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnsupportedLanguageError(
                str(value), [lang.value for lang in cls]
            ) from None


@dataclass(frozen=True)
class GeneratorConfig:
    """Параметры одного запуска генерации"""

    input_file: str
    output_dir: str
    language: OutputLanguage = OutputLanguage.TYPESCRIPT
    client_name: str = "APIClient"
    include_examples: bool = False
    include_error_handling: bool = True
    watch_mode: bool = False

    def __post_init__(self):
        # Неизвестный язык - ошибка ввода еще до любого обращения к диску
        object.__setattr__(self, "language", OutputLanguage.parse(self.language))

    @classmethod
    def from_args(cls, args, language: Union[str, OutputLanguage], watch_mode=False):
        """Конфигурация из аргументов командной строки"""
        return cls(
            input_file=os.path.abspath(args.input),
            output_dir=os.path.abspath(args.output),
            language=language,
            client_name=args.name or "APIClient",
            include_examples=bool(args.examples),
            include_error_handling=not args.no_errors,
            watch_mode=watch_mode,
        )


@dataclass
class ProjectConfig:
    """Конфигурация проекта из apigen.toml"""

    project_name: Optional[str] = None
    language: str = OutputLanguage.TYPESCRIPT.value
    version: str = "1.0.0"
    input_file: Optional[str] = None
    output_dir: Optional[str] = None
    client_name: Optional[str] = None

    @classmethod
    def from_file(
        cls, config_path: str = CONFIG_FILE_NAME, search_dir: str = None
    ) -> Optional["ProjectConfig"]:
        """Загрузка конфигурации из файла"""
        # Если указана директория для поиска, ищем конфиг там
        if search_dir and os.path.isdir(search_dir):
            config_in_dir = os.path.join(search_dir, CONFIG_FILE_NAME)
            if os.path.exists(config_in_dir):
                config_path = config_in_dir

        if not os.path.exists(config_path):
            return None

        try:
            config_data = toml.load(config_path)
        except (OSError, toml.TomlDecodeError) as e:
            raise ConfigError(f"Не удалось прочитать {config_path}: {e}") from e

        return cls(
            project_name=config_data.get("project_name"),
            language=config_data.get("language", OutputLanguage.TYPESCRIPT.value),
            version=config_data.get("version", "1.0.0"),
            input_file=config_data.get("input_file"),
            output_dir=config_data.get("output_dir"),
            client_name=config_data.get("client_name"),
        )

    def save_to_file(self, config_path: str = CONFIG_FILE_NAME) -> None:
        """Сохранение конфигурации в файл"""
        # toml не умеет None - пропускаем незаданные поля
        config_data = {
            key: value
            for key, value in vars(self).items()
            if value is not None
        }

        with open(config_path, "w") as f:
            toml.dump(config_data, f)

    def merge_with_args(self, args) -> "ProjectConfig":
        """Объединение с аргументами командной строки"""
        return ProjectConfig(
            project_name=self.project_name,
            language=getattr(args, "language", None) or self.language,
            version=self.version,
            input_file=getattr(args, "input", None) or self.input_file,
            output_dir=getattr(args, "output", None) or self.output_dir,
            client_name=getattr(args, "name", None) or self.client_name,
        )
