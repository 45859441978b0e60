"""Исключения генератора"""

from typing import Optional


class ApiGenError(Exception):
    """Базовая ошибка генератора"""


class InvalidSpecificationError(ApiGenError):
    """Спецификация отсутствует, не читается или не содержит маркер версии"""

    def __init__(self, message: str, path: Optional[str] = None):
        self.message = message
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class UnsupportedLanguageError(ApiGenError):
    """Запрошенный язык не входит в список поддерживаемых"""

    def __init__(self, language: str, supported: list):
        self.language = language
        self.supported = list(supported)
        super().__init__(
            f"Invalid language: {language}. Supported: {', '.join(self.supported)}"
        )


class GenerationIOError(ApiGenError):
    """Ошибка создания директории или записи файла во время генерации"""

    def __init__(self, message: str, path: str):
        self.message = message
        self.path = path
        super().__init__(f"{path}: {message}")


class ConfigError(ApiGenError):
    """Ошибка чтения или записи конфигурации проекта"""
