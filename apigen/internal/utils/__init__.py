"""Утилиты для генератора"""

from .naming import (
    camel_case,
    pascal_case,
    snake_case,
    kebab_case,
    capitalize_first,
    is_identifier,
    type_identifier,
    python_identifier,
)

__all__ = [
    "camel_case",
    "pascal_case",
    "snake_case",
    "kebab_case",
    "capitalize_first",
    "is_identifier",
    "type_identifier",
    "python_identifier",
]
