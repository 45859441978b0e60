"""Утилиты преобразования регистра имен"""

import keyword
import re

_WORD_BOUNDARY = re.compile(r"[^a-zA-Z0-9]+(.)?")
_UPPER = re.compile(r"([A-Z])")
_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def _join_words(name: str) -> str:
    # Любая последовательность не буквенно-цифровых символов - граница слова
    return _WORD_BOUNDARY.sub(lambda m: (m.group(1) or "").upper(), name)


def camel_case(name: str) -> str:
    """
    Преобразует строку в camelCase.

    Символы "-", "_" и любые другие не буквенно-цифровые последовательности
    считаются границами слов: следующий за ними символ поднимается в верхний
    регистр. Первый символ опускается в нижний регистр, остальные не
    трогаются.

    Examples:
        >>> camel_case("list-pets")
        'listPets'
        >>> camel_case("GetPets")
        'getPets'
        >>> camel_case("user_accounts v2")
        'userAccountsV2'
    """
    joined = _join_words(name)
    return joined[:1].lower() + joined[1:]


def pascal_case(name: str) -> str:
    """
    Преобразует строку в PascalCase по тем же правилам, что и camel_case,
    но поднимает первый символ в верхний регистр.

    Examples:
        >>> pascal_case("pets")
        'Pets'
        >>> pascal_case("store-orders")
        'StoreOrders'
    """
    joined = _join_words(name)
    return joined[:1].upper() + joined[1:]


def snake_case(name: str) -> str:
    """
    Вставляет "_" перед каждой заглавной буквой и опускает строку в нижний
    регистр. Рассчитано на вход в camelCase.

    Examples:
        >>> snake_case("getPetById")
        'get_pet_by_id'
        >>> snake_case("GetPets")
        '_get_pets'
    """
    return _UPPER.sub(r"_\1", name).lower()


def kebab_case(name: str) -> str:
    """То же, что snake_case, но с разделителем "-"."""
    return _UPPER.sub(r"-\1", name).lower()


def capitalize_first(name: str) -> str:
    return name[:1].upper() + name[1:]


def is_identifier(name: str) -> bool:
    """Проверка, что имя можно использовать как идентификатор без кавычек"""
    return bool(_IDENTIFIER.match(name))


def type_identifier(name: str) -> str:
    """Имя схемы, пригодное для объявления типа/класса"""
    if is_identifier(name) and "$" not in name:
        return name
    identifier = pascal_case(name)
    if not identifier or identifier[0].isdigit():
        identifier = f"Model{identifier}"
    return identifier


def python_identifier(name: str) -> str:
    """
    Имя атрибута для сгенерированного Python кода.

    Examples:
        >>> python_identifier("petId")
        'pet_id'
        >>> python_identifier("class")
        'class_'
        >>> python_identifier("X-Request-Id")
        'x_request_id'
    """
    result = snake_case(camel_case(name)).lstrip("_")
    if not result:
        result = "field"
    if result[0].isdigit():
        result = f"_{result}"
    if keyword.iskeyword(result) or result in ("self", "params", "body"):
        result = f"{result}_"
    return result
