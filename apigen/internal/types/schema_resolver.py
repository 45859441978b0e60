from typing import Any, Dict, Iterable, Optional

ANY_TYPE = "any"


def ref_name(ref: str) -> str:
    """Последний сегмент ссылки: '#/components/schemas/Pet' -> 'Pet'"""
    return ref.split("/")[-1]


def resolve_type_label(schema: Any) -> str:
    """
    Нормализованная метка типа для узла схемы.

    Ссылка разрешается в последний сегмент, массив в "<тип элемента>[]",
    иначе берется объявленный примитивный тип или "any", если схемы нет.

    Examples:
        >>> resolve_type_label({"$ref": "#/components/schemas/Pet"})
        'Pet'
        >>> resolve_type_label({"type": "array", "items": {"type": "string"}})
        'string[]'
        >>> resolve_type_label(None)
        'any'
    """
    if not isinstance(schema, dict) or not schema:
        return ANY_TYPE

    if isinstance(schema.get("$ref"), str):
        return ref_name(schema["$ref"])

    # allOf из одного элемента - обертка над ссылкой (часто ради description)
    all_of = schema.get("allOf")
    if isinstance(all_of, list) and len(all_of) == 1:
        return resolve_type_label(all_of[0])

    schema_type = schema.get("type")

    # OpenAPI 3.1: type может быть списком ["string", "null"]
    if isinstance(schema_type, list):
        schema_type = next((t for t in schema_type if t != "null"), None)

    if schema_type == "array" and schema.get("items"):
        return f"{resolve_type_label(schema['items'])}[]"

    return schema_type if isinstance(schema_type, str) and schema_type else ANY_TYPE


def is_nullable(schema: Any) -> bool:
    """nullable: true (OpenAPI 3.0) или "null" в списке типов (OpenAPI 3.1)"""
    if not isinstance(schema, dict):
        return False
    if schema.get("nullable") is True or schema.get("x-nullable") is True:
        return True
    schema_type = schema.get("type")
    return isinstance(schema_type, list) and "null" in schema_type


def find_success_response(responses: Iterable[Any]) -> Optional[Any]:
    """Первый ответ, чей код статуса начинается с "2" """
    for response in responses:
        if response.status_code.startswith("2"):
            return response
    return None


def first_content(content: Any) -> Dict[str, Any]:
    """Описание первого объявленного content type (порядок ключей документа)"""
    if not isinstance(content, dict) or not content:
        return {}
    first = next(iter(content.values()))
    return first if isinstance(first, dict) else {}


def resolve_return_label(endpoint: Any) -> str:
    """
    Метка типа результата эндпоинта по первому успешному ответу.

    Examples:
        >>> from .models import ParsedEndpoint, ParsedResponse
        >>> endpoint = ParsedEndpoint(
        ...     path="/pets",
        ...     method="GET",
        ...     operation_id="listPets",
        ...     responses=[ParsedResponse(status_code="404")],
        ... )
        >>> resolve_return_label(endpoint)
        'any'
    """
    success = find_success_response(endpoint.responses)
    if success is None or not success.raw_schema:
        return ANY_TYPE
    return resolve_type_label(success.raw_schema)
