import json
import logging
import os
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from ..errors import InvalidSpecificationError
from ..types.models import (
    HTTP_METHODS,
    ParsedAPISpec,
    ParsedEndpoint,
    ParsedParameter,
    ParsedProperty,
    ParsedRequestBody,
    ParsedResponse,
    ParsedSchema,
)
from ..types.schema_resolver import (
    first_content,
    is_nullable,
    ref_name,
    resolve_type_label,
)
from ..utils.naming import pascal_case

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.example.com"
PARAMETER_LOCATIONS = ("path", "query", "header", "cookie")


def load_document(path: str) -> Dict[str, Any]:
    """Чтение JSON/YAML файла спецификации в словарь"""
    if not os.path.isfile(path):
        raise InvalidSpecificationError("Input file not found", path=path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise InvalidSpecificationError(
            f"Cannot read input file: {e}", path=path
        ) from e

    try:
        if path.lower().endswith((".yaml", ".yml")):
            document = yaml.safe_load(content)
        else:
            try:
                document = json.loads(content)
            except json.JSONDecodeError:
                # YAML - надмножество JSON, пробуем его для файлов без расширения
                document = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise InvalidSpecificationError(
            f"Cannot decode document: {e}", path=path
        ) from e

    if not isinstance(document, dict):
        raise InvalidSpecificationError("Document root must be a mapping", path=path)

    return document


class OpenApiParser:
    """Парсер OpenAPI/Swagger спецификации в каноническую модель"""

    def __init__(self, openapi_dict: Dict[str, Any], source_path: str = None):
        self.openapi_dict = openapi_dict
        self.source_path = source_path

    @classmethod
    def from_file(cls, path: str) -> "OpenApiParser":
        return cls(load_document(path), source_path=path)

    def _components(self) -> Dict[str, Any]:
        components = self.openapi_dict.get("components")
        return components if isinstance(components, dict) else {}

    def parse(self) -> ParsedAPISpec:
        """Парсинг документа в ParsedAPISpec"""
        spec = self.openapi_dict
        if not isinstance(spec, dict) or not (
            spec.get("openapi") or spec.get("swagger")
        ):
            raise InvalidSpecificationError(
                "Invalid OpenAPI specification: missing openapi or swagger field",
                path=self.source_path,
            )

        info = spec.get("info") if isinstance(spec.get("info"), dict) else {}

        return ParsedAPISpec(
            title=str(info.get("title") or "API"),
            version=str(info.get("version") or "1.0.0"),
            description=_text(info.get("description")),
            base_url=self._get_base_url(),
            endpoints=self._parse_endpoints(),
            schemas=self._parse_schemas(),
            security_schemes=self._parse_security_schemes(),
        )

    def _get_base_url(self) -> str:
        """Базовый URL: servers, затем host/schemes/basePath, затем заглушка"""
        servers = self.openapi_dict.get("servers")
        if isinstance(servers, list) and servers:
            first = servers[0]
            if isinstance(first, dict) and first.get("url"):
                return str(first["url"])

        host = self.openapi_dict.get("host")
        if host:
            schemes = self.openapi_dict.get("schemes") or []
            scheme = schemes[0] if isinstance(schemes, list) and schemes else "https"
            base_path = self.openapi_dict.get("basePath") or ""
            return f"{scheme}://{host}{base_path}"

        return DEFAULT_BASE_URL

    def _parse_endpoints(self) -> List[ParsedEndpoint]:
        """Эндпоинты по всем путям и семи HTTP методам"""
        endpoints = []
        paths = self.openapi_dict.get("paths")
        if not isinstance(paths, dict):
            return endpoints

        for path, path_item in paths.items():
            if not isinstance(path_item, dict):
                continue

            for method in HTTP_METHODS:
                operation = path_item.get(method)
                if not isinstance(operation, dict):
                    continue

                try:
                    endpoints.append(
                        self._parse_endpoint(str(path), method, operation, path_item)
                    )
                except ValidationError as e:
                    # Битая операция не мешает разбору остальных
                    logger.warning(f"Skipping {method.upper()} {path}: {e}")

        return endpoints

    def _parse_endpoint(
        self, path: str, method: str, operation: Dict, path_item: Dict
    ) -> ParsedEndpoint:
        raw_parameters = self._merge_parameters(
            path_item.get("parameters"), operation.get("parameters")
        )

        parameters = []
        legacy_body = []
        for param in raw_parameters:
            location = param.get("in")
            if location in ("body", "formData"):
                legacy_body.append(param)
                continue
            parameters.append(self._parse_parameter(param))

        request_body = self._parse_request_body(operation.get("requestBody"))
        if request_body is None and legacy_body:
            request_body = self._parse_legacy_body(legacy_body, operation)

        tags = operation.get("tags")
        if tags is None:
            tags = ["default"]
        elif not isinstance(tags, list):
            tags = [tags]

        return ParsedEndpoint(
            path=path,
            method=method.upper(),
            operation_id=str(
                operation.get("operationId")
                or self._generate_operation_id(method, path)
            ),
            summary=_text(operation.get("summary")),
            description=_text(operation.get("description")),
            tags=[str(tag) for tag in tags],
            parameters=parameters,
            request_body=request_body,
            responses=self._parse_responses(operation.get("responses")),
            security=self._parse_security(operation),
        )

    def _merge_parameters(self, path_level: Any, operation_level: Any) -> List[Dict]:
        """Параметры пути + параметры операции; операция переопределяет (name, in)"""
        merged: Dict[tuple, Dict] = {}
        for raw in _as_list(path_level) + _as_list(operation_level):
            param = self._resolve_parameter_ref(raw)
            if not param or not param.get("name"):
                continue
            merged[(param["name"], param.get("in"))] = param
        return list(merged.values())

    def _resolve_parameter_ref(self, param: Any) -> Optional[Dict]:
        if not isinstance(param, dict):
            return None
        if "$ref" not in param:
            return param

        name = ref_name(str(param["$ref"]))
        components = self._components()
        for registry in (
            components.get("parameters") or {},
            self.openapi_dict.get("parameters") or {},
        ):
            if isinstance(registry, dict) and isinstance(registry.get(name), dict):
                return registry[name]

        logger.warning(f"Unresolved parameter reference: {param['$ref']}")
        return None

    def _parse_parameter(self, param: Dict) -> ParsedParameter:
        location = param.get("in")
        if location not in PARAMETER_LOCATIONS:
            location = "query"

        # Swagger 2.0 хранит тип прямо на параметре
        schema = param.get("schema")
        if not isinstance(schema, dict) and param.get("type"):
            schema = {
                key: param[key]
                for key in ("type", "format", "items", "enum")
                if key in param
            }

        return ParsedParameter(
            name=str(param["name"]),
            location=location,
            required=bool(param.get("required", False)),
            type=resolve_type_label(schema),
            description=_text(param.get("description")),
            raw_schema=schema if isinstance(schema, dict) else None,
        )

    def _parse_request_body(self, request_body: Any) -> Optional[ParsedRequestBody]:
        if not isinstance(request_body, dict):
            return None

        content = request_body.get("content")
        content_types = _text_list(content.keys()) if isinstance(content, dict) else []
        media = first_content(content)
        schema = media.get("schema")

        return ParsedRequestBody(
            required=bool(request_body.get("required", False)),
            content_types=content_types,
            raw_schema=schema if isinstance(schema, dict) else None,
            example=media.get("example"),
        )

    def _parse_legacy_body(
        self, params: List[Dict], operation: Dict
    ) -> ParsedRequestBody:
        """Swagger 2.0: параметры in=body / in=formData в тело запроса"""
        consumes = operation.get("consumes") or self.openapi_dict.get("consumes")
        body = next((p for p in params if p.get("in") == "body"), None)

        if body is not None:
            return ParsedRequestBody(
                required=bool(body.get("required", False)),
                content_types=_text_list(consumes or ["application/json"]),
                raw_schema=body.get("schema")
                if isinstance(body.get("schema"), dict)
                else None,
                example=body.get("x-example"),
            )

        properties = {}
        required = []
        for param in params:
            properties[param["name"]] = {
                key: param[key] for key in ("type", "format", "items") if key in param
            }
            if param.get("required"):
                required.append(param["name"])

        schema = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required

        return ParsedRequestBody(
            required=bool(required),
            content_types=_text_list(consumes or ["multipart/form-data"]),
            raw_schema=schema,
        )

    def _parse_responses(self, responses: Any) -> List[ParsedResponse]:
        if not isinstance(responses, dict):
            return []

        result = []
        for status_code, response in responses.items():
            if not isinstance(response, dict):
                response = {}

            media = first_content(response.get("content"))
            schema = media.get("schema")
            # Swagger 2.0: схема лежит прямо в ответе
            if schema is None and isinstance(response.get("schema"), dict):
                schema = response["schema"]

            example = media.get("example")
            if example is None and isinstance(response.get("examples"), dict):
                example = next(iter(response["examples"].values()), None)

            result.append(
                ParsedResponse(
                    status_code=str(status_code),
                    description=_text(response.get("description")) or "",
                    raw_schema=schema if isinstance(schema, dict) else None,
                    example=example,
                )
            )

        return result

    def _parse_security(self, operation: Dict) -> List[str]:
        """Имена схем безопасности из всех альтернатив одним списком"""
        requirements = operation.get("security")
        if requirements is None:
            requirements = self.openapi_dict.get("security")

        names = []
        for requirement in requirements or []:
            if isinstance(requirement, dict):
                names.extend(str(name) for name in requirement.keys())
        return names

    def _parse_schemas(self) -> List[ParsedSchema]:
        components = self._components()
        schema_defs = components.get("schemas")
        if schema_defs is None:
            schema_defs = self.openapi_dict.get("definitions")
        if not isinstance(schema_defs, dict):
            return []

        schemas = []
        for name, schema in schema_defs.items():
            try:
                schemas.append(
                    self._parse_schema(str(name), schema if isinstance(schema, dict) else {})
                )
            except ValidationError as e:
                logger.warning(f"Skipping schema {name}: {e}")
        return schemas

    def _parse_schema(self, name: str, schema: Dict) -> ParsedSchema:
        required = [str(r) for r in _as_list(schema.get("required"))]
        items = schema.get("items")

        properties = []
        raw_properties = schema.get("properties")
        if isinstance(raw_properties, dict):
            for prop_name, prop in raw_properties.items():
                properties.append(
                    self._parse_property(
                        str(prop_name),
                        prop if isinstance(prop, dict) else {},
                        required,
                    )
                )

        schema_type = schema.get("type")
        if isinstance(schema_type, list):
            schema_type = next((t for t in schema_type if t != "null"), None)

        return ParsedSchema(
            name=name,
            type=_text(schema_type) or "object",
            properties=properties,
            required=required,
            description=_text(schema.get("description")),
            example=schema.get("example"),
            enum=_as_list(schema.get("enum")) or None,
            format=_text(schema.get("format")),
            ref=_text(schema.get("$ref")),
            items=items if isinstance(items, dict) else None,
        )

    def _parse_property(
        self, name: str, schema: Dict, owner_required: List[str]
    ) -> ParsedProperty:
        items = schema.get("items")
        return ParsedProperty(
            name=name,
            type=resolve_type_label(schema),
            required=name in owner_required,
            description=_text(schema.get("description")),
            format=_text(schema.get("format")),
            enum=_as_list(schema.get("enum")) or None,
            example=schema.get("example"),
            items=items if isinstance(items, dict) else None,
            ref=_text(schema.get("$ref")),
            nullable=is_nullable(schema),
        )

    def _parse_security_schemes(self) -> Dict[str, Dict[str, Any]]:
        components = self._components()
        schemes = components.get("securitySchemes")
        if schemes is None:
            schemes = self.openapi_dict.get("securityDefinitions")
        if not isinstance(schemes, dict):
            return {}
        return {
            str(name): scheme for name, scheme in schemes.items() if isinstance(scheme, dict)
        }

    @staticmethod
    def _generate_operation_id(method: str, path: str) -> str:
        """Идентификатор операции из метода и первого сегмента пути"""
        parts = [part for part in path.split("/") if part]
        resource = parts[0] if parts else "default"
        return f"{method.lower()}{pascal_case(resource)}"


def parse_spec(document: Dict[str, Any], source_path: str = None) -> ParsedAPISpec:
    """Нормализация сырого документа в ParsedAPISpec"""
    return OpenApiParser(document, source_path).parse()


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, list) else []


def _text(value: Any) -> Optional[str]:
    """Текстовое поле документа: YAML может отдать число или bool"""
    return None if value is None else str(value)


def _text_list(values: Any) -> List[str]:
    if isinstance(values, str):
        return [values]
    return [str(value) for value in values]
