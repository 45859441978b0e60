from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict

from ...config import GeneratorConfig
from .schema_resolver import resolve_type_label

HTTP_METHODS = ("get", "post", "put", "delete", "patch", "options", "head")

ParameterLocation = Literal["path", "query", "header", "cookie"]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ParsedParameter(_Frozen):
    name: str
    location: ParameterLocation = "query"
    required: bool = False
    type: str = "any"
    description: Optional[str] = None
    raw_schema: Optional[Dict[str, Any]] = None


class ParsedRequestBody(_Frozen):
    required: bool = False
    content_types: List[str] = []
    raw_schema: Optional[Dict[str, Any]] = None
    example: Any = None


class ParsedResponse(_Frozen):
    status_code: str
    description: str = ""
    raw_schema: Optional[Dict[str, Any]] = None
    example: Any = None


class ParsedEndpoint(_Frozen):
    path: str
    method: Literal["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"]
    operation_id: str
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = ["default"]
    parameters: List[ParsedParameter] = []
    request_body: Optional[ParsedRequestBody] = None
    responses: List[ParsedResponse] = []
    security: List[str] = []

    @property
    def requires_auth(self) -> bool:
        return bool(self.security)

    def parameters_in(self, location: str) -> List[ParsedParameter]:
        return [p for p in self.parameters if p.location == location]


class ParsedProperty(_Frozen):
    name: str
    type: str = "any"
    required: bool = False
    description: Optional[str] = None
    format: Optional[str] = None
    enum: Optional[List[Any]] = None
    example: Any = None
    items: Optional[Dict[str, Any]] = None
    ref: Optional[str] = None
    nullable: bool = False


class ParsedSchema(_Frozen):
    name: str
    type: str = "object"
    properties: List[ParsedProperty] = []
    required: List[str] = []
    description: Optional[str] = None
    example: Any = None
    enum: Optional[List[Any]] = None
    format: Optional[str] = None
    ref: Optional[str] = None
    items: Optional[Dict[str, Any]] = None

    @property
    def type_label(self) -> str:
        """Метка типа самой схемы: ссылка, массив или объявленный тип"""
        return resolve_type_label({"type": self.type, "items": self.items, "$ref": self.ref})

    def is_required(self, property_name: str) -> bool:
        return property_name in self.required


class ParsedAPISpec(_Frozen):
    title: str = "API"
    version: str = "1.0.0"
    description: Optional[str] = None
    base_url: str
    endpoints: List[ParsedEndpoint] = []
    schemas: List[ParsedSchema] = []
    security_schemes: Dict[str, Dict[str, Any]] = {}

    def get_schema(self, name: str) -> Optional[ParsedSchema]:
        for schema in self.schemas:
            if schema.name == name:
                return schema
        return None

    @property
    def schema_names(self) -> List[str]:
        return [schema.name for schema in self.schemas]


@dataclass(frozen=True)
class GeneratorContext:
    """Контекст генерации: конфиг, спецификация и эндпоинты по тегам"""

    config: GeneratorConfig
    spec: ParsedAPISpec
    endpoints_by_tag: Dict[str, List[ParsedEndpoint]] = field(default_factory=dict)
