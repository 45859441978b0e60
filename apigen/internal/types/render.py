"""
Модель рендеринга: полностью разрешенные данные для каждого артефакта.

Генераторы языков собирают эти структуры из контекста (build_*), а
детерминированные функции форматирования (format_*) превращают их в текст.
Здесь нет знаний о синтаксисе конкретного языка, только имена и типы,
уже приведенные к нужному виду.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

# Политика повторов общая для всех языков
RETRYABLE_ERRORS = ("NetworkError", "TimeoutError")
STATUS_RETRYABLE_ERROR = "ApiResponseError"
RETRYABLE_MIN_STATUS = 500


def is_retryable(error_name: str, status_code: Optional[int] = None) -> bool:
    """
    Можно ли повторить запрос после ошибки данного вида.

    Examples:
        >>> is_retryable("NetworkError")
        True
        >>> is_retryable("ApiResponseError", 503)
        True
        >>> is_retryable("ApiResponseError", 404)
        False
    """
    if error_name in RETRYABLE_ERRORS:
        return True
    if error_name == STATUS_RETRYABLE_ERROR and status_code is not None:
        return status_code >= RETRYABLE_MIN_STATUS
    return False


@dataclass
class FieldRender:
    """Поле объявления типа или набора параметров"""

    name: str
    wire_name: str
    type: str
    required: bool = False
    description: str = ""


@dataclass
class TypeDeclarationRender:
    """Объявление типа для схемы: структура с полями или псевдоним"""

    name: str
    description: str = ""
    fields: List[FieldRender] = field(default_factory=list)
    alias: Optional[str] = None

    @property
    def is_alias(self) -> bool:
        return self.alias is not None


@dataclass
class TypesRender:
    title: str
    version: str
    declarations: List[TypeDeclarationRender] = field(default_factory=list)


@dataclass
class ParameterRender:
    """Параметр вызова метода клиента"""

    name: str
    wire_name: str
    location: str
    type: str
    required: bool = False


@dataclass
class MethodRender:
    name: str
    http_method: str
    path: str
    summary: str
    description: str = ""
    return_type: str = "any"
    parameters: List[ParameterRender] = field(default_factory=list)
    body_type: Optional[str] = None
    body_required: bool = False

    def parameters_in(self, location: str) -> List[ParameterRender]:
        return [p for p in self.parameters if p.location == location]

    @property
    def has_body(self) -> bool:
        return self.body_type is not None


@dataclass
class SubClientRender:
    """Клиент одного тега"""

    class_name: str
    field_name: str
    description: str
    params_type: str
    methods: List[MethodRender] = field(default_factory=list)


@dataclass
class AuthRender:
    """Слоты авторизации в конфигурации клиента"""

    api_key: bool = False
    api_key_name: str = "X-API-Key"
    api_key_location: str = "header"
    bearer: bool = False


@dataclass
class ClientRender:
    client_name: str
    title: str
    version: str
    base_url: str
    description: str = ""
    sub_clients: List[SubClientRender] = field(default_factory=list)
    auth: AuthRender = field(default_factory=AuthRender)
    include_error_handling: bool = True
    type_imports: List[str] = field(default_factory=list)
    params_imports: List[str] = field(default_factory=list)


@dataclass
class ParamBundleRender:
    name: str
    description: str = ""
    fields: List[FieldRender] = field(default_factory=list)


@dataclass
class ParamsRender:
    title: str
    version: str
    bundles: List[ParamBundleRender] = field(default_factory=list)
    type_imports: List[str] = field(default_factory=list)


@dataclass
class ExampleRender:
    """Минимальный пример вызова: клиент, метод без аргументов, печать"""

    name: str
    field_name: str
    method_name: str
    summary: str
    http_method: str
    path: str


@dataclass
class ExampleGroupRender:
    title: str
    examples: List[ExampleRender] = field(default_factory=list)


@dataclass
class ExamplesRender:
    title: str
    version: str
    client_name: str
    base_url: str
    groups: List[ExampleGroupRender] = field(default_factory=list)


@dataclass
class ErrorArgumentRender:
    """
    Аргумент конструктора ошибки. Тип - нейтральная метка
    (string, integer, any, cause), имя - в snake_case.
    """

    name: str
    type: str
    optional: bool = False
    default: Optional[str] = None
    stored: bool = False


@dataclass
class ErrorTypeRender:
    name: str
    parent: Optional[str]
    description: str
    arguments: List[ErrorArgumentRender] = field(default_factory=list)
    super_arguments: List[str] = field(default_factory=list)


@dataclass
class ErrorTaxonomyRender:
    errors: List[ErrorTypeRender] = field(default_factory=list)
    retryable_errors: List[str] = field(default_factory=list)
    status_retryable_error: str = STATUS_RETRYABLE_ERROR
    retryable_min_status: int = RETRYABLE_MIN_STATUS

    @property
    def error_names(self) -> List[str]:
        return [error.name for error in self.errors]


@dataclass
class ManifestRender:
    name: str
    version: str
    description: str
    package_name: Optional[str] = None
    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)
    scripts: Dict[str, str] = field(default_factory=dict)


@dataclass
class RenderedFile:
    """Готовый к записи артефакт, путь относительно директории языка"""

    file_name: str
    content: str


def build_error_taxonomy() -> ErrorTaxonomyRender:
    """Фиксированная иерархия из пяти ошибок и правило повторов"""
    message = ErrorArgumentRender(name="message", type="string")
    return ErrorTaxonomyRender(
        errors=[
            ErrorTypeRender(
                name="ApiError",
                parent=None,
                description="Base error of the generated client",
                arguments=[
                    message,
                    ErrorArgumentRender(
                        name="status_code", type="integer", optional=True, stored=True
                    ),
                    ErrorArgumentRender(
                        name="response", type="any", optional=True, stored=True
                    ),
                ],
                super_arguments=["message"],
            ),
            ErrorTypeRender(
                name="ApiRequestError",
                parent="ApiError",
                description="The request could not be built or sent",
                arguments=[
                    message,
                    ErrorArgumentRender(name="request", type="any", stored=True),
                ],
                super_arguments=["message"],
            ),
            ErrorTypeRender(
                name="ApiResponseError",
                parent="ApiError",
                description="The server answered with an error status",
                arguments=[
                    message,
                    ErrorArgumentRender(name="status_code", type="integer"),
                    ErrorArgumentRender(name="response", type="any"),
                ],
                super_arguments=["message", "status_code", "response"],
            ),
            ErrorTypeRender(
                name="NetworkError",
                parent="ApiError",
                description="The server could not be reached",
                arguments=[
                    message,
                    ErrorArgumentRender(
                        name="original_error", type="cause", optional=True, stored=True
                    ),
                ],
                super_arguments=["message"],
            ),
            ErrorTypeRender(
                name="TimeoutError",
                parent="ApiError",
                description="The request timed out",
                arguments=[
                    ErrorArgumentRender(
                        name="message", type="string", default="Request timed out"
                    ),
                ],
                super_arguments=["message"],
            ),
        ],
        retryable_errors=list(RETRYABLE_ERRORS),
    )
