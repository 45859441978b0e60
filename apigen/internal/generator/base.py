import logging
import os
import re
from typing import Dict, Iterable, Iterator, List, Optional, Set

from ...config import GeneratorConfig, OutputLanguage
from ..errors import GenerationIOError
from ..types.models import (
    GeneratorContext,
    ParsedAPISpec,
    ParsedEndpoint,
    ParsedParameter,
    ParsedSchema,
)
from ..types.render import (
    AuthRender,
    ClientRender,
    ErrorTaxonomyRender,
    ExampleGroupRender,
    ExampleRender,
    ExamplesRender,
    FieldRender,
    MethodRender,
    ParamBundleRender,
    ParameterRender,
    ParamsRender,
    RenderedFile,
    SubClientRender,
    TypeDeclarationRender,
    TypesRender,
    build_error_taxonomy,
)
from ..types.schema_resolver import (
    ANY_TYPE,
    resolve_return_label,
    resolve_type_label,
)
from ..utils.naming import (
    camel_case,
    capitalize_first,
    is_identifier,
    pascal_case,
    type_identifier,
)

logger = logging.getLogger(__name__)

_WORD = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")


def format_description(description: Optional[str]) -> str:
    """Многострочное описание в одну строку для комментариев"""
    if not description:
        return ""
    return " ".join(line.strip() for line in description.splitlines() if line.strip())


class BaseLanguageGenerator:
    """
    Базовый генератор клиента для одного языка.

    Наследник задает язык, таблицу типов и render(), который отдает
    готовые файлы по одному. Сборка моделей рендеринга (build_*) общая,
    языковые отличия вынесены в небольшие хуки именования и типов.
    """

    language: OutputLanguage = None
    type_map: Dict[str, str] = {}
    client_schema_prefix = ""
    # Имена, занятые импортами файла с объявлениями типов
    reserved_type_names: Set[str] = set()

    def __init__(self, config: GeneratorConfig):
        self.config = config
        self.output_dir = os.path.join(config.output_dir, config.language.value)
        self.schema_names: Set[str] = set()
        self._reported_types: Set[str] = set()

    def generate(self, context: GeneratorContext) -> List[str]:
        """Генерация всех артефактов, возвращает пути записанных файлов"""
        self.schema_names = set(context.spec.schema_names)
        # Файлы пишутся по мере рендеринга, без отката уже записанных
        return [self.write_file(rendered) for rendered in self.render(context)]

    def render(self, context: GeneratorContext) -> Iterator[RenderedFile]:
        raise NotImplementedError

    def write_file(self, rendered: RenderedFile) -> str:
        path = os.path.join(self.output_dir, rendered.file_name)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(rendered.content)
        except OSError as e:
            raise GenerationIOError(f"Cannot write file: {e}", path) from e

        logger.info(f"  ✓ Created: {rendered.file_name}")
        return path

    # Типы

    def map_type(self, label: str, nullable: bool = False, schema_prefix: str = "") -> str:
        """Метка типа из спецификации в тип целевого языка"""
        if label.endswith("[]"):
            mapped = self.array_type(self.map_type(label[:-2], schema_prefix=schema_prefix))
        else:
            mapped = self._map_scalar(label, schema_prefix)
        return self.nullable_type(mapped) if nullable else mapped

    def _map_scalar(self, label: str, schema_prefix: str) -> str:
        if label in self.type_map:
            return self.type_map[label]
        if label in self.schema_names:
            return schema_prefix + self.schema_type_name(label)
        if label.lower() in self.type_map:
            return self.type_map[label.lower()]

        # Ссылка на необъявленную схему не останавливает генерацию
        if label not in self._reported_types:
            self._reported_types.add(label)
            logger.warning(
                f"Unknown type '{label}', using placeholder {self.type_map[ANY_TYPE]}"
            )
        return self.type_map[ANY_TYPE]

    def array_type(self, item_type: str) -> str:
        raise NotImplementedError

    def nullable_type(self, type_name: str) -> str:
        raise NotImplementedError

    def literal_union(self, values: List) -> str:
        raise NotImplementedError

    def return_type(self, endpoint: ParsedEndpoint, schema_prefix: str = "") -> str:
        return self.map_type(resolve_return_label(endpoint), schema_prefix=schema_prefix)

    def referenced_types(self, type_names: Iterable[str]) -> List[str]:
        """Объявленные схемы, упомянутые в списке типов"""
        words = set(_WORD.findall(" ".join(type_names)))
        declared = {self.schema_type_name(name) for name in self.schema_names}
        return sorted(name for name in declared if name in words)

    # Хуки именования

    def schema_type_name(self, name: str) -> str:
        identifier = type_identifier(name)
        if identifier in self.reserved_type_names:
            return f"{identifier}Model"
        return identifier

    def tag_class_name(self, tag: str) -> str:
        name = pascal_case(tag)
        return name if is_identifier(name) else type_identifier(name)

    def tag_field_name(self, tag: str) -> str:
        name = camel_case(tag)
        return name if is_identifier(name) else f"_{name}"

    def method_name(self, operation_id: str) -> str:
        return camel_case(operation_id)

    def property_name(self, name: str, used: Set[str]) -> str:
        return name

    def parameter_names(self, parameters: List[ParsedParameter]) -> List[str]:
        return [param.name for param in parameters]

    def example_name(self, field_name: str, method_name: str) -> str:
        return f"{field_name}{capitalize_first(method_name)}Example"

    # Модели рендеринга

    def build_types(self, context: GeneratorContext) -> TypesRender:
        spec = context.spec
        return TypesRender(
            title=spec.title,
            version=spec.version,
            declarations=[self.build_declaration(schema) for schema in spec.schemas],
        )

    def build_declaration(self, schema: ParsedSchema) -> TypeDeclarationRender:
        name = self.schema_type_name(schema.name)
        description = format_description(schema.description) or schema.name

        if not schema.properties and (schema.ref or schema.type != "object"):
            alias = (
                self.literal_union(schema.enum)
                if schema.enum
                else self.map_type(schema.type_label)
            )
            return TypeDeclarationRender(name=name, description=description, alias=alias)

        used: Set[str] = set()
        fields = []
        for prop in schema.properties:
            fields.append(
                FieldRender(
                    name=self.property_name(prop.name, used),
                    wire_name=prop.name,
                    type=self.map_type(prop.type, prop.nullable),
                    required=schema.is_required(prop.name),
                    description=format_description(prop.description) or prop.name,
                )
            )
        return TypeDeclarationRender(name=name, description=description, fields=fields)

    def build_method(self, endpoint: ParsedEndpoint) -> MethodRender:
        prefix = self.client_schema_prefix
        names = self.parameter_names(endpoint.parameters)
        parameters = [
            ParameterRender(
                name=name,
                wire_name=param.name,
                location=param.location,
                type=self.map_type(param.type, schema_prefix=prefix),
                required=param.required,
            )
            for name, param in zip(names, endpoint.parameters)
        ]

        body_type = None
        body_required = False
        if endpoint.request_body is not None:
            body_type = self.map_type(
                resolve_type_label(endpoint.request_body.raw_schema),
                schema_prefix=prefix,
            )
            body_required = endpoint.request_body.required

        return MethodRender(
            name=self.method_name(endpoint.operation_id),
            http_method=endpoint.method,
            path=endpoint.path,
            summary=format_description(endpoint.summary) or endpoint.operation_id,
            description=format_description(endpoint.description),
            return_type=self.return_type(endpoint, schema_prefix=prefix),
            parameters=parameters,
            body_type=body_type,
            body_required=body_required,
        )

    def build_auth(self, spec: ParsedAPISpec) -> AuthRender:
        """Слоты apiKey и bearer по объявленным схемам безопасности"""
        auth = AuthRender()
        for scheme in spec.security_schemes.values():
            scheme_type = str(scheme.get("type", ""))
            if scheme_type == "apiKey" and not auth.api_key:
                auth.api_key = True
                auth.api_key_name = str(scheme.get("name") or auth.api_key_name)
                auth.api_key_location = str(scheme.get("in") or auth.api_key_location)
            elif (
                scheme_type == "http"
                and str(scheme.get("scheme", "")).lower() == "bearer"
            ):
                auth.bearer = True
        return auth

    def build_client(self, context: GeneratorContext) -> ClientRender:
        spec = context.spec
        sub_clients = []
        for tag, endpoints in context.endpoints_by_tag.items():
            class_name = self.tag_class_name(tag)
            sub_clients.append(
                SubClientRender(
                    class_name=f"{class_name}Client",
                    field_name=self.tag_field_name(tag),
                    description=capitalize_first(tag),
                    params_type=f"{class_name}Params",
                    methods=[self.build_method(endpoint) for endpoint in endpoints],
                )
            )

        used_types = []
        for sub_client in sub_clients:
            for method in sub_client.methods:
                used_types.append(method.return_type)
                used_types.extend(p.type for p in method.parameters)
                if method.body_type:
                    used_types.append(method.body_type)

        return ClientRender(
            client_name=type_identifier(context.config.client_name),
            title=spec.title,
            version=spec.version,
            base_url=spec.base_url,
            description=format_description(spec.description),
            sub_clients=sub_clients,
            auth=self.build_auth(spec),
            include_error_handling=context.config.include_error_handling,
            type_imports=self.referenced_types(used_types),
            params_imports=[s.params_type for s in sub_clients],
        )

    def build_params(self, context: GeneratorContext) -> ParamsRender:
        """Наборы параметров по тегам, повторное имя параметра берется один раз"""
        bundles = []
        for tag, endpoints in context.endpoints_by_tag.items():
            seen: Set[str] = set()
            fields = []
            for endpoint in endpoints:
                for param in endpoint.parameters:
                    if param.name in seen:
                        continue
                    seen.add(param.name)
                    fields.append(
                        FieldRender(
                            name=param.name,
                            wire_name=param.name,
                            type=self.map_type(
                                param.type, schema_prefix=self.client_schema_prefix
                            ),
                            required=param.required,
                            description=format_description(param.description)
                            or param.name,
                        )
                    )
            bundles.append(
                ParamBundleRender(
                    name=f"{self.tag_class_name(tag)}Params",
                    description=capitalize_first(tag),
                    fields=fields,
                )
            )

        return ParamsRender(
            title=context.spec.title,
            version=context.spec.version,
            bundles=bundles,
            type_imports=self.referenced_types(
                f.type for bundle in bundles for f in bundle.fields
            ),
        )

    def build_examples(self, context: GeneratorContext) -> ExamplesRender:
        client = self.build_client(context)
        groups = []
        for sub_client in client.sub_clients:
            groups.append(
                ExampleGroupRender(
                    title=f"{sub_client.description} endpoints",
                    examples=[
                        ExampleRender(
                            name=self.example_name(sub_client.field_name, method.name),
                            field_name=sub_client.field_name,
                            method_name=method.name,
                            summary=method.summary,
                            http_method=method.http_method,
                            path=method.path,
                        )
                        for method in sub_client.methods
                    ],
                )
            )

        return ExamplesRender(
            title=context.spec.title,
            version=context.spec.version,
            client_name=type_identifier(context.config.client_name),
            base_url=context.spec.base_url,
            groups=groups,
        )

    def build_error_taxonomy(self) -> ErrorTaxonomyRender:
        return build_error_taxonomy()
