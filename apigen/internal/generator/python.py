"""
Генератор Python клиента на aiohttp + pydantic
"""

import re
from typing import Iterator, List, Set

import toml

from ...config import OutputLanguage
from ..types.models import GeneratorContext, ParsedParameter
from ..types.render import (
    ClientRender,
    ErrorArgumentRender,
    ErrorTaxonomyRender,
    ExamplesRender,
    FieldRender,
    ManifestRender,
    MethodRender,
    ParamsRender,
    RenderedFile,
    SubClientRender,
    TypeDeclarationRender,
    TypesRender,
)
from ..utils.naming import python_identifier
from .base import BaseLanguageGenerator
from .templates import templates

PY_TYPE_MAP = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "array": "List[Any]",
    "object": "Dict[str, Any]",
    "file": "bytes",
    "date": "str",
    "date-time": "str",
    "email": "str",
    "uri": "str",
    "any": "Any",
}

ERROR_ARGUMENT_TYPES = {
    "string": "str",
    "integer": "int",
    "any": "Any",
    "cause": "BaseException",
}

# Атрибуты BaseClient, которые нельзя перекрывать полями тегов
CLIENT_ATTRIBUTES = {"close", "headers", "update_headers"}

# Имена, занятые в теле сгенерированного метода
METHOD_LOCALS = {"data", "quote", "models", "TypeAdapter"}

# Имена, импортируемые в models.py
MODEL_IMPORTS = {"Any", "Dict", "List", "Literal", "Optional", "BaseModel", "ConfigDict", "Field"}

_PATH_PARAM = re.compile(r"\{([^}]+)\}")
_WORD = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def py_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def py_doc(text: str) -> str:
    text = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    # Кавычка в конце склеится с закрывающими """
    return f"{text} " if text.endswith('"') else text


def _module_doc(kind: str, title: str, version: str) -> List[str]:
    return [
        '"""',
        f"Auto-generated {kind} for {py_doc(title)}",
        "",
        f"Version: {py_doc(version)}",
        '"""',
        "",
    ]


def _optional(type_name: str) -> str:
    if type_name == "Any" or type_name.startswith("Optional["):
        return type_name
    return f"Optional[{type_name}]"


def _unique(name: str, used: Set[str]) -> str:
    while name in used:
        name = f"{name}_"
    used.add(name)
    return name


def _ordered_aliases(aliases: List[TypeDeclarationRender]) -> List[TypeDeclarationRender]:
    """Псевдонимы в порядке зависимостей: значение вычисляется при импорте"""
    names = {alias.name for alias in aliases}
    pending = list(aliases)
    ordered = []
    placed: Set[str] = set()
    while pending:
        ready = next(
            (
                alias
                for alias in pending
                if not (set(_WORD.findall(alias.alias)) & names) - placed - {alias.name}
            ),
            pending[0],
        )
        pending.remove(ready)
        ordered.append(ready)
        placed.add(ready.name)
    return ordered


def format_models(types: TypesRender) -> str:
    lines = _module_doc("models", types.title, types.version)
    lines.extend(
        [
            "from __future__ import annotations",
            "",
            "from typing import Any, Dict, List, Literal, Optional",
            "",
            "from pydantic import BaseModel, ConfigDict, Field",
            "",
        ]
    )

    # Аннотации классов ленивые, а псевдонимы вычисляются сразу,
    # поэтому псевдонимы идут после всех классов
    classes = [d for d in types.declarations if not d.is_alias]
    aliases = [d for d in types.declarations if d.is_alias]

    for declaration in classes:
        lines.append("")
        lines.append(f"class {declaration.name}(BaseModel):")
        lines.append(f'    """{py_doc(declaration.description)}"""')
        lines.append("")
        lines.append("    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())")
        if declaration.fields:
            lines.append("")
        for f in declaration.fields:
            lines.append(f"    {_model_field(f)}")
        lines.append("")

    for declaration in _ordered_aliases(aliases):
        lines.append("")
        lines.append(f"{declaration.name} = {declaration.alias}")
        lines.append(f'"""{py_doc(declaration.description)}"""')
        lines.append("")

    if classes:
        lines.append("")
        lines.extend(f"{d.name}.model_rebuild()" for d in classes)
        lines.append("")

    return "\n".join(lines)


def _model_field(f: FieldRender) -> str:
    alias = f.name != f.wire_name
    if f.required:
        if alias:
            return f"{f.name}: {f.type} = Field(alias={py_string(f.wire_name)})"
        return f"{f.name}: {f.type}"

    type_name = _optional(f.type)
    if alias:
        return f"{f.name}: {type_name} = Field(default=None, alias={py_string(f.wire_name)})"
    return f"{f.name}: {type_name} = None"


def format_params(params: ParamsRender) -> str:
    lines = _module_doc("parameter types", params.title, params.version)
    lines.append("from typing import Any, Dict, List, Required, TypedDict")
    if params.type_imports:
        lines.append("")
        lines.append("from . import models")
    lines.append("")

    for bundle in params.bundles:
        lines.append("")
        lines.append(f"# {bundle.description} parameters")
        lines.append(f"{bundle.name} = TypedDict(")
        lines.append(f"    {py_string(bundle.name)},")
        lines.append("    {")
        for f in bundle.fields:
            type_name = f"Required[{f.type}]" if f.required else f.type
            lines.append(f"        {py_string(f.wire_name)}: {type_name},")
        lines.append("    },")
        lines.append("    total=False,")
        lines.append(")")
        lines.append("")

    return "\n".join(lines)


def _path_expression(method: MethodRender) -> str:
    """Путь запроса, при наличии path параметров - f-строка"""
    names = {p.wire_name: p.name for p in method.parameters_in("path")}

    def literal(text: str, f_string: bool) -> str:
        text = text.replace("\\", "\\\\").replace('"', '\\"')
        if f_string:
            text = text.replace("{", "{{").replace("}", "}}")
        return text

    matches = [m for m in _PATH_PARAM.finditer(method.path) if m.group(1) in names]
    if not matches:
        return f'"{literal(method.path, False)}"'

    parts = []
    last = 0
    for match in matches:
        parts.append(literal(method.path[last : match.start()], True))
        parts.append(f"{{quote(str({names[match.group(1)]}), safe='')}}")
        last = match.end()
    parts.append(literal(method.path[last:], True))
    return 'f"' + "".join(parts) + '"'


def _mapping_literal(method: MethodRender, location: str) -> str:
    entries = [f"{py_string(p.wire_name)}: {p.name}" for p in method.parameters_in(location)]
    return "{" + ", ".join(entries) + "}"


def _method_lines(method: MethodRender) -> List[str]:
    arguments = [f"{p.name}: {_optional(p.type)} = None" for p in method.parameters]
    if method.has_body:
        arguments.append(f"body: {_optional(method.body_type)} = None")

    lines = ["", f"    async def {method.name}("]
    lines.append("        self,")
    lines.extend(f"        {argument}," for argument in arguments)
    lines.append(f"    ) -> {method.return_type}:")

    lines.append('        """')
    lines.append(f"        {py_doc(method.summary)}")
    if method.description:
        lines.append("")
        lines.append(f"        {py_doc(method.description)}")
    lines.append("")
    lines.append(f"        {method.http_method} {py_doc(method.path)}")
    lines.append('        """')

    lines.append("        data = await self._client._request(")
    lines.append(f"            {py_string(method.http_method)},")
    lines.append(f"            {_path_expression(method)},")
    if method.parameters_in("query"):
        lines.append(f"            params={_mapping_literal(method, 'query')},")
    if method.parameters_in("header"):
        lines.append(f"            headers={_mapping_literal(method, 'header')},")
    if method.has_body:
        lines.append("            json=body,")
    lines.append("        )")

    if method.return_type == "Any":
        lines.append("        return data")
    else:
        lines.append(
            f"        return TypeAdapter({method.return_type}).validate_python(data)"
        )
    return lines


def _sub_client_lines(sub_client: SubClientRender) -> List[str]:
    lines = [
        "",
        "",
        f"class {sub_client.class_name}:",
        f'    """{py_doc(sub_client.description)}"""',
        "",
        "    def __init__(self, client: BaseClient):",
        "        self._client = client",
    ]
    for method in sub_client.methods:
        lines.extend(_method_lines(method))
    return lines


def format_client(client: ClientRender) -> str:
    lines = _module_doc("client", client.title, client.version)
    lines.append(templates.client_imports.rstrip("\n"))
    if client.include_error_handling:
        lines.append(
            "from .errors import ApiResponseError, NetworkError, TimeoutError"
        )
    lines.append("")
    lines.append("logger = logging.getLogger(__name__)")
    lines.append("")
    lines.append(f"DEFAULT_BASE_URL = {py_string(client.base_url)}")

    lines.append(templates.helpers.rstrip("\n"))
    lines.append(templates.base_client.rstrip("\n"))
    send = templates.send_with_errors if client.include_error_handling else templates.send_plain
    lines.append(send.rstrip("\n"))

    for sub_client in client.sub_clients:
        lines.extend(_sub_client_lines(sub_client))

    auth = client.auth
    arguments = [
        "base_url: str = DEFAULT_BASE_URL",
        "timeout: float = 30",
        "headers: Optional[Dict[str, str]] = None",
    ]
    if auth.api_key:
        arguments.append("api_key: Optional[str] = None")
    if auth.bearer:
        arguments.append("bearer_token: Optional[str] = None")

    doc = py_doc(f"{client.title} client")
    lines.extend(
        [
            "",
            "",
            f"class {client.client_name}(BaseClient):",
            f'    """{doc}"""',
            "",
            "    def __init__(",
            "        self,",
        ]
    )
    lines.extend(f"        {argument}," for argument in arguments)
    lines.append("    ):")
    lines.append("        super().__init__(base_url=base_url, timeout=timeout, headers=headers)")

    if auth.api_key:
        key_name = py_string(auth.api_key_name)
        lines.append("        if api_key is not None:")
        if auth.api_key_location == "query":
            lines.append(f"            self._base_params[{key_name}] = api_key")
        elif auth.api_key_location == "cookie":
            lines.append(
                f'            self._base_headers["Cookie"] = {py_string(auth.api_key_name + "=")} + api_key'
            )
        else:
            lines.append(f"            self._base_headers[{key_name}] = api_key")
    if auth.bearer:
        lines.append("        if bearer_token is not None:")
        lines.append('            self._base_headers["Authorization"] = f"Bearer {bearer_token}"')

    for sub_client in client.sub_clients:
        lines.append(f"        self.{sub_client.field_name} = {sub_client.class_name}(self)")
    lines.append("")

    return "\n".join(lines)


def _error_argument(argument: ErrorArgumentRender) -> str:
    type_name = ERROR_ARGUMENT_TYPES[argument.type]
    if argument.default is not None:
        return f"{argument.name}: {type_name} = {py_string(argument.default)}"
    if argument.optional:
        return f"{argument.name}: {_optional(type_name)} = None"
    return f"{argument.name}: {type_name}"


def format_errors(taxonomy: ErrorTaxonomyRender) -> str:
    lines = [
        '"""',
        "Error taxonomy of the generated client",
        '"""',
        "",
        "from typing import Any, Optional",
        "",
    ]

    for error in taxonomy.errors:
        arguments = ", ".join(["self"] + [_error_argument(a) for a in error.arguments])
        lines.extend(
            [
                "",
                f"class {error.name}({error.parent or 'Exception'}):",
                f'    """{error.description}"""',
                "",
                f"    def __init__({arguments}):",
                f"        super().__init__({', '.join(error.super_arguments)})",
            ]
        )
        stored = [a.name for a in error.arguments if a.stored]
        if error.parent is None:
            stored.insert(0, "message")
        lines.extend(f"        self.{name} = {name}" for name in stored)
        lines.append("")

    always = ", ".join(taxonomy.retryable_errors)
    lines.extend(
        [
            "",
            "def is_api_error(error: BaseException) -> bool:",
            "    return isinstance(error, ApiError)",
            "",
            "",
            "def is_retryable_error(error: BaseException) -> bool:",
            f"    if isinstance(error, ({always},)):",
            "        return True",
            "    if (",
            f"        isinstance(error, {taxonomy.status_retryable_error})",
            "        and error.status_code is not None",
            f"        and error.status_code >= {taxonomy.retryable_min_status}",
            "    ):",
            "        return True",
            "    return False",
            "",
        ]
    )

    return "\n".join(lines)


def format_examples(examples: ExamplesRender) -> str:
    lines = _module_doc("examples", examples.title, examples.version)
    lines.extend(["import asyncio", "", f"from .client import {examples.client_name}", ""])

    calls = []
    for group in examples.groups:
        lines.append("")
        lines.append(f"# {group.title}")
        for example in group.examples:
            calls.append(example.name)
            lines.extend(
                [
                    "",
                    "",
                    f"async def {example.name}(client: {examples.client_name}) -> None:",
                    f'    """{py_doc(example.summary)} ({example.http_method} {py_doc(example.path)})"""',
                    f"    result = await client.{example.field_name}.{example.method_name}()",
                    "    print(result)",
                ]
            )

    lines.extend(
        [
            "",
            "",
            "async def main() -> None:",
            f"    async with {examples.client_name}(base_url={py_string(examples.base_url)}) as client:",
        ]
    )
    if calls:
        lines.extend(f"        await {name}(client)" for name in calls)
    else:
        lines.append("        print(client.headers)")
    lines.extend(["", "", 'if __name__ == "__main__":', "    asyncio.run(main())", ""])

    return "\n".join(lines)


def format_init(client: ClientRender) -> str:
    exported = [client.client_name]
    lines = [f'"""{py_doc(client.title)} client"""', "", f"from .client import {client.client_name}"]
    if client.include_error_handling:
        lines.append(
            "from .errors import ApiError, ApiResponseError, NetworkError, TimeoutError, is_retryable_error"
        )
        exported.extend(
            ["ApiError", "ApiResponseError", "NetworkError", "TimeoutError", "is_retryable_error"]
        )
    lines.append("")
    lines.append(f"__all__ = {exported!r}")
    lines.append("")
    return "\n".join(lines)


def format_requirements(manifest: ManifestRender) -> str:
    return "".join(f"{name}{version}\n" for name, version in manifest.dependencies.items())


def format_pyproject(manifest: ManifestRender) -> str:
    pyproject = {
        "build-system": {
            "requires": ["setuptools>=61.0"],
            "build-backend": "setuptools.build_meta",
        },
        "project": {
            "name": manifest.name,
            "version": manifest.version,
            "description": manifest.description,
            "requires-python": ">=3.11",
            "dependencies": [
                f"{name}{version}" for name, version in manifest.dependencies.items()
            ],
        },
        "tool": {
            "setuptools": {
                "packages": [manifest.package_name],
                "package-dir": {manifest.package_name: "."},
            }
        },
    }
    return toml.dumps(pyproject)


class PythonGenerator(BaseLanguageGenerator):
    """Генератор асинхронного Python клиента"""

    language = OutputLanguage.PYTHON
    type_map = PY_TYPE_MAP
    client_schema_prefix = "models."
    reserved_type_names = MODEL_IMPORTS

    def array_type(self, item_type: str) -> str:
        return f"List[{item_type}]"

    def nullable_type(self, type_name: str) -> str:
        return _optional(type_name)

    def literal_union(self, values: list) -> str:
        return f"Literal[{', '.join(repr(value) for value in values)}]"

    def tag_field_name(self, tag: str) -> str:
        name = python_identifier(tag)
        return f"{name}_" if name in CLIENT_ATTRIBUTES else name

    def method_name(self, operation_id: str) -> str:
        return python_identifier(operation_id)

    def property_name(self, name: str, used: Set[str]) -> str:
        identifier = python_identifier(name)
        # Пространство имен model_ занято pydantic
        if identifier.startswith("model_"):
            identifier = f"{identifier}_"
        return _unique(identifier, used)

    def parameter_names(self, parameters: List[ParsedParameter]) -> List[str]:
        used: Set[str] = set()
        names = []
        for param in parameters:
            name = python_identifier(param.name)
            if name in METHOD_LOCALS:
                name = f"{name}_"
            names.append(_unique(name, used))
        return names

    def example_name(self, field_name: str, method_name: str) -> str:
        return f"{field_name.rstrip('_')}_{method_name.rstrip('_')}_example"

    def build_manifest(self, context: GeneratorContext) -> ManifestRender:
        client_name = context.config.client_name
        return ManifestRender(
            name=f"{client_name.lower()}-client",
            version="1.0.0",
            description=f"Auto-generated Python client for {client_name}",
            package_name=python_identifier(client_name.lower()),
            dependencies=dict(templates.requirements),
        )

    def render(self, context: GeneratorContext) -> Iterator[RenderedFile]:
        config = context.config

        yield RenderedFile("models.py", format_models(self.build_types(context)))

        client = self.build_client(context)
        yield RenderedFile("client.py", format_client(client))
        yield RenderedFile("__init__.py", format_init(client))

        if config.include_error_handling:
            yield RenderedFile("errors.py", format_errors(self.build_error_taxonomy()))

        yield RenderedFile("params.py", format_params(self.build_params(context)))

        if config.include_examples:
            yield RenderedFile("examples.py", format_examples(self.build_examples(context)))

        manifest = self.build_manifest(context)
        yield RenderedFile("requirements.txt", format_requirements(manifest))
        yield RenderedFile("pyproject.toml", format_pyproject(manifest))
