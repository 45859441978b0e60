"""
Генератор TypeScript клиента на axios
"""

import json
import re
from typing import Iterator, List

from ...config import OutputLanguage
from ..types.models import GeneratorContext
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
    TypesRender,
    build_error_taxonomy,
)
from ..utils.naming import camel_case, is_identifier
from .base import BaseLanguageGenerator

TS_TYPE_MAP = {
    "string": "string",
    "integer": "number",
    "number": "number",
    "boolean": "boolean",
    "array": "any[]",
    "object": "Record<string, any>",
    "file": "Blob",
    "date": "string",
    "date-time": "string",
    "email": "string",
    "uri": "string",
    "any": "any",
}

# Нейтральные типы аргументов ошибок
ERROR_ARGUMENT_TYPES = {
    "string": "string",
    "integer": "number",
    "any": "any",
    "cause": "Error",
}

# Имена, уже занятые в index.ts
CLIENT_IMPORTS = {
    "AxiosError",
    "AxiosInstance",
    "AxiosRequestConfig",
    "AxiosResponse",
    "ClientConfig",
    *build_error_taxonomy().error_names,
}

DEFAULT_TIMEOUT_MS = 30000

_PATH_PARAM = re.compile(r"\{([^}]+)\}")


def ts_string(value: str) -> str:
    """Строковый литерал в одинарных кавычках"""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{escaped}'"


def ts_comment(text: str) -> str:
    return text.replace("*/", "*\\/")


def ts_property(name: str) -> str:
    return name if is_identifier(name) else ts_string(name)


def ts_access(target: str, name: str) -> str:
    return f"{target}.{name}" if is_identifier(name) else f"{target}[{ts_string(name)}]"


def _header(kind: str, title: str, version: str) -> List[str]:
    return [f"// Auto-generated {kind} for {title}", f"// Version: {version}", ""]


def _field_lines(fields: List[FieldRender]) -> List[str]:
    lines = []
    for f in fields:
        optional = "" if f.required else "?"
        lines.append(f"  /** {ts_comment(f.description)} */")
        lines.append(f"  {ts_property(f.name)}{optional}: {f.type};")
    return lines


def format_types(types: TypesRender) -> str:
    lines = _header("types", types.title, types.version)

    for declaration in types.declarations:
        lines.append(f"/** {ts_comment(declaration.description)} */")
        if declaration.is_alias:
            lines.append(f"export type {declaration.name} = {declaration.alias};")
        else:
            lines.append(f"export interface {declaration.name} {{")
            lines.extend(_field_lines(declaration.fields))
            lines.append("}")
        lines.append("")

    return "\n".join(lines)


def format_params(params: ParamsRender) -> str:
    lines = _header("parameter types", params.title, params.version)

    if params.type_imports:
        lines.append(f"import {{ {', '.join(params.type_imports)} }} from './types';")
        lines.append("")

    for bundle in params.bundles:
        lines.append(f"/** {ts_comment(bundle.description)} parameters */")
        lines.append(f"export interface {bundle.name} {{")
        lines.extend(_field_lines(bundle.fields))
        lines.append("}")
        lines.append("")

    return "\n".join(lines)


def _path_expression(method: MethodRender) -> str:
    """Путь запроса как шаблонная строка с подстановкой path параметров"""
    path_params = {p.wire_name for p in method.parameters_in("path")}

    def substitute(match):
        name = match.group(1)
        if name not in path_params:
            return match.group(0)
        return f"${{encodeURIComponent(String({ts_access('params', name)}))}}"

    parts = []
    last = 0
    for match in _PATH_PARAM.finditer(method.path):
        literal = method.path[last : match.start()]
        parts.append(literal.replace("`", "\\`").replace("$", "\\$"))
        parts.append(substitute(match))
        last = match.end()
    parts.append(method.path[last:].replace("`", "\\`").replace("$", "\\$"))

    return "`" + "".join(parts) + "`"


def _mapping_literal(method: MethodRender, location: str) -> str:
    entries = [
        f"{ts_string(p.wire_name)}: {ts_access('params', p.wire_name)}"
        for p in method.parameters_in(location)
    ]
    return "{ " + ", ".join(entries) + " }"


def _method_lines(
    method: MethodRender, sub_client: SubClientRender, include_error_handling: bool
) -> List[str]:
    signature = f"params: Partial<{sub_client.params_type}> = {{}}"
    if method.has_body:
        signature += f", body?: {method.body_type}"

    lines = ["  /**", f"   * {ts_comment(method.summary)}"]
    if method.description:
        lines.append(f"   * {ts_comment(method.description)}")
    lines.extend(
        [
            "   *",
            f"   * {method.http_method} {ts_comment(method.path)}",
            "   *",
            "   * @param params - Request parameters",
        ]
    )
    if method.has_body:
        lines.append("   * @param body - Request body")
    lines.extend(
        [
            f"   * @returns Promise resolving to {method.return_type}",
            "   */",
            f"  async {method.name}({signature}): Promise<{method.return_type}> {{",
        ]
    )

    config_lines = [
        "const config: AxiosRequestConfig = {",
        f"  url: {_path_expression(method)},",
        f"  method: {ts_string(method.http_method)},",
    ]
    if method.parameters_in("query"):
        config_lines.append(f"  params: {_mapping_literal(method, 'query')},")
    if method.parameters_in("header"):
        config_lines.append(f"  headers: {_mapping_literal(method, 'header')},")
    if method.has_body:
        config_lines.append("  data: body,")
    config_lines.extend(
        [
            "};",
            "",
            f"const response: AxiosResponse<{method.return_type}> = await this.client.request(config);",
            "return response.data;",
        ]
    )

    indent = "    "
    if include_error_handling:
        lines.append(f"{indent}try {{")
        lines.extend(f"{indent}  {line}" if line else "" for line in config_lines)
        lines.extend(
            [
                f"{indent}}} catch (error) {{",
                f"{indent}  throw handleError(error);",
                f"{indent}}}",
            ]
        )
    else:
        lines.extend(f"{indent}{line}" if line else "" for line in config_lines)

    lines.append("  }")
    return lines


def _handle_error_lines() -> List[str]:
    return [
        "function handleError(error: unknown): ApiError {",
        "  if (axios.isAxiosError(error)) {",
        "    const axiosError = error as AxiosError;",
        "    if (axiosError.code === 'ECONNABORTED') {",
        "      return new TimeoutError();",
        "    }",
        "    if (!axiosError.response) {",
        "      return new NetworkError(axiosError.message || 'Network error', axiosError);",
        "    }",
        "    return new ApiResponseError(",
        "      axiosError.message,",
        "      axiosError.response.status,",
        "      axiosError.response.data",
        "    );",
        "  }",
        "  if (error instanceof ApiError) {",
        "    return error;",
        "  }",
        "  return new ApiError(error instanceof Error ? error.message : 'Unknown error occurred');",
        "}",
        "",
    ]


def format_client(client: ClientRender) -> str:
    lines = _header("client", client.title, client.version)
    lines.append(
        "import axios, { AxiosError, AxiosInstance, AxiosRequestConfig, AxiosResponse } from 'axios';"
    )
    if client.type_imports:
        lines.append(f"import {{ {', '.join(client.type_imports)} }} from './types';")
    if client.params_imports:
        lines.append(f"import {{ {', '.join(client.params_imports)} }} from './params';")
    if client.include_error_handling:
        lines.append(
            "import { ApiError, ApiResponseError, NetworkError, TimeoutError } from './errors';"
        )
    lines.append("")

    lines.append(f"export const DEFAULT_BASE_URL = {ts_string(client.base_url)};")
    lines.append("")

    lines.append("export interface ClientConfig {")
    lines.append("  baseURL?: string;")
    lines.append("  timeout?: number;")
    lines.append("  headers?: Record<string, string>;")
    if client.auth.api_key:
        lines.append("  apiKey?: string;")
    if client.auth.bearer:
        lines.append("  bearerToken?: string;")
    lines.append("}")
    lines.append("")

    if client.include_error_handling:
        lines.extend(_handle_error_lines())

    for sub_client in client.sub_clients:
        lines.extend(
            [
                "/**",
                f" * {ts_comment(sub_client.description)}",
                " */",
                f"export class {sub_client.class_name} {{",
                "  private client: AxiosInstance;",
                "",
                "  constructor(client: AxiosInstance) {",
                "    this.client = client;",
                "  }",
            ]
        )
        for method in sub_client.methods:
            lines.append("")
            lines.extend(
                _method_lines(method, sub_client, client.include_error_handling)
            )
        lines.append("}")
        lines.append("")

    lines.append("/**")
    lines.append(f" * {ts_comment(client.title)} client")
    if client.description:
        lines.append(f" * {ts_comment(client.description)}")
    lines.append(" */")
    lines.append(f"export class {client.client_name} {{")
    lines.append("  private client: AxiosInstance;")
    for sub_client in client.sub_clients:
        lines.append(f"  public {sub_client.field_name}: {sub_client.class_name};")
    lines.append("")
    lines.append("  constructor(config: ClientConfig = {}) {")
    lines.append("    const headers: Record<string, string> = { ...(config.headers || {}) };")
    lines.append("    const params: Record<string, string> = {};")

    auth = client.auth
    if auth.api_key:
        key_name = ts_string(auth.api_key_name)
        lines.append("    if (config.apiKey) {")
        if auth.api_key_location == "query":
            lines.append(f"      params[{key_name}] = config.apiKey;")
        elif auth.api_key_location == "cookie":
            cookie_name = auth.api_key_name.replace("`", "\\`").replace("$", "\\$")
            lines.append(f"      headers['Cookie'] = `{cookie_name}=${{config.apiKey}}`;")
        else:
            lines.append(f"      headers[{key_name}] = config.apiKey;")
        lines.append("    }")
    if auth.bearer:
        lines.append("    if (config.bearerToken) {")
        lines.append("      headers['Authorization'] = `Bearer ${config.bearerToken}`;")
        lines.append("    }")

    lines.extend(
        [
            "    this.client = axios.create({",
            "      baseURL: config.baseURL || DEFAULT_BASE_URL,",
            f"      timeout: config.timeout || {DEFAULT_TIMEOUT_MS},",
            "      headers,",
            "      params,",
            "    });",
        ]
    )
    for sub_client in client.sub_clients:
        lines.append(
            f"    this.{sub_client.field_name} = new {sub_client.class_name}(this.client);"
        )
    lines.append("  }")
    lines.append("}")
    lines.append("")
    lines.append(f"export default {client.client_name};")
    lines.append("")

    return "\n".join(lines)


def _error_argument(argument: ErrorArgumentRender) -> str:
    name = camel_case(argument.name)
    ts_type = ERROR_ARGUMENT_TYPES[argument.type]
    prefix = "public " if argument.stored else ""
    if argument.default is not None:
        return f"{prefix}{name}: {ts_type} = {ts_string(argument.default)}"
    optional = "?" if argument.optional else ""
    return f"{prefix}{name}{optional}: {ts_type}"


def format_errors(taxonomy: ErrorTaxonomyRender) -> str:
    lines = []

    for error in taxonomy.errors:
        parent = error.parent or "Error"
        arguments = ", ".join(_error_argument(a) for a in error.arguments)
        super_arguments = ", ".join(camel_case(a) for a in error.super_arguments)
        lines.extend(
            [
                f"/** {error.description} */",
                f"export class {error.name} extends {parent} {{",
                f"  constructor({arguments}) {{",
                f"    super({super_arguments});",
                f"    this.name = {ts_string(error.name)};",
                f"    Object.setPrototypeOf(this, {error.name}.prototype);",
                "  }",
                "}",
                "",
            ]
        )

    lines.append(f"export type ErrorType = {' | '.join(taxonomy.error_names)};")
    lines.append("")
    lines.extend(
        [
            "export function isApiError(error: any): error is ApiError {",
            "  return error instanceof ApiError;",
            "}",
            "",
        ]
    )

    always = " || ".join(f"error instanceof {name}" for name in taxonomy.retryable_errors)
    lines.extend(
        [
            "export function isRetryableError(error: any): boolean {",
            f"  if ({always}) {{",
            "    return true;",
            "  }",
            f"  if (error instanceof {taxonomy.status_retryable_error} && "
            f"error.statusCode !== undefined && "
            f"error.statusCode >= {taxonomy.retryable_min_status}) {{",
            "    return true;",
            "  }",
            "  return false;",
            "}",
            "",
        ]
    )

    return "\n".join(lines)


def format_examples(examples: ExamplesRender) -> str:
    lines = _header("examples", examples.title, examples.version)
    lines.extend(
        [
            f"import {{ {examples.client_name} }} from './index';",
            "",
            "// Create client instance",
            f"const client = new {examples.client_name}({{",
            f"  baseURL: {ts_string(examples.base_url)},",
            f"  timeout: {DEFAULT_TIMEOUT_MS},",
            "});",
            "",
        ]
    )

    for group in examples.groups:
        lines.append(f"// {group.title}")
        lines.append("")
        for example in group.examples:
            lines.extend(
                [
                    f"// {example.summary}",
                    f"// {example.http_method} {example.path}",
                    f"export async function {example.name}(): Promise<void> {{",
                    f"  const result = await client.{example.field_name}.{example.method_name}();",
                    "  console.log(result);",
                    "}",
                    "",
                ]
            )

    return "\n".join(lines)


def format_package_json(manifest: ManifestRender) -> str:
    package = {
        "name": manifest.name,
        "version": manifest.version,
        "description": manifest.description,
        "main": "dist/index.js",
        "types": "dist/index.d.ts",
        "scripts": manifest.scripts,
        "dependencies": manifest.dependencies,
        "devDependencies": manifest.dev_dependencies,
    }
    return json.dumps(package, indent=2) + "\n"


def format_tsconfig() -> str:
    tsconfig = {
        "compilerOptions": {
            "target": "ES2020",
            "module": "commonjs",
            "lib": ["ES2020"],
            "declaration": True,
            "outDir": "./dist",
            "strict": True,
            "esModuleInterop": True,
            "skipLibCheck": True,
            "forceConsistentCasingInFileNames": True,
        },
        "include": ["*.ts"],
        "exclude": ["node_modules", "dist"],
    }
    return json.dumps(tsconfig, indent=2) + "\n"


class TypeScriptGenerator(BaseLanguageGenerator):
    """Генератор TypeScript клиента"""

    language = OutputLanguage.TYPESCRIPT
    type_map = TS_TYPE_MAP
    reserved_type_names = CLIENT_IMPORTS

    def array_type(self, item_type: str) -> str:
        if " | " in item_type:
            return f"({item_type})[]"
        return f"{item_type}[]"

    def nullable_type(self, type_name: str) -> str:
        return f"{type_name} | null"

    def literal_union(self, values: list) -> str:
        return " | ".join(json.dumps(value) for value in values)

    def build_manifest(self, context: GeneratorContext) -> ManifestRender:
        client_name = context.config.client_name
        return ManifestRender(
            name=f"{client_name.lower()}-client",
            version="1.0.0",
            description=f"Auto-generated TypeScript client for {client_name}",
            dependencies={"axios": "^1.6.0"},
            dev_dependencies={"@types/node": "^20.0.0", "typescript": "^5.0.0"},
            scripts={"build": "tsc", "prepare": "npm run build"},
        )

    def render(self, context: GeneratorContext) -> Iterator[RenderedFile]:
        config = context.config

        yield RenderedFile("types.ts", format_types(self.build_types(context)))
        yield RenderedFile("index.ts", format_client(self.build_client(context)))

        if config.include_error_handling:
            yield RenderedFile("errors.ts", format_errors(self.build_error_taxonomy()))

        yield RenderedFile("params.ts", format_params(self.build_params(context)))

        if config.include_examples:
            yield RenderedFile("examples.ts", format_examples(self.build_examples(context)))

        manifest = self.build_manifest(context)
        yield RenderedFile("package.json", format_package_json(manifest))
        yield RenderedFile("tsconfig.json", format_tsconfig())
