"""
Тесты для контекста генерации и типов результата
"""

from apigen.internal.generator.context import build_context, group_by_tag
from apigen.internal.generator.python import PythonGenerator
from apigen.internal.generator.typescript import TypeScriptGenerator
from apigen.internal.parser.openapi import parse_spec
from apigen.internal.types.models import ParsedEndpoint, ParsedResponse
from apigen.internal.types.render import is_retryable
from apigen.internal.types.schema_resolver import resolve_return_label


def _endpoint(operation_id, tags=None, responses=None):
    kwargs = {"path": "/x", "method": "GET", "operation_id": operation_id}
    if tags is not None:
        kwargs["tags"] = tags
    if responses is not None:
        kwargs["responses"] = responses
    return ParsedEndpoint(**kwargs)


class TestGroupByTag:
    """Тесты группировки эндпоинтов по тегам"""

    def test_endpoint_in_every_tag(self):
        """Тест эндпоинта с несколькими тегами"""
        shared = _endpoint("shared", tags=["pets", "store"])
        groups = group_by_tag([shared, _endpoint("order", tags=["store"])])

        assert list(groups) == ["pets", "store"]
        assert groups["pets"] == [shared]
        assert [e.operation_id for e in groups["store"]] == ["shared", "order"]

    def test_default_tag(self):
        """Тест эндпоинта без тегов"""
        groups = group_by_tag([_endpoint("ping")])
        assert list(groups) == ["default"]

    def test_empty_tags(self):
        """Тест эндпоинта с явно пустым списком тегов"""
        assert group_by_tag([_endpoint("hidden", tags=[])]) == {}

    def test_build_context(self, make_config, pet_spec):
        """Тест сборки контекста"""
        spec = parse_spec(pet_spec)
        context = build_context(make_config(), spec)

        assert context.spec is spec
        assert list(context.endpoints_by_tag) == ["pets"]


class TestReturnType:
    """Тесты типа результата метода"""

    def test_array_of_schema(self, make_config):
        """Тест массива ссылок на схему"""
        endpoint = _endpoint(
            "listPets",
            responses=[
                ParsedResponse(
                    status_code="200",
                    raw_schema={
                        "type": "array",
                        "items": {"$ref": "#/components/schemas/Pet"},
                    },
                )
            ],
        )
        assert resolve_return_label(endpoint) == "Pet[]"

        generator = TypeScriptGenerator(make_config())
        generator.schema_names = {"Pet"}
        assert generator.return_type(endpoint) == "Pet[]"

        generator = PythonGenerator(make_config())
        generator.schema_names = {"Pet"}
        assert generator.return_type(endpoint, schema_prefix="models.") == "List[models.Pet]"

    def test_no_success_response(self, make_config):
        """Тест эндпоинта без 2xx ответа"""
        endpoint = _endpoint(
            "deletePet",
            responses=[
                ParsedResponse(status_code="404"),
                ParsedResponse(status_code="default"),
            ],
        )
        assert resolve_return_label(endpoint) == "any"
        assert TypeScriptGenerator(make_config()).return_type(endpoint) == "any"
        assert PythonGenerator(make_config()).return_type(endpoint) == "Any"

    def test_first_success_response(self):
        """Тест выбора первого 2xx ответа"""
        endpoint = _endpoint(
            "createPet",
            responses=[
                ParsedResponse(status_code="201", raw_schema={"type": "string"}),
                ParsedResponse(status_code="200", raw_schema={"type": "integer"}),
            ],
        )
        assert resolve_return_label(endpoint) == "string"


class TestRetryPolicy:
    """Тесты политики повторов"""

    def test_is_retryable(self):
        """Тест классификации ошибок"""
        assert is_retryable("NetworkError")
        assert is_retryable("TimeoutError")
        assert is_retryable("ApiResponseError", 500)
        assert is_retryable("ApiResponseError", 503)
        assert not is_retryable("ApiResponseError", 404)
        assert not is_retryable("ApiResponseError")
        assert not is_retryable("ApiRequestError")
        assert not is_retryable("ApiError", 503)
