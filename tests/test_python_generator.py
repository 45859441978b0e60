"""
Тесты для генератора Python клиента
"""

import ast
import importlib.util
import os
import sys

import pytest
import toml

from apigen.config import OutputLanguage
from apigen.generator import ApiClientGenerator
from apigen.internal.generator.python import py_doc, py_string


def _generate(config, spec):
    paths = ApiClientGenerator(config, spec).generate()
    return {os.path.basename(path): path for path in paths}


def _read(path):
    with open(path, encoding="utf-8") as f:
        return f.read()


@pytest.fixture
def load_module():
    """Загрузка сгенерированного модуля без пакета"""
    loaded = []

    def loader(name, path):
        spec = importlib.util.spec_from_file_location(name, path)
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        loaded.append(name)
        spec.loader.exec_module(module)
        return module

    yield loader

    for name in loaded:
        sys.modules.pop(name, None)


class TestPythonGenerator:
    """Тесты генерации Python клиента"""

    def test_generated_files(self, make_config, pet_spec, tmp_path):
        """Тест набора файлов и директории вывода"""
        files = _generate(make_config(OutputLanguage.PYTHON), pet_spec)

        assert list(files) == [
            "models.py",
            "client.py",
            "__init__.py",
            "errors.py",
            "params.py",
            "requirements.txt",
            "pyproject.toml",
        ]
        for path in files.values():
            assert os.path.dirname(path) == os.path.join(str(tmp_path), "out", "python")

    def test_generated_code_is_valid(self, make_config, pet_spec):
        """Тест синтаксиса всех сгенерированных модулей"""
        files = _generate(
            make_config(OutputLanguage.PYTHON, include_examples=True), pet_spec
        )

        for name, path in files.items():
            if name.endswith(".py"):
                ast.parse(_read(path), filename=name)

    def test_client_module(self, make_config, pet_spec):
        """Тест клиента: подклиент тега и корневой класс"""
        client = _read(_generate(make_config(OutputLanguage.PYTHON), pet_spec)["client.py"])

        assert client.count("class PetsClient:") == 1
        assert "    async def get_pet(\n        self,\n        id: Optional[int] = None,\n    ) -> models.Pet:" in client
        assert "f\"/pets/{quote(str(id), safe='')}\"" in client
        assert "return TypeAdapter(models.Pet).validate_python(data)" in client
        assert "class APIClient(BaseClient):" in client
        assert "self.pets = PetsClient(self)" in client
        assert 'DEFAULT_BASE_URL = "https://petstore.example.com/v1"' in client
        assert "raise ApiResponseError(" in client

    def test_without_error_handling(self, make_config, pet_spec):
        """Тест генерации без классов ошибок"""
        files = _generate(
            make_config(OutputLanguage.PYTHON, include_error_handling=False), pet_spec
        )

        assert "errors.py" not in files
        client = _read(files["client.py"])
        assert "from .errors" not in client
        assert "response.raise_for_status()" in client
        assert "from .errors" not in _read(files["__init__.py"])

    def test_models_module(self, make_config, pet_spec, load_module):
        """Тест pydantic моделей: обязательность и алиасы"""
        properties = pet_spec["components"]["schemas"]["Pet"]["properties"]
        properties["x-rate"] = {"type": "number"}
        properties["model_type"] = {"type": "string"}
        pet_spec["components"]["schemas"]["Status"] = {
            "type": "string",
            "enum": ["available", "sold"],
        }

        path = _generate(make_config(OutputLanguage.PYTHON), pet_spec)["models.py"]
        content = _read(path)
        assert 'x_rate: Optional[float] = Field(default=None, alias="x-rate")' in content
        assert "Status = Literal['available', 'sold']" in content

        models = load_module("generated_models", path)
        pet = models.Pet.model_validate({"name": "Rex", "x-rate": 1.5, "model_type": "dog"})
        assert pet.id is None
        assert pet.x_rate == 1.5
        assert pet.model_type_ == "dog"
        assert pet.model_dump(by_alias=True)["x-rate"] == 1.5

        with pytest.raises(Exception):
            models.Pet.model_validate({"id": 1})

    def test_schema_aliases(self, make_config, pet_spec, load_module):
        """Тест псевдонимов схем: объявляются после классов"""
        schemas = pet_spec["components"]["schemas"]
        pet_spec["components"]["schemas"] = {
            "PetList": {"type": "array", "items": {"$ref": "#/components/schemas/Pet"}},
            "Litter": {"$ref": "#/components/schemas/PetList"},
            **schemas,
        }
        schemas["Pet"]["properties"]["children"] = {"$ref": "#/components/schemas/PetList"}

        path = _generate(make_config(OutputLanguage.PYTHON), pet_spec)["models.py"]
        content = _read(path)
        assert "PetList = List[Pet]" in content
        assert "Litter = PetList" in content
        assert "children: Optional[PetList] = None" in content
        assert content.index("class Pet(BaseModel):") < content.index("PetList = List[Pet]")
        assert content.index("PetList = List[Pet]") < content.index("Litter = PetList")

        models = load_module("generated_alias_models", path)
        pet = models.Pet.model_validate({"name": "Rex", "children": [{"name": "Tom"}]})
        assert isinstance(pet.children[0], models.Pet)
        assert models.Litter is models.PetList

    def test_reserved_schema_names(self, make_config, pet_spec, load_module):
        """Тест схем, имена которых совпадают с импортами models.py"""
        schemas = pet_spec["components"]["schemas"]
        schemas["Field"] = {"type": "object", "properties": {"label": {"type": "string"}}}
        schemas["List"] = {"type": "array", "items": {"type": "string"}}
        schemas["Pet"]["properties"]["field"] = {"$ref": "#/components/schemas/Field"}
        schemas["Pet"]["properties"]["x-tags"] = {"$ref": "#/components/schemas/List"}

        files = _generate(make_config(OutputLanguage.PYTHON), pet_spec)
        content = _read(files["models.py"])
        assert "class FieldModel(BaseModel):" in content
        assert "ListModel = List[str]" in content
        assert "field: Optional[FieldModel] = None" in content
        assert "class Field(" not in content

        models = load_module("generated_reserved_models", files["models.py"])
        pet = models.Pet.model_validate(
            {"name": "Rex", "field": {"label": "x"}, "x-tags": ["a"]}
        )
        assert isinstance(pet.field, models.FieldModel)
        assert pet.x_tags == ["a"]
        assert models.Field is not models.FieldModel

    def test_errors_module(self, make_config, pet_spec, load_module):
        """Тест таксономии ошибок и политики повторов"""
        path = _generate(make_config(OutputLanguage.PYTHON), pet_spec)["errors.py"]
        errors = load_module("generated_errors", path)

        server_error = errors.ApiResponseError("failed", 503, {"detail": "down"})
        assert isinstance(server_error, errors.ApiError)
        assert server_error.status_code == 503
        assert server_error.response == {"detail": "down"}
        assert errors.is_retryable_error(server_error)
        assert not errors.is_retryable_error(errors.ApiResponseError("failed", 404, None))
        assert errors.is_retryable_error(errors.NetworkError("offline"))
        assert errors.is_retryable_error(errors.TimeoutError())
        assert str(errors.TimeoutError()) == "Request timed out"
        assert not errors.is_retryable_error(errors.ApiRequestError("bad", None))
        assert not errors.is_retryable_error(ValueError("x"))
        assert errors.is_api_error(errors.NetworkError("offline"))

    def test_params_module(self, make_config, pet_spec):
        """Тест наборов параметров"""
        params = _read(_generate(make_config(OutputLanguage.PYTHON), pet_spec)["params.py"])

        assert "PetsParams = TypedDict(" in params
        assert '"id": Required[int],' in params
        assert "total=False," in params

    def test_parameter_names(self, make_config, pet_spec):
        """Тест имен параметров: регистр, ключевые слова и локальные имена"""
        pet_spec["paths"]["/search"] = {
            "get": {
                "operationId": "searchPets",
                "tags": ["pets"],
                "parameters": [
                    {"name": "X-Request-Id", "in": "header"},
                    {"name": "class", "in": "query"},
                    {"name": "data", "in": "query"},
                ],
                "responses": {},
            }
        }
        client = _read(_generate(make_config(OutputLanguage.PYTHON), pet_spec)["client.py"])

        assert "x_request_id: Any = None," in client
        assert "class_: Any = None," in client
        assert "data_: Any = None," in client
        assert 'params={"class": class_, "data": data_},' in client
        assert 'headers={"X-Request-Id": x_request_id},' in client
        assert "        return data\n" in client

    def test_auth(self, make_config, pet_spec):
        """Тест авторизации в конструкторе клиента"""
        pet_spec["components"]["securitySchemes"] = {
            "ApiKey": {"type": "apiKey", "name": "X-Token", "in": "header"},
            "Bearer": {"type": "http", "scheme": "bearer"},
        }
        client = _read(_generate(make_config(OutputLanguage.PYTHON), pet_spec)["client.py"])

        assert "api_key: Optional[str] = None," in client
        assert 'self._base_headers["X-Token"] = api_key' in client
        assert 'self._base_headers["Authorization"] = f"Bearer {bearer_token}"' in client

    def test_examples(self, make_config, pet_spec):
        """Тест файла примеров"""
        files = _generate(make_config(OutputLanguage.PYTHON, include_examples=True), pet_spec)

        examples = _read(files["examples.py"])
        assert "async def pets_get_pet_example(client: APIClient) -> None:" in examples
        assert "await client.pets.get_pet()" in examples
        assert "asyncio.run(main())" in examples

    def test_manifests(self, make_config, pet_spec):
        """Тест requirements.txt и pyproject.toml"""
        files = _generate(make_config(OutputLanguage.PYTHON, client_name="PetStore"), pet_spec)

        assert _read(files["requirements.txt"]) == "aiohttp>=3.8.0\npydantic>=2.0.0\n"

        pyproject = toml.loads(_read(files["pyproject.toml"]))
        assert pyproject["project"]["name"] == "petstore-client"
        assert pyproject["project"]["dependencies"] == ["aiohttp>=3.8.0", "pydantic>=2.0.0"]
        assert pyproject["tool"]["setuptools"]["package-dir"] == {"petstore": "."}

        assert "__all__ = ['PetStore'," in _read(files["__init__.py"])


class TestPythonFormatting:
    """Тесты вспомогательных функций форматирования"""

    def test_py_string(self):
        """Тест строковых литералов"""
        assert py_string('say "hi"') == '"say \\"hi\\""'

    def test_py_doc(self):
        """Тест текста docstring"""
        assert py_doc('ends with "quote"') == 'ends with "quote" '
        assert py_doc('a """ b') == 'a \\"\\"\\" b'
