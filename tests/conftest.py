import json
import os

import pytest

from apigen.config import GeneratorConfig, OutputLanguage


@pytest.fixture
def pet_spec():
    """Минимальная спецификация с одним тегом и одной схемой"""
    return {
        "openapi": "3.0.0",
        "info": {"title": "Pet Store", "version": "1.0.0"},
        "servers": [{"url": "https://petstore.example.com/v1"}],
        "paths": {
            "/pets/{id}": {
                "get": {
                    "operationId": "getPet",
                    "summary": "Get a pet",
                    "tags": ["pets"],
                    "parameters": [
                        {
                            "name": "id",
                            "in": "path",
                            "required": True,
                            "schema": {"type": "integer"},
                        }
                    ],
                    "responses": {
                        "200": {
                            "description": "A pet",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/Pet"}
                                }
                            },
                        }
                    },
                }
            }
        },
        "components": {
            "schemas": {
                "Pet": {
                    "type": "object",
                    "required": ["name"],
                    "properties": {
                        "id": {"type": "integer"},
                        "name": {"type": "string"},
                    },
                }
            }
        },
    }


@pytest.fixture
def spec_file(tmp_path, pet_spec):
    """Спецификация, записанная в JSON файл"""
    path = tmp_path / "openapi.json"
    path.write_text(json.dumps(pet_spec))
    return str(path)


@pytest.fixture
def make_config(tmp_path, spec_file):
    """Фабрика конфигураций с выводом во временную директорию"""

    def factory(language=OutputLanguage.TYPESCRIPT, **kwargs):
        return GeneratorConfig(
            input_file=spec_file,
            output_dir=os.path.join(str(tmp_path), "out"),
            language=language,
            **kwargs,
        )

    return factory
