"""
Тесты для командной строки
"""

import json
import os

import pytest
import toml

from apigen.cli import build_parser, main
from apigen.config import ProjectConfig


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    """Каждый тест работает в пустой временной директории"""
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestGenerateCommand:
    """Тесты команды generate"""

    def test_generate_typescript(self, spec_file, workdir, capsys):
        """Тест генерации TypeScript клиента"""
        main(["generate", "-i", spec_file, "-o", "clients", "-l", "typescript", "-e"])

        output_dir = workdir / "clients" / "typescript"
        assert (output_dir / "index.ts").is_file()
        assert (output_dir / "examples.ts").is_file()

        out = capsys.readouterr().out
        assert "✓ Загружено: Pet Store v1.0.0" in out
        assert "npm install" in out

    def test_generate_python_without_errors(self, spec_file, workdir):
        """Тест генерации Python клиента без классов ошибок"""
        main(["generate", "-i", spec_file, "-o", "clients", "-l", "python", "--no-errors", "-n", "Pets"])

        output_dir = workdir / "clients" / "python"
        assert (output_dir / "client.py").is_file()
        assert not (output_dir / "errors.py").exists()
        assert "class Pets(BaseClient):" in (output_dir / "client.py").read_text()

    def test_unsupported_language(self, spec_file, workdir, capsys):
        """Тест неподдерживаемого языка"""
        with pytest.raises(SystemExit) as exc_info:
            main(["generate", "-i", spec_file, "-o", "clients", "-l", "cobol"])

        assert exc_info.value.code == 1
        assert "Invalid language: cobol" in capsys.readouterr().out
        assert not (workdir / "clients").exists()

    def test_missing_input(self, workdir, capsys):
        """Тест отсутствующего входного файла"""
        with pytest.raises(SystemExit) as exc_info:
            main(["generate", "-i", "missing.json", "-o", "clients", "-l", "typescript"])

        assert exc_info.value.code == 1
        assert "Input file not found" in capsys.readouterr().out

    def test_missing_language(self, spec_file):
        """Тест запуска без языка и без конфига"""
        with pytest.raises(SystemExit) as exc_info:
            main(["generate", "-i", spec_file, "-o", "clients"])
        assert exc_info.value.code == 1

    def test_language_from_project_config(self, spec_file, workdir):
        """Тест языка и путей из apigen.toml"""
        ProjectConfig(language="python", output_dir="generated").save_to_file("apigen.toml")

        main(["generate", "-i", spec_file])

        assert (workdir / "generated" / "python" / "models.py").is_file()

    def test_go_fallback(self, spec_file, workdir):
        """Тест go - TypeScript клиент в директории go"""
        main(["generate", "-i", spec_file, "-o", "clients", "-l", "go"])

        assert (workdir / "clients" / "go" / "index.ts").is_file()
        assert not (workdir / "clients" / "typescript").exists()


class TestInitCommand:
    """Тесты команды init"""

    def test_init(self, workdir):
        """Тест создания проекта"""
        main(["init", "-n", "pets", "-l", "python"])

        project_dir = workdir / "pets"
        config = toml.load(str(project_dir / "apigen.toml"))
        assert config == {"project_name": "pets", "language": "python", "version": "1.0.0"}
        assert "node_modules/" in (project_dir / ".gitignore").read_text()

    def test_init_existing_directory(self, workdir):
        """Тест повторной инициализации"""
        main(["init", "-n", "pets"])

        with pytest.raises(SystemExit) as exc_info:
            main(["init", "-n", "pets"])
        assert exc_info.value.code == 1

    def test_init_unsupported_language(self, workdir):
        """Тест инициализации с неподдерживаемым языком"""
        with pytest.raises(SystemExit):
            main(["init", "-n", "pets", "-l", "cobol"])
        assert not (workdir / "pets").exists()


class TestValidateCommand:
    """Тесты команды validate"""

    def test_validate(self, spec_file, capsys):
        """Тест сводки по спецификации"""
        main(["validate", "-i", spec_file])

        out = capsys.readouterr().out
        assert "✅ Проверка пройдена!" in out
        assert "Title: Pet Store" in out
        assert "Base URL: https://petstore.example.com/v1" in out
        assert "Endpoints: 1" in out
        assert "Schemas: 1" in out
        assert "GET     /pets/{id} → getPet" in out

    def test_validate_invalid(self, workdir, capsys):
        """Тест спецификации без маркера версии"""
        path = workdir / "broken.json"
        path.write_text(json.dumps({"info": {"title": "X"}}))

        with pytest.raises(SystemExit) as exc_info:
            main(["validate", "-i", str(path)])

        assert exc_info.value.code == 1
        assert "❌ Проверка не пройдена!" in capsys.readouterr().out


class TestParser:
    """Тесты разбора аргументов"""

    def test_command_required(self):
        """Тест запуска без команды"""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_generate_flags(self):
        """Тест флагов команды generate"""
        args = build_parser().parse_args(["generate", "-i", "a.json", "-o", "out", "--no-errors"])

        assert args.input == "a.json"
        assert args.no_errors is True
        assert args.examples is False
        assert args.language is None
