"""
Тесты для движка генерации и наблюдения за файлом
"""

import json
import logging
import os
import threading

import pytest

from apigen.config import GeneratorConfig, OutputLanguage
from apigen.generator import ApiClientGenerator, generate_client
from apigen.internal.errors import GenerationIOError, UnsupportedLanguageError
from apigen.internal.generator.engine import GenerationEngine, resolve_language
from apigen.internal.generator.typescript import TypeScriptGenerator
from apigen.internal.generator.watcher import FileWatcher


class FakeWatcher:
    """Наблюдатель, который сообщает о заданном числе изменений"""

    def __init__(self, changes=1):
        self.changes = changes

    def run(self, on_change, stop_event=None):
        for _ in range(self.changes):
            on_change()


class TestLanguageDispatch:
    """Тесты выбора генератора по языку"""

    def test_resolve_language(self):
        """Тест языка фактической генерации"""
        assert resolve_language("typescript") is OutputLanguage.TYPESCRIPT
        assert resolve_language("PYTHON") is OutputLanguage.PYTHON
        assert resolve_language(OutputLanguage.GO) is OutputLanguage.TYPESCRIPT

    def test_go_falls_back_to_typescript(self, make_config, pet_spec, tmp_path, caplog):
        """Тест генерации go клиента через TypeScript"""
        with caplog.at_level(logging.WARNING):
            engine = ApiClientGenerator(make_config(OutputLanguage.GO), pet_spec).engine()
            generator = engine.get_generator()
            paths = engine.generate()

        assert isinstance(generator, TypeScriptGenerator)
        assert "Note: go not yet fully implemented, generating typescript client" in caplog.text
        assert os.path.isfile(os.path.join(str(tmp_path), "out", "go", "index.ts"))
        assert os.listdir(os.path.join(str(tmp_path), "out")) == ["go"]
        assert all(os.sep + "go" + os.sep in path for path in paths)

    def test_unsupported_language(self, tmp_path, spec_file):
        """Тест неподдерживаемого языка - ошибка до записи файлов"""
        output_dir = str(tmp_path / "out")
        with pytest.raises(UnsupportedLanguageError) as exc_info:
            GeneratorConfig(input_file=spec_file, output_dir=output_dir, language="cobol")

        assert "Invalid language: cobol" in str(exc_info.value)
        assert "typescript, python, go" in str(exc_info.value)
        assert not os.path.exists(output_dir)

    def test_generate_client_from_file(self, make_config):
        """Тест генерации по входному файлу"""
        paths = generate_client(make_config())
        assert [os.path.basename(p) for p in paths][:2] == ["types.ts", "index.ts"]

    def test_generation_logging(self, make_config, caplog):
        """Тест сообщений о ходе генерации"""
        with caplog.at_level(logging.INFO):
            generate_client(make_config())

        assert "  ✓ Created: types.ts" in caplog.messages
        assert "✓ Generation complete!" in caplog.messages


class TestGenerationErrors:
    """Тесты ошибок записи"""

    def test_unwritable_artifact(self, make_config, pet_spec, tmp_path):
        """Тест ошибки записи - уже созданные файлы остаются на месте"""
        output_dir = tmp_path / "out" / "typescript"
        blocked = output_dir / "params.ts"
        blocked.mkdir(parents=True)

        with pytest.raises(GenerationIOError) as exc_info:
            ApiClientGenerator(make_config(), pet_spec).generate()

        assert exc_info.value.path == str(blocked)
        assert (output_dir / "types.ts").is_file()
        assert (output_dir / "index.ts").is_file()
        assert (output_dir / "errors.ts").is_file()
        assert not (output_dir / "package.json").exists()

    def test_unwritable_output_dir(self, make_config, pet_spec, tmp_path):
        """Тест директории вывода, путь которой занят файлом"""
        (tmp_path / "out").write_text("")

        with pytest.raises(GenerationIOError):
            ApiClientGenerator(make_config(), pet_spec).generate()


class TestRegeneration:
    """Тесты перегенерации при изменении спецификации"""

    def test_handle_change(self, make_config, spec_file, pet_spec):
        """Тест перегенерации после изменения файла"""
        engine = ApiClientGenerator(make_config()).engine()
        engine.generate()

        pet_spec["info"]["title"] = "Renamed Store"
        with open(spec_file, "w") as f:
            json.dump(pet_spec, f)

        received = []
        assert engine.handle_change(received.append) is True

        assert len(received) == 1
        types_path = next(p for p in received[0] if p.endswith("types.ts"))
        with open(types_path) as f:
            assert f.read().startswith("// Auto-generated types for Renamed Store")
        assert engine.spec.title == "Renamed Store"

    def test_handle_change_error(self, make_config, spec_file, caplog):
        """Тест ошибки перегенерации - логируется, наблюдение продолжается"""
        engine = ApiClientGenerator(make_config()).engine()

        with open(spec_file, "w") as f:
            f.write("{not json")

        received = []
        with caplog.at_level(logging.ERROR):
            assert engine.handle_change(received.append) is False

        assert received == []
        assert "Error regenerating" in caplog.text

    def test_watch(self, make_config):
        """Тест наблюдения с подменным наблюдателем"""
        engine = ApiClientGenerator(make_config()).engine()
        received = []

        engine.watch(received.append, watcher=FakeWatcher(changes=2))

        assert len(received) == 2

    def test_watch_stops(self, make_config):
        """Тест остановки наблюдения"""
        engine = ApiClientGenerator(make_config()).engine()
        stop_event = threading.Event()
        stop_event.set()

        engine.watch(stop_event=stop_event)


class TestFileWatcher:
    """Тесты опроса файла"""

    def test_changed(self, tmp_path):
        """Тест обнаружения изменения"""
        path = tmp_path / "api.json"
        path.write_text("{}")
        watcher = FileWatcher(str(path))

        assert watcher.changed() is False

        path.write_text('{"openapi": "3.0.0"}')
        assert watcher.changed() is True
        assert watcher.changed() is False

    def test_missing_file(self, tmp_path, caplog):
        """Тест удаленного файла"""
        path = tmp_path / "api.json"
        path.write_text("{}")
        watcher = FileWatcher(str(path))

        path.unlink()
        with caplog.at_level(logging.WARNING):
            assert watcher.changed() is False
        assert "Watched file is missing" in caplog.text

        path.write_text("{}")
        assert watcher.changed() is True

    def test_run_until_stopped(self, tmp_path):
        """Тест цикла опроса до установки stop_event"""
        path = tmp_path / "api.json"
        path.write_text("{}")
        watcher = FileWatcher(str(path), interval=0.01)
        stop_event = threading.Event()
        calls = []

        def on_change():
            calls.append(1)
            stop_event.set()

        path.write_text("{ }")
        watcher.run(on_change, stop_event=stop_event)

        assert calls == [1]
