import argparse
import logging
import os
import sys
from typing import List

from apigen.config import (
    CONFIG_FILE_NAME,
    GeneratorConfig,
    OutputLanguage,
    ProjectConfig,
)
from apigen.generator import ApiClientGenerator
from apigen.internal.errors import ApiGenError, ConfigError
from apigen.internal.generator.engine import GenerationEngine, resolve_language
from apigen.internal.parser.openapi import OpenApiParser

GITIGNORE = """node_modules/
dist/
build/
*.pyc
__pycache__/
.go/
*.egg-info/
.vscode/
.idea/
*.log
"""

NEXT_STEPS = {
    OutputLanguage.TYPESCRIPT: ["npm install", "npm run build"],
    OutputLanguage.PYTHON: ["pip install -r requirements.txt"],
}

SEPARATOR = "═" * 50


def _resolve_config(args, watch_mode: bool = False) -> GeneratorConfig:
    """Аргументы командной строки, дополненные apigen.toml из текущей директории"""
    project_config = ProjectConfig.from_file()
    if project_config:
        print(f"📋 Используется конфиг {CONFIG_FILE_NAME}")
        merged = project_config.merge_with_args(args)
        args = argparse.Namespace(
            **{
                **vars(args),
                "language": merged.language,
                "input": merged.input_file,
                "output": merged.output_dir,
                "name": merged.client_name,
            }
        )

    if not args.language:
        raise ConfigError(f"Язык не указан: передайте -l или задайте language в {CONFIG_FILE_NAME}")
    if not args.input:
        raise ConfigError("Входной файл не указан: передайте -i")
    if not args.output:
        raise ConfigError("Директория не указана: передайте -o")

    return GeneratorConfig.from_args(args, args.language, watch_mode=watch_mode)


def _generate(config: GeneratorConfig) -> GenerationEngine:
    """Разбор спецификации и генерация клиента, возвращает движок для watch"""
    print("\n📖 Разбор OpenAPI спецификации...")
    spec = ApiClientGenerator(config).parse()

    print(f"  ✓ Загружено: {spec.title} v{spec.version}")
    print(f"  ✓ Base URL: {spec.base_url}")
    print(f"  ✓ Эндпоинтов: {len(spec.endpoints)}")
    print(f"  ✓ Схем: {len(spec.schemas)}")

    print(f"\n🔧 Генерация {config.language.value} клиента...")
    engine = GenerationEngine(config, spec)
    engine.generate()
    return engine


def cmd_generate(args) -> None:
    config = _resolve_config(args)

    print("\n🚀 API Client Generator")
    print(SEPARATOR)

    _generate(config)

    output_path = os.path.join(config.output_dir, config.language.value)

    print("\n✅ Генерация завершена успешно!")
    print(f"\n📁 Клиент создан в: {output_path}")
    print("\n📝 Дальнейшие шаги:")
    print(f"  1. cd {output_path}")
    print("  2. Установите зависимости:")
    for step in NEXT_STEPS[resolve_language(config.language)]:
        print(f"     {step}")


def cmd_watch(args) -> None:
    config = _resolve_config(args, watch_mode=True)

    print("\n👀 Режим наблюдения - Ctrl+C для остановки")
    print(SEPARATOR)

    engine = _generate(config)

    def on_regenerate(files: List[str]) -> None:
        print(f"\n✨ Перегенерация завершена, файлов: {len(files)}")

    try:
        engine.watch(on_regenerate)
    except KeyboardInterrupt:
        print("\n👋 Наблюдение остановлено")


def cmd_init(args) -> None:
    language = OutputLanguage.parse(args.language)

    print("\n📦 Инициализация проекта API клиента")
    print(SEPARATOR)

    project_dir = os.path.join(os.getcwd(), args.name)
    if os.path.exists(project_dir):
        raise ConfigError(f"Директория уже существует: {project_dir}")

    try:
        os.makedirs(project_dir)
        ProjectConfig(
            project_name=args.name, language=language.value, version="1.0.0"
        ).save_to_file(os.path.join(project_dir, CONFIG_FILE_NAME))

        with open(os.path.join(project_dir, ".gitignore"), "w") as f:
            f.write(GITIGNORE)
    except OSError as e:
        raise ConfigError(f"Не удалось создать проект {project_dir}: {e}") from e

    print(f"\n✅ Проект создан: {args.name}")
    print("\n📝 Дальнейшие шаги:")
    print(f"  1. cd {args.name}")
    print("  2. Добавьте файл OpenAPI спецификации")
    print(f"  3. Запустите: apigen generate -i api.yaml -o ./clients -l {language.value}")


def cmd_validate(args) -> None:
    print("\n🔍 Проверка OpenAPI спецификации")
    print(SEPARATOR)

    try:
        spec = OpenApiParser.from_file(os.path.abspath(args.input)).parse()
    except ApiGenError:
        print("\n❌ Проверка не пройдена!")
        raise

    print("\n✅ Проверка пройдена!")
    print("\n📋 Сводка:")
    print(f"  Title: {spec.title}")
    print(f"  Version: {spec.version}")
    print(f"  Base URL: {spec.base_url}")
    print(f"  Endpoints: {len(spec.endpoints)}")
    print(f"  Schemas: {len(spec.schemas)}")
    print(f"  Security Schemes: {len(spec.security_schemes)}")

    print("\n📡 Эндпоинты:")
    for endpoint in spec.endpoints:
        print(f"  {endpoint.method:<7} {endpoint.path} → {endpoint.operation_id}")


def _add_generation_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-i", "--input", type=str, help="Файл OpenAPI/Swagger спецификации (JSON или YAML)")
    parser.add_argument("-o", "--output", type=str, help="Директория для сгенерированного клиента")
    parser.add_argument(
        "-l",
        "--language",
        type=str,
        help=f"Язык клиента ({', '.join(lang.value for lang in OutputLanguage)})",
    )
    parser.add_argument("-n", "--name", type=str, help="Имя класса клиента [APIClient]")
    parser.add_argument("-e", "--examples", action="store_true", help="Добавить примеры использования")
    parser.add_argument("--no-errors", action="store_true", help="Без классов ошибок и их обработки")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apigen",
        description="Генерация типизированных клиентов из OpenAPI спецификаций",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser("generate", help="Сгенерировать клиент")
    _add_generation_arguments(generate_parser)
    generate_parser.set_defaults(func=cmd_generate)

    watch_parser = subparsers.add_parser("watch", help="Перегенерировать клиент при изменении спецификации")
    _add_generation_arguments(watch_parser)
    watch_parser.set_defaults(func=cmd_watch)

    init_parser = subparsers.add_parser("init", help="Создать проект с apigen.toml")
    init_parser.add_argument("-n", "--name", type=str, required=True, help="Имя проекта")
    init_parser.add_argument(
        "-l", "--language", type=str, default=OutputLanguage.TYPESCRIPT.value, help="Язык по умолчанию"
    )
    init_parser.set_defaults(func=cmd_init)

    validate_parser = subparsers.add_parser("validate", help="Проверить спецификацию")
    validate_parser.add_argument("-i", "--input", type=str, required=True, help="Файл спецификации")
    validate_parser.set_defaults(func=cmd_validate)

    return parser


def main(argv: List[str] = None) -> None:
    """Точка входа командной строки"""
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    args = build_parser().parse_args(argv)

    try:
        args.func(args)
    except ApiGenError as e:
        print(f"❌ Ошибка: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
