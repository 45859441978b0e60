from typing import Dict, List

from ...config import GeneratorConfig
from ..types.models import GeneratorContext, ParsedAPISpec, ParsedEndpoint


def group_by_tag(endpoints: List[ParsedEndpoint]) -> Dict[str, List[ParsedEndpoint]]:
    """Эндпоинты по тегам в порядке первого появления тега"""
    endpoints_by_tag: Dict[str, List[ParsedEndpoint]] = {}

    for endpoint in endpoints:
        for tag in endpoint.tags:
            endpoints_by_tag.setdefault(tag, []).append(endpoint)

    return endpoints_by_tag


def build_context(config: GeneratorConfig, spec: ParsedAPISpec) -> GeneratorContext:
    """Сборка контекста генерации"""
    return GeneratorContext(
        config=config, spec=spec, endpoints_by_tag=group_by_tag(spec.endpoints)
    )
