from .config import GeneratorConfig, OutputLanguage, ProjectConfig
from .generator import ApiClientGenerator, generate_client

__version__ = "1.0.0"

__all__ = [
    "ApiClientGenerator",
    "GeneratorConfig",
    "OutputLanguage",
    "ProjectConfig",
    "generate_client",
]
