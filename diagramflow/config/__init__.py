from .loader import CONFIG_ENV_VAR, config_search_paths, load_config
from .models import (
    DiagramflowConfig,
    GraphvizConfig,
    KrokiConfig,
    MermaidConfig,
    RenderSettings,
    validate_kroki_url,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "DiagramflowConfig",
    "GraphvizConfig",
    "KrokiConfig",
    "MermaidConfig",
    "RenderSettings",
    "config_search_paths",
    "load_config",
    "validate_kroki_url",
]
