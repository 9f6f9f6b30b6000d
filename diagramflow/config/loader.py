"""Locate and read ``diagramflow.yaml``.

Lookup order: explicit path, ``$DIAGRAMFLOW_CONFIG``, ``./diagramflow.yaml``,
``./.diagramflow.yaml``, ``~/.diagramflow/config.yaml``. The first non-empty
file wins; with none found the defaults apply.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import DiagramflowConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DIAGRAMFLOW_CONFIG"

# ${NAME} or ${NAME:-fallback}
_ENV_REF_RE = re.compile(r"\$\{(?P<name>\w+)(?::-(?P<default>[^}]*))?\}")


def config_search_paths(path: str | os.PathLike | None = None) -> list[Path]:
    candidates: list[Path] = []
    if path:
        candidates.append(Path(path))
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path))
    candidates += [
        Path("diagramflow.yaml"),
        Path(".diagramflow.yaml"),
        Path.home() / ".diagramflow" / "config.yaml",
    ]
    return candidates


def load_config(path: str | os.PathLike | None = None) -> DiagramflowConfig:
    """Read the first config file found, falling back to defaults.

    An explicit *path* that does not exist raises ``FileNotFoundError``;
    unreadable YAML, unset environment references and invalid values raise
    ``ValueError`` naming the file.
    """
    if path and not Path(path).is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    for candidate in config_search_paths(path):
        if not candidate.is_file():
            continue
        raw = _read_yaml(candidate)
        if raw is None:
            logger.debug("Config file %s is empty, skipping", candidate)
            continue
        config = _build_config(candidate, raw)
        logger.debug("Loaded diagramflow config from %s", candidate)
        return config

    logger.debug("No diagramflow config file found, using defaults")
    return DiagramflowConfig()


def _read_yaml(path: Path) -> dict | None:
    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is not None and not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: top level must be a mapping")
    return raw


def _build_config(path: Path, raw: dict) -> DiagramflowConfig:
    try:
        return DiagramflowConfig(**_expand_env_vars(raw))
    except ValidationError as e:
        raise ValueError(f"Invalid config in {path}: {e}") from e
    except LookupError as e:
        raise ValueError(f"Invalid config in {path}: {e.args[0]}") from e


def _expand_env_vars(obj: object) -> object:
    """Substitute ``${VAR}`` / ``${VAR:-default}`` in every string value.

    Raises ``LookupError`` for an unset variable without a default.
    """
    if isinstance(obj, str):
        return _ENV_REF_RE.sub(_env_value, obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def _env_value(m: re.Match) -> str:
    value = os.environ.get(m.group("name"))
    if value is not None:
        return value
    if m.group("default") is not None:
        return m.group("default")
    raise LookupError(f"environment variable {m.group('name')} is not set")


DEFAULT_CONFIG_TEMPLATE = """\
# diagramflow.yaml

# Diagram rendering
render:
  timeout_ms: 30000            # per-diagram deadline
  concurrent: true             # render all diagrams of a document at once
  include_source: true         # show diagram source inside error details

# Kroki server used for mermaid, nomnoml and pikchr
kroki:
  url: "https://kroki.io"      # or a self-hosted instance, e.g. ${KROKI_URL:-http://localhost:8000}
  timeout: 30.0

# Local Graphviz for dot/graphviz blocks
graphviz:
  dot_path: "dot"
  engine: "dot"                # dot | neato | fdp | sfdp | circo | twopi
  timeout: 30.0

mermaid:
  theme: "default"             # default | neutral | dark | forest | base

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
