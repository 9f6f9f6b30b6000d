"""diagramflow: render diagram blocks embedded in markdown documents."""

from diagramflow.classifier import classify, with_error_handling
from diagramflow.config import DiagramflowConfig, load_config
from diagramflow.errors import (
    DiagramRenderError,
    ErrorKind,
    ErrorRecord,
    RendererNotFoundError,
)
from diagramflow.extractor import extract_diagram_blocks
from diagramflow.logging_setup import configure_logging, setup_logging
from diagramflow.models import DIAGRAM_LANGUAGES, DiagramBlock
from diagramflow.registry import RendererRegistry
from diagramflow.replacer import DiagramReplacer, render_document
from diagramflow.timeout import with_timeout

__all__ = [
    "DIAGRAM_LANGUAGES",
    "DiagramBlock",
    "DiagramRenderError",
    "DiagramReplacer",
    "DiagramflowConfig",
    "ErrorKind",
    "ErrorRecord",
    "RendererNotFoundError",
    "RendererRegistry",
    "classify",
    "configure_logging",
    "extract_diagram_blocks",
    "load_config",
    "render_document",
    "setup_logging",
    "with_error_handling",
    "with_timeout",
]
