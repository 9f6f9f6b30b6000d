"""Base class shared by the built-in diagram renderers."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod

from diagramflow.config.models import DiagramflowConfig

logger = logging.getLogger(__name__)


class RendererError(Exception):
    """Wraps backend exceptions with the renderer and operation that failed."""

    def __init__(self, renderer: str, operation: str, message: str, cause: Exception) -> None:
        self.renderer = renderer
        self.operation = operation
        super().__init__(message)
        self.__cause__ = cause


class DiagramRenderer(ABC):
    """Lazily initialized renderer producing an SVG element.

    Subclasses implement ``_render_svg`` and optionally ``_setup`` and
    ``finalize``. ``initialize`` is idempotent.
    """

    name = "Diagram"

    def __init__(self, config: DiagramflowConfig | None = None) -> None:
        self.config = config or DiagramflowConfig()
        self.initialized = False

    async def initialize(self) -> None:
        if self.initialized:
            return
        try:
            await self._setup()
        except Exception as exc:
            raise RendererError(
                self.name, "initialize", f"Failed to initialize {self.name}: {exc}", exc
            ) from exc
        self.initialized = True
        logger.debug("%s renderer initialized", self.name)

    async def render(self, code: str) -> ET.Element:
        if not self.initialized:
            await self.initialize()
        try:
            svg = await self._render_svg(code)
            return self.finalize(svg)
        except Exception as exc:
            raise RendererError(
                self.name, "render", f"{self.name} rendering failed: {exc}", exc
            ) from exc

    async def _setup(self) -> None:
        return None

    @abstractmethod
    async def _render_svg(self, code: str) -> ET.Element:
        """Turn diagram source into an SVG root element."""
        ...

    def finalize(self, svg: ET.Element) -> ET.Element:
        return svg
