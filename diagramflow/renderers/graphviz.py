"""Graphviz DOT rendering through the local ``dot`` executable."""

from __future__ import annotations

import asyncio
import logging
import shutil
import xml.etree.ElementTree as ET

from diagramflow.renderers.base import DiagramRenderer
from diagramflow.svg import parse_svg

logger = logging.getLogger(__name__)


class GraphvizRenderer(DiagramRenderer):
    """Serves both ``dot`` and ``graphviz`` blocks."""

    name = "Graphviz"

    def __init__(self, config=None) -> None:
        super().__init__(config)
        self._dot_path: str | None = None

    async def _setup(self) -> None:
        dot_path = shutil.which(self.config.graphviz.dot_path)
        if not dot_path:
            raise FileNotFoundError(f"{self.config.graphviz.dot_path} executable not found")
        self._dot_path = dot_path

    async def _render_svg(self, code: str) -> ET.Element:
        proc = await asyncio.create_subprocess_exec(
            self._dot_path,
            f"-K{self.config.graphviz.engine}",
            "-Tsvg",
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(code.encode("utf-8")),
                timeout=self.config.graphviz.timeout,
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise TimeoutError(f"dot did not finish within {self.config.graphviz.timeout}s")

        if proc.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            if len(detail) > 240:
                detail = detail[:240] + "..."
            raise ValueError(detail or f"dot exited with status {proc.returncode}")
        logger.debug("dot produced %d bytes of SVG", len(stdout))
        return parse_svg(stdout)
