"""Renderers backed by a Kroki server (https://kroki.io)."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

import httpx

from diagramflow.config.models import validate_kroki_url
from diagramflow.renderers.base import DiagramRenderer
from diagramflow.svg import parse_svg

logger = logging.getLogger(__name__)


class KrokiRenderer(DiagramRenderer):
    """POSTs diagram source to ``{kroki_url}/{provider}/svg``."""

    provider = ""

    def __init__(self, config=None) -> None:
        super().__init__(config)
        self._base_url = ""

    async def _setup(self) -> None:
        # Settings built with model_construct or mutated later skip field validation.
        self._base_url = validate_kroki_url(self.config.kroki.url)

    def diagram_options(self) -> dict[str, str]:
        return {}

    async def _render_svg(self, code: str) -> ET.Element:
        url = f"{self._base_url}/{self.provider}/svg"
        headers = {
            "Content-Type": "text/plain",
            "User-Agent": self.config.kroki.user_agent,
        }
        for key, value in self.diagram_options().items():
            headers[f"Kroki-Diagram-Options-{key}"] = value

        try:
            async with httpx.AsyncClient(follow_redirects=True) as client:
                resp = await client.post(
                    url,
                    content=code.encode("utf-8"),
                    headers=headers,
                    timeout=self.config.kroki.timeout,
                )
        except httpx.HTTPError as exc:
            raise ConnectionError(f"network error contacting {url}: {exc}") from exc

        logger.debug("Kroki %s responded %s (%d bytes)", self.provider, resp.status_code, len(resp.content))
        if resp.status_code != 200:
            detail = resp.text[:500].strip() if resp.text else ""
            raise ValueError(detail or f"HTTP {resp.status_code}")
        return parse_svg(resp.content)
