"""Pikchr (PIC-like) technical diagrams."""

from __future__ import annotations

import xml.etree.ElementTree as ET

from diagramflow.renderers.kroki import KrokiRenderer


class PikchrRenderer(KrokiRenderer):
    name = "Pikchr"
    provider = "pikchr"

    def finalize(self, svg: ET.Element) -> ET.Element:
        # Pikchr emits only a viewBox; give the root explicit dimensions.
        parts = (svg.get("viewBox") or "").replace(",", " ").split()
        if len(parts) == 4:
            if not svg.get("width"):
                svg.set("width", parts[2])
            if not svg.get("height"):
                svg.set("height", parts[3])
        return svg
