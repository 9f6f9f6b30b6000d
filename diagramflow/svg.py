"""SVG parsing and serialization helpers."""

from __future__ import annotations

import xml.etree.ElementTree as ET

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", XLINK_NS)


def local_name(tag: str) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def parse_svg(text: str | bytes) -> ET.Element:
    """Parse SVG text into an element, requiring an ``<svg>`` root."""
    root = ET.fromstring(text)
    if local_name(root.tag) != "svg":
        raise ValueError(f"expected <svg> root, got <{local_name(root.tag)}>")
    return root


def serialize(drawable: object) -> str:
    """Markup for a drawable; strings pass through untouched."""
    if isinstance(drawable, str):
        return drawable
    if isinstance(drawable, bytes):
        return drawable.decode("utf-8")
    if isinstance(drawable, ET.Element):
        return ET.tostring(drawable, encoding="unicode")
    return str(drawable)
