"""Prepare rendered diagrams for raster capture.

Rasterizers that ignore stylesheets need every presentational property spelled
out as an attribute on the node it applies to, and a root ``<svg>`` with
explicit dimensions. All entry points are idempotent and never raise.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass

from diagramflow.svg import SVG_NS, local_name, serialize

logger = logging.getLogger(__name__)

PRESENTATION_PROPERTIES: tuple[str, ...] = (
    "fill",
    "stroke",
    "stroke-width",
    "stroke-dasharray",
    "stroke-linecap",
    "stroke-linejoin",
    "font-family",
    "font-size",
    "font-weight",
    "font-style",
    "text-anchor",
    "opacity",
    "color",
    "background-color",
)

_IGNORED_VALUES = {"", "auto", "inherit", "initial", "unset"}
_DEFAULT_SIZE = "100"
_COMPOUND_RE = re.compile(r"^(?P<tag>[A-Za-z][\w-]*|\*)?(?P<rest>(?:[.#][\w-]+)*)$")
_SVG_TAG_RE = re.compile(r"<(?P<close>/)?svg\b[^>]*?(?P<empty>/)?>")


@dataclass(frozen=True)
class _Compound:
    tag: str | None
    element_id: str | None
    classes: frozenset[str]

    def matches(self, node: ET.Element) -> bool:
        if self.tag and self.tag != "*" and local_name(node.tag) != self.tag:
            return False
        if self.element_id and node.get("id") != self.element_id:
            return False
        if self.classes:
            return self.classes <= set((node.get("class") or "").split())
        return True


@dataclass(frozen=True)
class _StyleRule:
    compounds: tuple[_Compound, ...]
    declarations: dict[str, str]
    specificity: tuple[int, int, int]
    order: int


def _parse_declarations(body: str) -> dict[str, str]:
    declarations: dict[str, str] = {}
    for decl in body.split(";"):
        if ":" not in decl:
            continue
        key, value = decl.split(":", 1)
        key = key.strip().lower()
        value = value.replace("!important", "").strip()
        if key in PRESENTATION_PROPERTIES and value.lower() not in _IGNORED_VALUES:
            declarations[key] = value
    return declarations


def _parse_compound(text: str) -> _Compound | None:
    m = _COMPOUND_RE.match(text)
    if not m or not (m.group("tag") or m.group("rest")):
        return None
    element_id = None
    classes = set()
    for token in re.findall(r"[.#][\w-]+", m.group("rest")):
        if token[0] == "#":
            element_id = token[1:]
        else:
            classes.add(token[1:])
    return _Compound(tag=m.group("tag"), element_id=element_id, classes=frozenset(classes))


def _parse_selector(selector: str) -> tuple[_Compound, ...] | None:
    # Descendant combinators only; anything fancier is skipped.
    if any(ch in selector for ch in ">+~[:"):
        return None
    compounds = []
    for part in selector.split():
        compound = _parse_compound(part)
        if compound is None:
            return None
        compounds.append(compound)
    return tuple(compounds) or None


def _specificity(compounds: tuple[_Compound, ...]) -> tuple[int, int, int]:
    ids = sum(1 for c in compounds if c.element_id)
    classes = sum(len(c.classes) for c in compounds)
    tags = sum(1 for c in compounds if c.tag and c.tag != "*")
    return (ids, classes, tags)


def collect_style_rules(svg: ET.Element) -> list[_StyleRule]:
    """Rules from embedded ``<style>`` blocks, sorted so later entries win."""
    rules: list[_StyleRule] = []
    for node in svg.iter():
        if local_name(node.tag) != "style":
            continue
        css_text = re.sub(r"/\*.*?\*/", "", "".join(node.itertext()), flags=re.DOTALL)
        for selector_text, body in re.findall(r"([^{}]+)\{([^{}]*)\}", css_text):
            declarations = _parse_declarations(body)
            if not declarations:
                continue
            for selector in selector_text.split(","):
                compounds = _parse_selector(selector.strip())
                if compounds is None:
                    continue
                rules.append(
                    _StyleRule(compounds, declarations, _specificity(compounds), len(rules))
                )
    rules.sort(key=lambda r: (r.specificity, r.order))
    return rules


def _rule_matches(rule: _StyleRule, node: ET.Element, ancestors: list[ET.Element]) -> bool:
    *outer, last = rule.compounds
    if not last.matches(node):
        return False
    idx = len(ancestors) - 1
    for compound in reversed(outer):
        while idx >= 0 and not compound.matches(ancestors[idx]):
            idx -= 1
        if idx < 0:
            return False
        idx -= 1
    return True


def _inline_styles(node: ET.Element, rules: list[_StyleRule], ancestors: list[ET.Element]) -> None:
    if local_name(node.tag) not in ("style", "script"):
        resolved: dict[str, str] = {}
        for rule in rules:
            if _rule_matches(rule, node, ancestors):
                resolved.update(rule.declarations)
        resolved.update(_parse_declarations(node.get("style") or ""))
        for prop, value in resolved.items():
            node.set(prop, value)
    ancestors.append(node)
    for child in node:
        _inline_styles(child, rules, ancestors)
    ancestors.pop()


def _number(value: str | None) -> str | None:
    if not value:
        return None
    m = re.match(r"^\s*([\d.]+)\s*(px)?\s*$", value)
    return m.group(1) if m else None


def _ensure_required_attributes(svg: ET.Element) -> None:
    if not svg.get("viewBox"):
        width = _number(svg.get("width")) or _DEFAULT_SIZE
        height = _number(svg.get("height")) or _DEFAULT_SIZE
        svg.set("viewBox", f"0 0 {width} {height}")

    parts = svg.get("viewBox", "").replace(",", " ").split()
    if not svg.get("width"):
        svg.set("width", parts[2] if len(parts) == 4 else _DEFAULT_SIZE)
    if not svg.get("height"):
        svg.set("height", parts[3] if len(parts) == 4 else _DEFAULT_SIZE)

    # A namespaced tag serializes its own xmlns declaration.
    if not svg.tag.startswith("{") and not svg.get("xmlns"):
        svg.set("xmlns", SVG_NS)

    svg.attrib.pop("transform", None)


def prepare_svg(svg: ET.Element | None) -> ET.Element | None:
    """Inline presentational styles and pin down sizing on one diagram."""
    if svg is None:
        return None
    rules = collect_style_rules(svg)
    _inline_styles(svg, rules, [])
    _ensure_required_attributes(svg)
    return svg


def _find_svg(node: ET.Element) -> ET.Element | None:
    for el in node.iter():
        if local_name(el.tag) == "svg":
            return el
    return None


def prepare_diagrams_for_canvas(container: ET.Element | None) -> None:
    """Prepare the SVG of every ``.diagram-container`` under *container*."""
    if container is None:
        logger.warning("No container provided for diagram preparation")
        return
    for node in list(container.iter()):
        if "diagram-container" not in (node.get("class") or "").split():
            continue
        svg = _find_svg(node)
        if svg is None:
            logger.warning("Diagram container %s has no SVG element", node.get("id"))
            continue
        try:
            prepare_svg(svg)
        except Exception:
            logger.exception("Error preparing diagram %s for canvas", node.get("id"))


def _outer_svg_spans(markup: str) -> list[tuple[int, int]]:
    """Spans of the outermost <svg> elements; nested ones stay inside their parent."""
    spans: list[tuple[int, int]] = []
    depth = 0
    start = 0
    for m in _SVG_TAG_RE.finditer(markup):
        if m.group("close"):
            if depth == 0:
                continue
            depth -= 1
            if depth == 0:
                spans.append((start, m.end()))
        elif m.group("empty"):
            if depth == 0:
                spans.append((m.start(), m.end()))
        else:
            if depth == 0:
                start = m.start()
            depth += 1
    return spans


def _prepare_svg_markup(original: str) -> str:
    try:
        svg = ET.fromstring(original)
    except ET.ParseError as exc:
        logger.warning("Skipping malformed SVG during canvas preparation: %s", exc)
        return original
    try:
        prepare_svg(svg)
    except Exception:
        logger.exception("Error preparing SVG markup for canvas")
        return original
    return serialize(svg)


def prepare_markup(markup: str | None) -> str:
    """Apply ``prepare_svg`` to every ``<svg>`` inside an HTML fragment."""
    if not markup:
        return markup or ""
    parts: list[str] = []
    pos = 0
    for start, end in _outer_svg_spans(markup):
        parts.append(markup[pos:start])
        parts.append(_prepare_svg_markup(markup[start:end]))
        pos = end
    parts.append(markup[pos:])
    return "".join(parts)
