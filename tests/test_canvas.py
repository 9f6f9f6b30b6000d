"""Tests for diagramflow.canvas — inlining styles and sizing for raster capture."""

from __future__ import annotations

import xml.etree.ElementTree as ET

from diagramflow.canvas import (
    collect_style_rules,
    prepare_diagrams_for_canvas,
    prepare_markup,
    prepare_svg,
)
from diagramflow.svg import SVG_NS, local_name

STYLED_SVG = f"""\
<svg xmlns="{SVG_NS}" viewBox="0 0 200 120" transform="scale(2)">
  <style>
    /* theme */
    .node rect {{ fill: #eee; stroke: #333; }}
    rect {{ stroke-width: 2px; }}
    #main .edge {{ stroke: red !important; }}
    text:hover {{ fill: blue; }}
    .label {{ font-size: 12px; font-family: Arial; cursor: pointer; }}
  </style>
  <g id="main">
    <g class="node"><rect width="10" height="10" fill="white"/></g>
    <path class="edge" d="M0 0L10 10"/>
    <text class="label" style="fill: green; text-anchor: middle">hi</text>
  </g>
  <rect id="outside" width="5" height="5"/>
</svg>
"""


def _by(svg: ET.Element, predicate) -> ET.Element:
    return next(el for el in svg.iter() if predicate(el))


class TestPrepareSvg:
    def test_class_and_descendant_rules_become_attributes(self):
        svg = prepare_svg(ET.fromstring(STYLED_SVG))
        node_rect = _by(svg, lambda el: local_name(el.tag) == "rect" and el.get("id") is None)
        assert node_rect.get("fill") == "#eee"
        assert node_rect.get("stroke") == "#333"
        assert node_rect.get("stroke-width") == "2px"

    def test_descendant_rule_does_not_leak(self):
        svg = prepare_svg(ET.fromstring(STYLED_SVG))
        outside = _by(svg, lambda el: el.get("id") == "outside")
        assert outside.get("fill") is None
        assert outside.get("stroke-width") == "2px"

    def test_id_rule_and_important(self):
        svg = prepare_svg(ET.fromstring(STYLED_SVG))
        edge = _by(svg, lambda el: el.get("class") == "edge")
        assert edge.get("stroke") == "red"

    def test_inline_style_wins_and_pseudo_selectors_skipped(self):
        svg = prepare_svg(ET.fromstring(STYLED_SVG))
        text = _by(svg, lambda el: local_name(el.tag) == "text")
        assert text.get("fill") == "green"
        assert text.get("text-anchor") == "middle"
        assert text.get("font-size") == "12px"
        assert text.get("font-family") == "Arial"
        assert text.get("cursor") is None

    def test_root_sizing_and_transform(self):
        svg = prepare_svg(ET.fromstring(STYLED_SVG))
        assert svg.get("width") == "200"
        assert svg.get("height") == "120"
        assert svg.get("transform") is None

    def test_viewbox_from_dimensions(self):
        svg = prepare_svg(ET.fromstring(f'<svg xmlns="{SVG_NS}" width="40px" height="30"/>'))
        assert svg.get("viewBox") == "0 0 40 30"

    def test_defaults_when_no_size_information(self):
        svg = prepare_svg(ET.fromstring(f'<svg xmlns="{SVG_NS}"/>'))
        assert svg.get("viewBox") == "0 0 100 100"
        assert svg.get("width") == "100"
        assert svg.get("height") == "100"

    def test_unnamespaced_svg_gets_xmlns(self):
        svg = prepare_svg(ET.fromstring('<svg width="1" height="1"/>'))
        assert svg.get("xmlns") == SVG_NS

    def test_idempotent(self):
        once = prepare_svg(ET.fromstring(STYLED_SVG))
        first = ET.tostring(once, encoding="unicode")
        second = ET.tostring(prepare_svg(once), encoding="unicode")
        assert first == second

    def test_none(self):
        assert prepare_svg(None) is None


def test_collect_style_rules_orders_by_specificity():
    rules = collect_style_rules(ET.fromstring(STYLED_SVG))
    specificities = [r.specificity for r in rules]
    assert specificities == sorted(specificities)
    assert all(":" not in str(r.compounds) for r in rules)


class TestPrepareDiagramsForCanvas:
    def test_prepares_svg_inside_containers(self):
        container = ET.Element("div")
        wrapper = ET.SubElement(container, "div", {"class": "diagram-container", "id": "d1"})
        wrapper.append(ET.fromstring(f'<svg xmlns="{SVG_NS}" viewBox="0 0 8 9"/>'))

        prepare_diagrams_for_canvas(container)

        svg = wrapper[0]
        assert (svg.get("width"), svg.get("height")) == ("8", "9")

    def test_ignores_svg_outside_containers(self):
        container = ET.Element("div")
        container.append(ET.fromstring(f'<svg xmlns="{SVG_NS}" viewBox="0 0 8 9"/>'))
        prepare_diagrams_for_canvas(container)
        assert container[0].get("width") is None

    def test_container_without_svg_and_none_input(self):
        container = ET.Element("div")
        ET.SubElement(container, "div", {"class": "diagram-container diagram-error"})
        prepare_diagrams_for_canvas(container)
        prepare_diagrams_for_canvas(None)


class TestPrepareMarkup:
    def test_rewrites_each_svg(self):
        html = (
            '<p>before</p><div class="diagram-container">'
            f'<svg xmlns="{SVG_NS}" viewBox="0 0 3 4"><style>.a{{fill:red}}</style><rect class="a"/></svg>'
            "</div><p>after</p>"
        )
        result = prepare_markup(html)
        assert result.startswith('<p>before</p><div class="diagram-container"><svg')
        assert result.endswith("</div><p>after</p>")
        assert 'width="3"' in result
        assert 'fill="red"' in result

    def test_idempotent(self):
        html = f'<div class="diagram-container"><svg xmlns="{SVG_NS}" width="5" height="6"/></div>'
        html = html.replace("/>", "></svg>", 1)
        once = prepare_markup(html)
        assert prepare_markup(once) == once

    def test_nested_svg_prepared_with_its_parent(self):
        html = (
            '<div class="diagram-container">'
            f'<svg xmlns="{SVG_NS}" viewBox="0 0 30 40"><style>.icon rect{{fill:red}}</style>'
            '<svg class="icon" viewBox="0 0 8 8"><rect width="8" height="8"/></svg>'
            '<rect id="after-icon" width="2" height="2"/>'
            "</svg></div><p>tail</p>"
        )
        result = prepare_markup(html)

        root = ET.fromstring(result.removesuffix("<p>tail</p>"))
        outer = root[0]
        inner = _by(outer, lambda el: el.get("class") == "icon")
        assert (outer.get("width"), outer.get("height")) == ("30", "40")
        assert _by(inner, lambda el: local_name(el.tag) == "rect").get("fill") == "red"
        assert _by(outer, lambda el: el.get("id") == "after-icon").get("fill") is None
        assert result.endswith("</svg></div><p>tail</p>")

    def test_malformed_markup_unchanged(self):
        html = "<div><svg><g></svg></div>"
        assert prepare_markup(html) == html

    def test_empty_input(self):
        assert prepare_markup("") == ""
        assert prepare_markup(None) == ""
