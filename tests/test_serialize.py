"""Canonical JSON, DXF text and printable SVG output."""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET

import pytest

from polyedit_core.model import IdAllocator, LineOverride, PolylineItem
from polyedit_core.normalize import normalize_document
from polyedit_core.serialize import dxf_ring, to_canonical_json, to_dxf_text, to_printable_markup
from polyedit_core.styles import PALETTE, StyleRegistry
from polyedit_core.viewport import Bounds

SVG_NS = "{http://www.w3.org/2000/svg}"


def _items():
    return [
        PolylineItem(id="P0001", points=[(0.0, 0.0), (10.0, 0.0), (10.0, 10.0)], layer="A", entity_index=2),
        PolylineItem(
            id="P0002",
            points=[(0.0, 0.0), (5.0, 0.0), (5.0, 5.0), (0.0, 0.0)],
            layer="B",
            visible=False,
            line_override=LineOverride(type="dash", width=2.0),
            source={"entity": {"type": "SOLID"}},
        ),
    ]


class TestCanonicalJson:
    def test_round_trip_preserves_items(self):
        styles = StyleRegistry()
        items = _items()
        text = to_canonical_json(items, styles, {"A"})
        data = json.loads(text)
        assert "source" not in data["polylines"][1]
        assert data["layers"]["B"]["visible"] is False
        again = normalize_document(data, IdAllocator())
        assert again == items

    def test_layers_include_all_style_sections(self):
        styles = StyleRegistry()
        data = json.loads(to_canonical_json(_items(), styles, {"A", "B"}))
        assert set(data["layers"]["A"]) == {"line", "point", "text", "dim", "visible"}

    def test_export_does_not_register_styles(self):
        styles = StyleRegistry()
        styles.ensure_style("A")
        data = json.loads(to_canonical_json(_items(), styles, {"A", "B"}))
        assert styles.names() == ("A",)
        assert data["layers"]["A"]["line"]["color"] == PALETTE[0]
        assert data["layers"]["B"]["line"]["color"] == PALETTE[1]
        to_printable_markup(_items(), Bounds(0.0, 0.0, 10.0, 10.0), styles)
        assert styles.names() == ("A",)


class TestDxf:
    def test_closed_ring_drops_duplicate(self):
        vertices, closed = dxf_ring([(0, 0), (1, 0), (1, 1), (0, 0)])
        assert closed
        assert len(vertices) == 3

    def test_two_point_line_is_never_closed(self):
        vertices, closed = dxf_ring([(0, 0), (0, 0)])
        assert not closed
        assert len(vertices) == 2

    def test_lwpolyline_tags(self):
        text = to_dxf_text(_items())
        lines = text.splitlines()
        assert lines[:8] == ["0", "SECTION", "2", "HEADER", "9", "$ACADVER", "1", "AC1015"]
        assert lines[-2:] == ["0", "EOF"]
        assert lines.count("LWPOLYLINE") == 2
        first = lines.index("LWPOLYLINE")
        assert lines[first + 1 : first + 7] == ["8", "A", "90", "3", "70", "0"]
        second = lines.index("LWPOLYLINE", first + 1)
        assert lines[second + 1 : second + 7] == ["8", "B", "90", "3", "70", "1"]
        assert lines[first + 7 : first + 11] == ["10", "0", "20", "0"]

    def test_closed_ring_export_is_stable(self):
        closed = [PolylineItem(id="P0001", points=[(0.0, 0.0), (5.0, 0.0), (5.0, 5.0), (0.0, 0.0)])]
        first = to_dxf_text(closed)
        reopened = [PolylineItem(id="P0001", points=[(0.0, 0.0), (5.0, 0.0), (5.0, 5.0), (0.0, 0.0)])]
        assert to_dxf_text(reopened) == first

    def test_number_formatting(self):
        text = to_dxf_text([PolylineItem(id="P0001", points=[(0.1234567, -0.0), (2.5, 1e-9)])])
        assert "0.123457" in text.splitlines()
        assert "-0" not in text.splitlines()


class TestPrintableMarkup:
    def test_page_and_view_box(self):
        markup = to_printable_markup(_items()[:1], Bounds(0.0, 0.0, 20.0, 10.0), StyleRegistry())
        root = ET.fromstring(markup)
        assert root.get("width") == "297mm"
        assert root.get("height") == "210mm"
        inner = root.find(f"{SVG_NS}svg")
        assert inner.get("viewBox") == "0 -10 20 10"
        assert inner.get("x") == "10"
        poly = inner.find(f"{SVG_NS}polyline")
        assert poly.get("points") == "0,0 10,0 10,-10"
        assert poly.get("data-id") == "P0001"

    def test_dash_pattern_scales_with_width(self):
        item = _items()[1]
        markup = to_printable_markup([item], Bounds(0.0, 0.0, 10.0, 10.0), StyleRegistry())
        poly = ET.fromstring(markup).find(f"{SVG_NS}svg/{SVG_NS}polyline")
        assert poly.get("stroke-dasharray") == "12 8"
        assert poly.get("stroke-width") == "2"

    @pytest.mark.parametrize("layer", ['a"b', "<x>", "&"])
    def test_attribute_values_are_escaped(self, layer):
        item = PolylineItem(id="P0001", points=[(0.0, 0.0), (1.0, 1.0)], layer=layer)
        markup = to_printable_markup([item], Bounds(0.0, 0.0, 10.0, 10.0), StyleRegistry())
        poly = ET.fromstring(markup).find(f"{SVG_NS}svg/{SVG_NS}polyline")
        assert poly.get("data-layer") == layer
