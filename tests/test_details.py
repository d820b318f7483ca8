"""Detail panel rows for items and their source entities."""

from __future__ import annotations

from polyedit_core.details import describe, describe_entity, describe_item
from polyedit_core.model import PolylineItem


class TestDescribeEntity:
    def test_common_and_line_rows(self):
        rows = describe_entity(
            {
                "type": "line",
                "layer": "Walls",
                "handle": "1F",
                "lineTypeName": "DASHED",
                "start": {"x": 0, "y": 0},
                "end": {"x": 1.5, "y": 2},
            }
        )
        assert rows == [
            ("Type", "LINE"),
            ("Layer", "Walls"),
            ("Handle", "1F"),
            ("Line type", "DASHED"),
            ("Start", "(0.000, 0.000)"),
            ("End", "(1.500, 2.000)"),
        ]

    def test_circle_and_text(self):
        circle = dict(describe_entity({"type": "CIRCLE", "center": [1, 2], "radius": 3}))
        assert circle["Center"] == "(1.000, 2.000)"
        assert circle["Radius"] == "3.000"
        text = dict(describe_entity({"type": "TEXT", "insert": [0, 0], "text": "hello", "height": "x"}))
        assert text["Text"] == "hello"
        assert text["Height"] == "--"

    def test_non_mapping(self):
        assert describe_entity(None) == []


class TestDescribeItem:
    def test_rectangle(self):
        item = PolylineItem(id="P0001", points=[(0, 0), (4, 0), (4, 2), (0, 2), (0, 0)])
        rows = dict(describe_item(item))
        assert rows["Shape"] == "rectangle"
        assert rows["Area"] == "8.000"
        assert rows["Length"] == "12.000"

    def test_open_item_with_source(self):
        item = PolylineItem(
            id="P0002",
            points=[(0, 0), (3, 4)],
            source={"entity": {"type": "LWPOLYLINE", "layer": "0", "vertices": [[0, 0], [3, 4]]}},
        )
        rows = describe(item)
        assert ("Shape", "open") in rows
        assert ("Vertices", "2") in rows
        assert rows[0] == ("Id", "P0002")
