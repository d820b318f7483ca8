"""Command line interpreter: transforms, delete, clipboard/file status, JSON panel."""

from __future__ import annotations

import json

import pytest

from polyedit_core.commands import CommandInterpreter
from polyedit_core.config import EditorConfig
from polyedit_core.session import EditSession, IOStatus


@pytest.fixture
def session():
    s = EditSession(EditorConfig(surface_width=100, surface_height=100))
    s.apply_document([[[0, 0], [10, 0]], [[0, 0], [10, 0], [10, 10], [0, 10]]])
    return s


@pytest.fixture
def interpreter(session):
    return CommandInterpreter(session)


class TestTransforms:
    def test_move(self, interpreter, session):
        session.select_item("P0001")
        result = interpreter.execute("move 5 -2")
        assert result
        assert session.items[0].points == [(5.0, -2.0), (15.0, -2.0)]

    def test_scale_about_bbox_center(self, interpreter, session):
        session.select_item("P0002")
        assert interpreter.execute("scale 2")
        assert session.items[1].points == [
            pytest.approx((-5.0, -5.0)),
            pytest.approx((15.0, -5.0)),
            pytest.approx((15.0, 15.0)),
            pytest.approx((-5.0, 15.0)),
        ]

    def test_rotate_ninety(self, interpreter, session):
        session.select_item("P0001")
        assert interpreter.execute("rotate 90")
        assert session.items[0].points == [pytest.approx((5.0, -5.0)), pytest.approx((5.0, 5.0))]

    def test_selected_point_still_transforms_whole_item(self, interpreter, session):
        session.select_point("P0001", 1)
        assert interpreter.execute("move 1 1")
        assert session.items[0].points == [(1.0, 1.0), (11.0, 1.0)]

    @pytest.mark.parametrize("command", ["move 1", "move a b", "scale", "scale 0", "scale 1 0", "rotate", "rotate nan", "move inf 0"])
    def test_bad_arguments_fail_without_mutation(self, interpreter, session, command):
        session.select_item("P0001")
        before = list(session.items[0].points)
        result = interpreter.execute(command)
        assert not result
        assert result.status == "fail"
        assert session.items[0].points == before

    def test_transform_needs_selection(self, interpreter):
        result = interpreter.execute("move 1 1")
        assert not result
        assert "Select" in result.message


class TestDocumentCommands:
    def test_unknown_and_empty(self, interpreter):
        assert not interpreter.execute("explode")
        assert not interpreter.execute("   ")

    def test_delete_point_then_item(self, interpreter, session):
        session.select_point("P0002", 3)
        assert interpreter.execute("delete").message == "Deleted point"
        assert len(session.items[1].points) == 3
        session.select_item("P0001")
        assert interpreter.execute("DELETE").message == "Deleted polyline"
        assert [item.id for item in session.items] == ["P0002"]
        assert not interpreter.execute("delete")

    def test_fit_and_clear(self, interpreter, session):
        assert interpreter.execute("fit")
        assert session.viewport.bounds.min_x < 0
        assert interpreter.execute("clear")
        assert session.items == []

    def test_refresh_and_apply_json(self, interpreter, session):
        assert interpreter.execute("refresh-json")
        data = json.loads(session.json_text)
        assert [p["id"] for p in data["polylines"]] == ["P0001", "P0002"]
        data["polylines"][0]["points"] = [[1, 1], [2, 2]]
        session.json_text = json.dumps(data)
        result = interpreter.execute("apply-json")
        assert result
        assert session.items[0].points == [(1.0, 1.0), (2.0, 2.0)]

    def test_apply_json_with_oversized_numbers(self, interpreter, session):
        session.json_text = "[[[0, 0], [1, 1]], [[" + "9" * 400 + ", 0], [1, 1]]]"
        result = interpreter.execute("apply-json")
        assert result
        assert result.message == "Applied 1 polyline(s)"
        assert session.items[0].points == [(0.0, 0.0), (1.0, 1.0)]

    def test_apply_invalid_json_fails(self, interpreter, session):
        session.json_text = "{broken"
        result = interpreter.execute("apply-json")
        assert not result
        assert len(session.items) == 2
        session.json_text = "[]"
        assert not interpreter.execute("apply-json")
        assert len(session.items) == 2


class TestOutputStatus:
    def test_copy_without_clipboard_fails(self, interpreter, session):
        assert not interpreter.execute("copy")
        assert session.copy_status is IOStatus.FAIL

    def test_copy_success(self, session):
        copied = []
        interpreter = CommandInterpreter(session, clipboard=copied.append)
        assert interpreter.execute("copy")
        assert session.copy_status is IOStatus.OK
        assert json.loads(copied[0])["polylines"]

    def test_copy_failure_is_reported(self, session):
        def broken(_text):
            raise RuntimeError("denied")

        interpreter = CommandInterpreter(session, clipboard=broken)
        result = interpreter.execute("copy")
        assert not result
        assert "denied" in result.message
        assert session.copy_status is IOStatus.FAIL

    def test_export_formats(self, session):
        saved = {}
        interpreter = CommandInterpreter(session, saver=lambda name, payload: saved.__setitem__(name, payload))
        assert interpreter.execute("export")
        assert interpreter.execute("export dxf")
        assert interpreter.execute("export svg")
        assert set(saved) == {"drawing.json", "drawing.dxf", "drawing.svg"}
        assert saved["drawing.dxf"].startswith("0\nSECTION")
        assert session.save_status is IOStatus.OK
        assert not interpreter.execute("export png")

    def test_export_skips_hidden_layers_for_dxf(self, session):
        session.set_layer_visible("0", False)
        interpreter = CommandInterpreter(session)
        assert "LWPOLYLINE" not in interpreter.render_export("dxf")
        assert len(json.loads(interpreter.render_export("json"))["polylines"]) == 2
