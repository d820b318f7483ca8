"""Pointer/keyboard state machine: pan, point drag, polyline drag, nudges."""

from __future__ import annotations

import pytest

from polyedit_core.config import EditorConfig
from polyedit_core.editor import BUTTON_LEFT, BUTTON_MIDDLE, Editor, Mode, PointerEvent
from polyedit_core.session import EditSession, Target
from polyedit_core.viewport import Bounds


@pytest.fixture
def session():
    s = EditSession(EditorConfig(surface_width=100, surface_height=100))
    s.apply_document([[[0, 0], [10, 0], [10, 10]], [[50, 50], [60, 50]]])
    s.viewport.set_bounds(Bounds(0.0, 0.0, 100.0, 100.0))
    return s


@pytest.fixture
def editor(session):
    return Editor(session)


def point_target(item_id, index):
    return Target(kind="point", item_id=item_id, point_index=index)


class FrameQueue:
    """Collects frame callbacks so tests decide when a frame happens."""

    def __init__(self):
        self.pending = []

    def __call__(self, callback):
        self.pending.append(callback)

    def run(self):
        callbacks, self.pending = self.pending, []
        for callback in callbacks:
            callback()


class TestPointDrag:
    def test_drag_moves_point_and_selects(self, editor, session):
        captured = []
        editor = Editor(session, capture_pointer=captured.append, release_pointer=captured.append)
        editor.pointer_down(PointerEvent(10, 100, target=point_target("P0001", 1)))
        assert editor.mode is Mode.DRAGGING_POINT
        assert session.selection.point_index == 1
        editor.pointer_move(PointerEvent(20, 80))
        assert session.items[0].points[1] == pytest.approx((20.0, 20.0))
        editor.pointer_up(PointerEvent(20, 80))
        assert editor.mode is Mode.IDLE
        assert captured == [1, 1]

    def test_moves_from_other_pointers_are_ignored(self, editor, session):
        editor.pointer_down(PointerEvent(10, 100, pointer_id=1, target=point_target("P0001", 1)))
        editor.pointer_move(PointerEvent(90, 10, pointer_id=2))
        assert session.items[0].points[1] == (10.0, 0.0)

    def test_frame_coalescing_applies_latest_position(self, session):
        frames = FrameQueue()
        editor = Editor(session, schedule_frame=frames)
        editor.pointer_down(PointerEvent(10, 100, target=point_target("P0001", 1)))
        editor.pointer_move(PointerEvent(20, 100))
        editor.pointer_move(PointerEvent(30, 100))
        assert len(frames.pending) == 1
        assert session.items[0].points[1] == (10.0, 0.0)
        frames.run()
        assert session.items[0].points[1] == pytest.approx((30.0, 0.0))

    def test_release_flushes_pending_move(self, session):
        frames = FrameQueue()
        editor = Editor(session, schedule_frame=frames)
        editor.pointer_down(PointerEvent(10, 100, target=point_target("P0001", 1)))
        editor.pointer_move(PointerEvent(40, 100))
        editor.pointer_up(PointerEvent(40, 100))
        assert session.items[0].points[1] == pytest.approx((40.0, 0.0))
        # the stale frame from the finished gesture must not reapply anything
        session.set_point("P0001", 1, (1.0, 1.0))
        frames.run()
        assert session.items[0].points[1] == (1.0, 1.0)

    def test_stale_frame_after_clear_is_dropped(self, session):
        frames = FrameQueue()
        editor = Editor(session, schedule_frame=frames)
        editor.pointer_down(PointerEvent(10, 100, target=point_target("P0001", 1)))
        editor.pointer_move(PointerEvent(40, 100))
        assert editor.run_command("clear")
        frames.run()
        assert session.items == []
        assert editor.mode is Mode.IDLE


class TestPolylineDrag:
    def test_modifier_drag_translates_whole_polyline(self, editor, session):
        editor.pointer_down(PointerEvent(5, 100, alt=True, target=Target(kind="stroke", item_id="P0001")))
        assert editor.mode is Mode.DRAGGING_POLYLINE
        editor.pointer_move(PointerEvent(8, 99))
        editor.pointer_move(PointerEvent(15, 95))
        assert session.items[0].points == [
            pytest.approx((10.0, 5.0)),
            pytest.approx((20.0, 5.0)),
            pytest.approx((20.0, 15.0)),
        ]
        editor.pointer_up(PointerEvent(15, 95))
        assert editor.mode is Mode.IDLE

    def test_plain_stroke_click_selects_without_drag(self, editor, session):
        editor.pointer_down(PointerEvent(5, 100, target=Target(kind="stroke", item_id="P0002")))
        assert editor.mode is Mode.IDLE
        assert session.selection.item_id == "P0002"
        assert session.selection.point_index is None


class TestPan:
    def test_middle_drag_pans_against_start_snapshot(self, editor, session):
        editor.pointer_down(PointerEvent(50, 50, button=BUTTON_MIDDLE))
        assert editor.mode is Mode.PANNING
        editor.pointer_move(PointerEvent(60, 50))
        editor.pointer_move(PointerEvent(70, 40))
        assert session.viewport.bounds == Bounds(-20.0, -10.0, 80.0, 90.0)
        editor.pointer_up(PointerEvent(70, 40))
        assert editor.mode is Mode.IDLE

    def test_shift_drag_on_canvas_pans(self, editor):
        editor.pointer_down(PointerEvent(50, 50, button=BUTTON_LEFT, shift=True))
        assert editor.mode is Mode.PANNING

    def test_canvas_click_clears_selection(self, editor, session):
        session.select_item("P0001")
        editor.pointer_down(PointerEvent(90, 10))
        assert session.selection.is_empty


class TestDoubleClickAndKeys:
    def test_double_click_inserts_on_stroke(self, editor, session):
        assert editor.double_click(PointerEvent(5, 100, target=Target(kind="stroke", item_id="P0001")))
        assert session.items[0].points[1] == pytest.approx((5.0, 0.0))
        assert session.selection.point_index == 1
        assert not editor.double_click(PointerEvent(5, 100))

    def test_arrow_keys_nudge_selected_point(self, editor, session):
        session.select_point("P0001", 0)
        assert editor.key_down("ArrowRight")
        assert editor.key_down("ArrowUp", shift=True)
        assert session.items[0].points[0] == pytest.approx((1.0, 10.0))

    def test_keys_ignored_in_text_field_or_without_point(self, editor, session):
        session.select_point("P0001", 0)
        assert not editor.key_down("Delete", in_text_field=True)
        session.select_item("P0001")
        assert not editor.key_down("ArrowLeft")
        assert not editor.key_down("Delete")
        assert len(session.items[0].points) == 3

    def test_delete_key_removes_selected_point(self, editor, session):
        session.select_point("P0001", 1)
        assert editor.key_down("Backspace")
        assert session.items[0].points == [(0.0, 0.0), (10.0, 10.0)]
        assert session.selection.point_index == 0

    def test_escape_clears_selection(self, editor, session):
        session.select_item("P0001")
        assert editor.key_down("Escape")
        assert session.selection.is_empty

    def test_wheel_zooms(self, editor, session):
        assert editor.wheel((50, 50), -1000)
        assert session.viewport.bounds.width < 100

    def test_hit_target_uses_pixel_tolerance(self, editor):
        target = editor.hit_target((12, 100))
        assert (target.kind, target.point_index) == ("point", 1)
