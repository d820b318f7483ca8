"""Pointer and keyboard interaction for the polyline editor.

One gesture is active at a time (Idle, PanningView, DraggingPoint,
DraggingPolyline). Gestures work from snapshots taken at pointer-down: a pan
shifts the starting bounds and a polyline drag offsets the starting points, so
long drags never accumulate rounding drift. Point drags may be coalesced to one
update per rendering frame when the host supplies a frame scheduler.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Callable, List, Optional

from .commands import CommandInterpreter, CommandResult
from .geometry import Point, translate_points
from .session import EditSession, Target
from .viewport import Bounds

logger = logging.getLogger(__name__)

BUTTON_LEFT = 0
BUTTON_MIDDLE = 1
BUTTON_RIGHT = 2

ARROW_KEYS = {
    "ArrowLeft": (-1.0, 0.0),
    "ArrowRight": (1.0, 0.0),
    "ArrowUp": (0.0, 1.0),
    "ArrowDown": (0.0, -1.0),
}
DELETE_KEYS = ("Delete", "Backspace")

FrameScheduler = Callable[[Callable[[], None]], None]
PointerHook = Callable[[int], None]


class Mode(str, Enum):
    IDLE = "idle"
    PANNING = "panning"
    DRAGGING_POINT = "dragging_point"
    DRAGGING_POLYLINE = "dragging_polyline"


@dataclass
class PointerEvent:
    """Device-space pointer event plus what it hit."""

    x: float
    y: float
    button: int = BUTTON_LEFT
    pointer_id: int = 1
    shift: bool = False
    alt: bool = False
    ctrl: bool = False
    meta: bool = False
    target: Target = field(default_factory=Target)

    @property
    def position(self) -> Point:
        return (float(self.x), float(self.y))


@dataclass
class _Gesture:
    mode: Mode
    pointer_id: int
    token: int
    item_id: Optional[str] = None
    point_index: Optional[int] = None
    start_device: Optional[Point] = None
    start_model: Optional[Point] = None
    start_bounds: Optional[Bounds] = None
    base_points: Optional[List[Point]] = None


class Editor:
    """Drive an :class:`EditSession` from pointer, keyboard and command input."""

    def __init__(
        self,
        session: EditSession,
        *,
        schedule_frame: Optional[FrameScheduler] = None,
        capture_pointer: Optional[PointerHook] = None,
        release_pointer: Optional[PointerHook] = None,
        clipboard: Optional[Callable[[str], None]] = None,
        saver: Optional[Callable[[str, str], None]] = None,
    ) -> None:
        self.session = session
        self._schedule_frame = schedule_frame
        self._capture_pointer = capture_pointer
        self._release_pointer = release_pointer
        self._gesture: Optional[_Gesture] = None
        self._next_token = 1
        self._pending: Optional[Point] = None
        self._frame_token: Optional[int] = None
        self.commands = CommandInterpreter(session, clipboard=clipboard, saver=saver, on_clear=self.reset)

    @property
    def mode(self) -> Mode:
        return Mode.IDLE if self._gesture is None else self._gesture.mode

    def reset(self) -> None:
        """Drop any in-flight gesture without touching the document."""
        self._end_gesture()

    # ------------------------------------------------------------------
    # Gesture bookkeeping
    def _begin(self, mode: Mode, event: PointerEvent, **kwargs) -> _Gesture:
        gesture = _Gesture(mode=mode, pointer_id=event.pointer_id, token=self._next_token, **kwargs)
        self._next_token += 1
        self._gesture = gesture
        if self._capture_pointer is not None:
            self._capture_pointer(event.pointer_id)
        return gesture

    def _end_gesture(self) -> None:
        gesture = self._gesture
        self._gesture = None
        self._pending = None
        self._frame_token = None
        if gesture is not None and self._release_pointer is not None:
            self._release_pointer(gesture.pointer_id)

    def _model(self, event: PointerEvent) -> Point:
        return self.session.viewport.device_to_model(event.position)

    # ------------------------------------------------------------------
    # Pointer events
    def pointer_down(self, event: PointerEvent) -> None:
        if self._gesture is not None:
            return
        session = self.session
        target = event.target
        if event.button == BUTTON_MIDDLE or (target.kind == "canvas" and event.shift):
            self._begin(
                Mode.PANNING,
                event,
                start_device=event.position,
                start_bounds=session.viewport.bounds,
            )
            return
        if event.button != BUTTON_LEFT:
            return

        item = session.item_by_id(target.item_id)
        if target.kind == "point" and item is not None and target.point_index is not None:
            if session.select_point(item.id, target.point_index):
                self._begin(Mode.DRAGGING_POINT, event, item_id=item.id, point_index=target.point_index)
            return
        if target.kind == "stroke" and item is not None:
            session.select_item(item.id)
            if event.alt or event.ctrl or event.meta:
                self._begin(
                    Mode.DRAGGING_POLYLINE,
                    event,
                    item_id=item.id,
                    start_model=self._model(event),
                    base_points=list(item.points),
                )
            return
        session.selection.clear()

    def pointer_move(self, event: PointerEvent) -> None:
        gesture = self._gesture
        if gesture is None or event.pointer_id != gesture.pointer_id:
            return
        if gesture.mode is Mode.PANNING:
            self._pan_to(gesture, event)
        elif gesture.mode is Mode.DRAGGING_POINT:
            self._queue_point_move(gesture, event.position)
        elif gesture.mode is Mode.DRAGGING_POLYLINE:
            self._drag_polyline_to(gesture, event)

    def pointer_up(self, event: PointerEvent) -> None:
        gesture = self._gesture
        if gesture is None or event.pointer_id != gesture.pointer_id:
            return
        if gesture.mode is Mode.DRAGGING_POINT:
            self._apply_pending(gesture)
        self._end_gesture()

    pointer_cancel = pointer_up

    def double_click(self, event: PointerEvent) -> bool:
        """Insert a point on the stroke under the pointer."""
        target = event.target
        if target.kind != "stroke" or target.item_id is None:
            return False
        return self.session.insert_point(target.item_id, self._model(event)) is not None

    # ------------------------------------------------------------------
    # Gesture updates
    def _pan_to(self, gesture: _Gesture, event: PointerEvent) -> None:
        viewport = self.session.viewport
        start = viewport.device_to_model(gesture.start_device, bounds=gesture.start_bounds)
        current = viewport.device_to_model(event.position, bounds=gesture.start_bounds)
        shifted = gesture.start_bounds.translated(-(current[0] - start[0]), -(current[1] - start[1]))
        viewport.set_bounds(shifted)

    def _drag_polyline_to(self, gesture: _Gesture, event: PointerEvent) -> None:
        current = self._model(event)
        dx = current[0] - gesture.start_model[0]
        dy = current[1] - gesture.start_model[1]
        self.session.replace_points(gesture.item_id, translate_points(gesture.base_points, dx, dy))

    def _queue_point_move(self, gesture: _Gesture, position: Point) -> None:
        self._pending = position
        if self._schedule_frame is None:
            self._apply_pending(gesture)
            return
        if self._frame_token == gesture.token:
            return
        self._frame_token = gesture.token
        self._schedule_frame(partial(self._on_frame, gesture.token))

    def _on_frame(self, token: int) -> None:
        if self._frame_token == token:
            self._frame_token = None
        gesture = self._gesture
        if gesture is None or gesture.token != token:
            return
        self._apply_pending(gesture)

    def _apply_pending(self, gesture: _Gesture) -> None:
        position = self._pending
        self._pending = None
        if position is None:
            return
        model = self.session.viewport.device_to_model(position)
        self.session.set_point(gesture.item_id, gesture.point_index, model)

    # ------------------------------------------------------------------
    # Keyboard
    def key_down(self, key: str, *, shift: bool = False, in_text_field: bool = False) -> bool:
        """Handle a key press; returns True when the key was consumed."""
        if in_text_field:
            return False
        if key in DELETE_KEYS:
            return self.delete_selected_point()
        if key in ARROW_KEYS:
            step = self.session.config.nudge_step * (10.0 if shift else 1.0)
            ux, uy = ARROW_KEYS[key]
            return self.nudge_selected_point(ux * step, uy * step)
        if key == "Escape":
            self.session.selection.clear()
            return True
        return False

    def delete_selected_point(self) -> bool:
        selection = self.session.selection
        if not selection.has_point:
            return False
        return self.session.delete_point(selection.item_id, selection.point_index) != ""

    def nudge_selected_point(self, dx: float, dy: float) -> bool:
        selection = self.session.selection
        if not selection.has_point:
            return False
        item = self.session.selected_item()
        if item is None or selection.point_index >= len(item.points):
            return False
        x, y = item.points[selection.point_index]
        return self.session.set_point(item.id, selection.point_index, (x + dx, y + dy))

    # ------------------------------------------------------------------
    # Commands & navigation
    def run_command(self, text: str) -> CommandResult:
        if self._gesture is not None:
            self._end_gesture()
        return self.commands.execute(text)

    def wheel(self, device_point: Point, delta: float) -> bool:
        return self.session.viewport.zoom_at(device_point, delta, self.session.config.zoom_rate)

    def hit_target(self, device_point: Point) -> Target:
        """Hit-test a device point using the configured pixel tolerance."""
        viewport = self.session.viewport
        model = viewport.device_to_model(device_point)
        tolerance = viewport.model_length(self.session.config.hit_tolerance_px)
        return self.session.hit_test(model, tolerance)
