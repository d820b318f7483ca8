"""Qt canvas that turns widget events into editor calls and paints the render list."""
from __future__ import annotations

from typing import Callable, Dict, Optional

from PySide6.QtCore import QPointF, QSize, Qt, QTimer, Signal
from PySide6.QtGui import QColor, QPainter, QPen, QPolygonF
from PySide6.QtWidgets import QWidget

from polyedit_core.config import EditorConfig
from polyedit_core.editor import BUTTON_LEFT, BUTTON_MIDDLE, BUTTON_RIGHT, Editor, PointerEvent
from polyedit_core.serialize import DASH_PATTERNS
from polyedit_core.session import EditSession, RenderPolyline

FRAME_INTERVAL_MS = 16
MOUSE_POINTER_ID = 1

_BUTTONS = {
    Qt.LeftButton: BUTTON_LEFT,
    Qt.MiddleButton: BUTTON_MIDDLE,
    Qt.RightButton: BUTTON_RIGHT,
}

_KEYS = {
    Qt.Key_Delete: "Delete",
    Qt.Key_Backspace: "Backspace",
    Qt.Key_Left: "ArrowLeft",
    Qt.Key_Right: "ArrowRight",
    Qt.Key_Up: "ArrowUp",
    Qt.Key_Down: "ArrowDown",
    Qt.Key_Escape: "Escape",
}


class Canvas(QWidget):
    """Drawing surface for one :class:`EditSession`."""

    status_changed = Signal(str)
    document_changed = Signal()
    selection_changed = Signal()

    def __init__(
        self,
        config: Optional[EditorConfig] = None,
        *,
        clipboard: Optional[Callable[[str], None]] = None,
        saver: Optional[Callable[[str, str], None]] = None,
    ):
        super().__init__()
        self.setObjectName("PolyeditCanvas")
        self.setMinimumSize(QSize(640, 480))
        self.setFocusPolicy(Qt.StrongFocus)
        self.setMouseTracking(True)
        self.setToolTip(
            "Click a point to drag it, click a stroke to select it.\n"
            "Alt/Ctrl-drag moves a whole polyline, Shift or middle drag pans.\n"
            "Double-click a stroke to insert a point; wheel zooms."
        )

        self.session = EditSession(config)
        self.editor = Editor(
            self.session,
            schedule_frame=self._schedule_frame,
            capture_pointer=self._capture_pointer,
            release_pointer=self._release_pointer,
            clipboard=clipboard,
            saver=saver,
        )
        self._painted_revision = -1
        self._last_selection: tuple = (None, None)

    # ------------------------------------------------------------------
    # Editor hooks
    def _schedule_frame(self, callback: Callable[[], None]) -> None:
        def run() -> None:
            callback()
            self._after_edit()

        QTimer.singleShot(FRAME_INTERVAL_MS, run)

    def _capture_pointer(self, _pointer_id: int) -> None:
        self.grabMouse()

    def _release_pointer(self, _pointer_id: int) -> None:
        self.releaseMouse()

    def _after_edit(self) -> None:
        selection = (self.session.selection.item_id, self.session.selection.point_index)
        if self.session.revision != self._painted_revision:
            self._painted_revision = self.session.revision
            self.document_changed.emit()
        if selection != self._last_selection:
            self._last_selection = selection
            self.selection_changed.emit()
        self.update()

    def notify_changed(self) -> None:
        """Repaint and re-emit change signals after an outside edit."""
        self._after_edit()

    def run_command(self, text: str) -> bool:
        result = self.editor.run_command(text)
        self.status_changed.emit(result.message)
        self._after_edit()
        return bool(result)

    # ------------------------------------------------------------------
    # Painting
    def _pen_for(self, item: RenderPolyline) -> QPen:
        style = item.style
        width = float(style.get("width", 1.0))
        if item.selected:
            width += 1.5
        pen = QPen(QColor(style.get("color", "#000000")), width)
        pen.setCosmetic(True)
        pattern = DASH_PATTERNS.get(style.get("type"))
        if pattern:
            pen.setDashPattern(list(pattern))
        return pen

    def paintEvent(self, event):  # pragma: no cover - GUI entry point
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.fillRect(self.rect(), QColor(250, 250, 250))
        selection = self.session.selection
        for item in self.session.render_list():
            painter.setPen(self._pen_for(item))
            painter.drawPolyline(QPolygonF([QPointF(x, y) for x, y in item.points]))
            if item.selected:
                self._draw_markers(painter, item, selection.point_index)

    def _draw_markers(self, painter: QPainter, item: RenderPolyline, active: Optional[int]) -> None:  # pragma: no cover - GUI
        size = self.session.styles.ensure_style(item.layer).point.size
        painter.setPen(QPen(QColor(50, 120, 215), 1))
        for idx, (x, y) in enumerate(item.points):
            painter.setBrush(QColor(50, 120, 215) if idx == active else QColor(255, 255, 255))
            painter.drawEllipse(QPointF(x, y), size, size)
        painter.setBrush(Qt.NoBrush)

    # ------------------------------------------------------------------
    # Qt events
    def _pointer_event(self, event, with_target: bool) -> PointerEvent:
        pos = event.position()
        mods = event.modifiers()
        target = self.editor.hit_target((pos.x(), pos.y())) if with_target else None
        pointer = PointerEvent(
            x=pos.x(),
            y=pos.y(),
            button=_BUTTONS.get(event.button(), BUTTON_LEFT),
            pointer_id=MOUSE_POINTER_ID,
            shift=bool(mods & Qt.ShiftModifier),
            alt=bool(mods & Qt.AltModifier),
            ctrl=bool(mods & Qt.ControlModifier),
            meta=bool(mods & Qt.MetaModifier),
        )
        if target is not None:
            pointer.target = target
        return pointer

    def resizeEvent(self, event):  # pragma: no cover - GUI layout handling
        super().resizeEvent(event)
        self.session.viewport.set_surface(self.width(), self.height())
        self.update()

    def wheelEvent(self, event):  # pragma: no cover - GUI entry point
        delta = event.angleDelta().y()
        if delta == 0:
            event.accept()
            return
        pos = event.position()
        # wheel up shrinks the view window, i.e. zooms in
        if self.editor.wheel((pos.x(), pos.y()), -float(delta)):
            self.update()
        event.accept()

    def mousePressEvent(self, event):  # pragma: no cover - GUI entry point
        if event.button() not in _BUTTONS:
            return
        self.editor.pointer_down(self._pointer_event(event, with_target=True))
        self._after_edit()

    def mouseMoveEvent(self, event):  # pragma: no cover - GUI entry point
        self.editor.pointer_move(self._pointer_event(event, with_target=False))
        self._after_edit()

    def mouseReleaseEvent(self, event):  # pragma: no cover - GUI entry point
        self.editor.pointer_up(self._pointer_event(event, with_target=False))
        self._after_edit()

    def mouseDoubleClickEvent(self, event):  # pragma: no cover - GUI entry point
        if event.button() != Qt.LeftButton:
            return
        self.editor.double_click(self._pointer_event(event, with_target=True))
        self._after_edit()

    def keyPressEvent(self, event):  # pragma: no cover - GUI entry point
        key = _KEYS.get(event.key())
        shift = bool(event.modifiers() & Qt.ShiftModifier)
        if key is not None and self.editor.key_down(key, shift=shift):
            self._after_edit()
            event.accept()
            return
        super().keyPressEvent(event)

    def focusOutEvent(self, event):  # pragma: no cover - GUI entry point
        self.editor.reset()
        super().focusOutEvent(event)

    def layer_states(self) -> Dict[str, bool]:
        return {name: self.session.layer_visible(name) for name in self.session.styles.names()}
