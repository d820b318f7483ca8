"""Whitespace-tokenized command line for the editing session.

Commands: ``clear``, ``delete``, ``copy``, ``export [json|dxf|svg]``,
``refresh-json``, ``apply-json``, ``fit``, ``move dx dy``, ``scale sx [sy]``,
``rotate degrees``. Arguments are validated before anything is mutated, so a
failed command leaves the document exactly as it was.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from .geometry import bounds_center, bounds_of, rotate_points, scale_points, translate_points
from .serialize import to_canonical_json, to_dxf_text, to_printable_markup
from .session import EditSession, IOStatus

logger = logging.getLogger(__name__)

Clipboard = Callable[[str], None]
Saver = Callable[[str, str], None]

EXPORT_NAMES = {
    "json": "drawing.json",
    "dxf": "drawing.dxf",
    "svg": "drawing.svg",
}


@dataclass
class CommandResult:
    status: str
    message: str = ""

    def __bool__(self) -> bool:
        return self.status == "ok"

    @classmethod
    def ok(cls, message: str = "") -> "CommandResult":
        return cls("ok", message)

    @classmethod
    def fail(cls, message: str) -> "CommandResult":
        return cls("fail", message)


def _numbers(args: Sequence[str]) -> Optional[List[float]]:
    values: List[float] = []
    for token in args:
        try:
            value = float(token)
        except ValueError:
            return None
        if not math.isfinite(value):
            return None
        values.append(value)
    return values


class CommandInterpreter:
    """Dispatch command text against one session."""

    def __init__(
        self,
        session: EditSession,
        *,
        clipboard: Optional[Clipboard] = None,
        saver: Optional[Saver] = None,
        on_clear: Optional[Callable[[], None]] = None,
    ) -> None:
        self.session = session
        self.clipboard = clipboard
        self.saver = saver
        self.on_clear = on_clear
        self._handlers: Dict[str, Callable[[List[str]], CommandResult]] = {
            "clear": self._clear,
            "delete": self._delete,
            "copy": self._copy,
            "export": self._export,
            "refresh-json": self._refresh_json,
            "apply-json": self._apply_json,
            "fit": self._fit,
            "move": self._move,
            "scale": self._scale,
            "rotate": self._rotate,
        }

    def commands(self) -> List[str]:
        return list(self._handlers)

    def execute(self, text: str) -> CommandResult:
        tokens = (text or "").split()
        if not tokens:
            return CommandResult.fail("Empty command")
        verb = tokens[0].lower()
        handler = self._handlers.get(verb)
        if handler is None:
            return CommandResult.fail(f"Unknown command '{tokens[0]}'")
        result = handler(tokens[1:])
        logger.debug("command %r -> %s %s", text, result.status, result.message)
        return result

    # ------------------------------------------------------------------
    # Document commands
    def _clear(self, _args: List[str]) -> CommandResult:
        self.session.clear()
        if self.on_clear is not None:
            self.on_clear()
        return CommandResult.ok("Cleared")

    def _delete(self, _args: List[str]) -> CommandResult:
        selection = self.session.selection
        if selection.has_point:
            outcome = self.session.delete_point(selection.item_id, selection.point_index)
            if outcome == "item":
                return CommandResult.ok("Deleted polyline")
            if outcome == "point":
                return CommandResult.ok("Deleted point")
            return CommandResult.fail("Selected point no longer exists")
        if selection.item_id is not None and self.session.delete_item(selection.item_id):
            return CommandResult.ok("Deleted polyline")
        return CommandResult.fail("Nothing selected")

    def _canonical_json(self) -> str:
        s = self.session
        return to_canonical_json(s.items, s.styles, s.visible_layers())

    def _copy(self, _args: List[str]) -> CommandResult:
        if self.clipboard is None:
            self.session.copy_status = IOStatus.FAIL
            return CommandResult.fail("Clipboard unavailable")
        try:
            self.clipboard(self._canonical_json())
        except Exception as exc:  # noqa: BLE001
            logger.warning("Copy to clipboard failed: %s", exc)
            self.session.copy_status = IOStatus.FAIL
            return CommandResult.fail(f"Copy failed: {exc}")
        self.session.copy_status = IOStatus.OK
        return CommandResult.ok("Copied JSON")

    def render_export(self, fmt: str) -> str:
        s = self.session
        if fmt == "json":
            return self._canonical_json()
        if fmt == "dxf":
            return to_dxf_text(s.visible_items())
        if fmt == "svg":
            return to_printable_markup(s.visible_items(), s.viewport.bounds, s.styles)
        raise ValueError(f"Unsupported export format '{fmt}'")

    def _export(self, args: List[str]) -> CommandResult:
        fmt = args[0].lower() if args else "json"
        if fmt not in EXPORT_NAMES or len(args) > 1:
            return CommandResult.fail("Usage: export [json|dxf|svg]")
        if self.saver is None:
            self.session.save_status = IOStatus.FAIL
            return CommandResult.fail("No file target")
        try:
            self.saver(EXPORT_NAMES[fmt], self.render_export(fmt))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Export failed: %s", exc)
            self.session.save_status = IOStatus.FAIL
            return CommandResult.fail(f"Export failed: {exc}")
        self.session.save_status = IOStatus.OK
        return CommandResult.ok(f"Exported {EXPORT_NAMES[fmt]}")

    def _refresh_json(self, _args: List[str]) -> CommandResult:
        self.session.json_text = self._canonical_json()
        return CommandResult.ok("JSON refreshed")

    def _apply_json(self, _args: List[str]) -> CommandResult:
        try:
            count = self.session.apply_json_text()
        except ValueError as exc:
            return CommandResult.fail(f"Invalid JSON: {exc}")
        if count == 0:
            return CommandResult.fail("No usable polylines in JSON")
        return CommandResult.ok(f"Applied {count} polyline(s)")

    def _fit(self, _args: List[str]) -> CommandResult:
        if not self.session.fit_to_content():
            return CommandResult.fail("Could not fit view")
        return CommandResult.ok("View fitted")

    # ------------------------------------------------------------------
    # Transform commands
    def _transform_target(self):
        item = self.session.selected_item()
        if item is None:
            return None, CommandResult.fail("Select a polyline first")
        return item, None

    def _move(self, args: List[str]) -> CommandResult:
        values = _numbers(args)
        if values is None or len(values) != 2:
            return CommandResult.fail("Usage: move dx dy")
        item, error = self._transform_target()
        if item is None:
            return error
        dx, dy = values
        if not self.session.replace_points(item.id, translate_points(item.points, dx, dy)):
            return CommandResult.fail("Move produced invalid coordinates")
        return CommandResult.ok(f"Moved {item.id}")

    def _scale(self, args: List[str]) -> CommandResult:
        values = _numbers(args)
        if values is None or len(values) not in (1, 2):
            return CommandResult.fail("Usage: scale sx [sy]")
        sx = values[0]
        sy = values[1] if len(values) == 2 else sx
        if sx == 0 or sy == 0:
            return CommandResult.fail("Scale factors must be non-zero")
        item, error = self._transform_target()
        if item is None:
            return error
        center = bounds_center(bounds_of(item.points))
        if not self.session.replace_points(item.id, scale_points(item.points, sx, sy, center)):
            return CommandResult.fail("Scale produced invalid coordinates")
        return CommandResult.ok(f"Scaled {item.id}")

    def _rotate(self, args: List[str]) -> CommandResult:
        values = _numbers(args)
        if values is None or len(values) != 1:
            return CommandResult.fail("Usage: rotate degrees")
        item, error = self._transform_target()
        if item is None:
            return error
        center = bounds_center(bounds_of(item.points))
        if not self.session.replace_points(item.id, rotate_points(item.points, values[0], center)):
            return CommandResult.fail("Rotate produced invalid coordinates")
        return CommandResult.ok(f"Rotated {item.id}")
