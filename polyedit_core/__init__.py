"""Headless polyline viewer/editor engine."""
from __future__ import annotations

from .commands import CommandInterpreter, CommandResult
from .config import EditorConfig, load_config
from .editor import Editor, Mode, PointerEvent
from .model import IdAllocator, LineOverride, PolylineItem, Selection
from .normalize import normalize_document, polyline_points_from_entity
from .serialize import to_canonical_json, to_dxf_text, to_printable_markup
from .session import EditSession, IOStatus, Target
from .styles import StyleRegistry, line_type_from_name
from .viewport import Bounds, Viewport

__version__ = "0.1.0"

__all__ = [
    "Bounds",
    "CommandInterpreter",
    "CommandResult",
    "EditSession",
    "Editor",
    "EditorConfig",
    "IOStatus",
    "IdAllocator",
    "LineOverride",
    "Mode",
    "PointerEvent",
    "PolylineItem",
    "Selection",
    "StyleRegistry",
    "Target",
    "Viewport",
    "line_type_from_name",
    "load_config",
    "normalize_document",
    "polyline_points_from_entity",
    "to_canonical_json",
    "to_dxf_text",
    "to_printable_markup",
]
