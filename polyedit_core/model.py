"""Canonical drawing model: polyline items, line overrides, ids and selection."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

Point = Tuple[float, float]

DEFAULT_LAYER = "0"
DEFAULT_TYPE = "POLYLINE"
LINE_TYPES = ("solid", "dash", "dot", "dashdot")
MIN_LINE_WIDTH = 0.1

_ID_PATTERN = re.compile(r"^P(\d{1,15})$")


@dataclass
class LineOverride:
    """Per-item line style; ``None`` fields inherit from the layer."""

    type: Optional[str] = None
    color: Optional[str] = None
    width: Optional[float] = None

    def is_empty(self) -> bool:
        return self.type is None and self.color is None and self.width is None

    def asdict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.type is not None:
            data["type"] = self.type
        if self.color is not None:
            data["color"] = self.color
        if self.width is not None:
            data["width"] = float(self.width)
        return data


@dataclass
class PolylineItem:
    """One drawable shape. ``points`` always holds at least two points."""

    id: str
    points: List[Point]
    layer: str = DEFAULT_LAYER
    type: str = DEFAULT_TYPE
    visible: bool = True
    entity_index: Optional[int] = None
    line_override: Optional[LineOverride] = None
    source: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)

    def copy(self) -> "PolylineItem":
        return PolylineItem(
            id=self.id,
            points=list(self.points),
            layer=self.layer,
            type=self.type,
            visible=self.visible,
            entity_index=self.entity_index,
            line_override=None if self.line_override is None else LineOverride(**self.line_override.asdict()),
            source=self.source,
        )

    def asdict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "layer": self.layer,
            "type": self.type,
            "points": [[float(x), float(y)] for x, y in self.points],
            "visible": bool(self.visible),
        }
        if self.entity_index is not None:
            data["entityIndex"] = int(self.entity_index)
        if self.line_override is not None and not self.line_override.is_empty():
            data["lineOverride"] = self.line_override.asdict()
        return data


class IdAllocator:
    """Monotonic ``P0001``-style id source owned by one editing session."""

    def __init__(self) -> None:
        self._counter = 1

    def next_id(self) -> str:
        identifier = f"P{self._counter:04d}"
        self._counter += 1
        return identifier

    def observe(self, identifier: str) -> None:
        """Reseed past an externally supplied id so new ids never collide."""
        match = _ID_PATTERN.match(identifier)
        if match:
            self._counter = max(self._counter, int(match.group(1)) + 1)

    def reset(self) -> None:
        self._counter = 1


@dataclass
class Selection:
    """Selected item, optionally narrowed to one of its points."""

    item_id: Optional[str] = None
    point_index: Optional[int] = None
    entity_index: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.item_id is None

    @property
    def has_point(self) -> bool:
        return self.item_id is not None and self.point_index is not None

    def select_item(self, item: PolylineItem) -> None:
        self.item_id = item.id
        self.point_index = None
        self.entity_index = item.entity_index

    def select_point(self, item: PolylineItem, index: int) -> None:
        self.item_id = item.id
        self.point_index = index
        self.entity_index = item.entity_index

    def clear(self) -> None:
        self.item_id = None
        self.point_index = None
        self.entity_index = None
