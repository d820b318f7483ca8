"""Turn loosely shaped polyline input into canonical :class:`PolylineItem` lists.

Input comes from two places: the DXF parser projection and JSON pasted or
loaded by the user. Neither is trusted. Every coercion here is total: it returns
``None`` (or skips the element) instead of raising, and a polyline only
survives if at least two finite points do.

Accepted element shapes:

* a bare sequence of point-likes, ``[[0, 0], [10, 0]]``
* an object with ``vertices`` (parser projection)
* an item-shaped object with ``id/layer/type/points/visible/entityIndex/lineOverride``

Point-likes are ``[x, y]`` pairs (numbers or numeric strings) or ``{"x", "y"}``
records.
"""
from __future__ import annotations

import logging
import math
import re
from typing import Any, Iterable, List, Mapping, Optional, Set

from .model import (
    DEFAULT_LAYER,
    DEFAULT_TYPE,
    LINE_TYPES,
    MIN_LINE_WIDTH,
    IdAllocator,
    LineOverride,
    Point,
    PolylineItem,
)

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")
_FILLED_TYPES = {"SOLID", "TRACE", "3DFACE"}
# entity kinds the DXF parser flattens into its own polyline list
FLATTENED_TYPES = {"LINE", "ARC", "CIRCLE", "ELLIPSE", "SPLINE", "LWPOLYLINE", "POLYLINE"}


# ---------------------------------------------------------------------------
# Scalar coercion


def coerce_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    elif not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except (OverflowError, ValueError):
        return None
    return number if math.isfinite(number) else None


def coerce_point(value: Any) -> Optional[Point]:
    if isinstance(value, Mapping):
        x = coerce_number(value.get("x"))
        y = coerce_number(value.get("y"))
    elif isinstance(value, (list, tuple)) and len(value) >= 2:
        x = coerce_number(value[0])
        y = coerce_number(value[1])
    else:
        return None
    if x is None or y is None:
        return None
    return (x, y)


def coerce_points(values: Any) -> List[Point]:
    if not isinstance(values, (list, tuple)):
        return []
    points: List[Point] = []
    for value in values:
        point = coerce_point(value)
        if point is not None:
            points.append(point)
    return points


def coerce_label(value: Any, fallback: str) -> str:
    if isinstance(value, bool) or value is None:
        return fallback
    if isinstance(value, (int, float, str)):
        text = str(value).strip()
        return text or fallback
    return fallback


def coerce_index(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float) and math.isfinite(value) and value.is_integer() and value >= 0:
        return int(value)
    return None


def coerce_color(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    match = _HEX_COLOR.match(value.strip())
    if not match:
        return None
    return "#" + match.group(1).lower()


def coerce_line_type(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    name = value.strip().lower().replace("-", "").replace("_", "")
    return name if name in LINE_TYPES else None


def coerce_width(value: Any, minimum: float = MIN_LINE_WIDTH) -> Optional[float]:
    number = coerce_number(value)
    if number is None:
        return None
    return max(minimum, number)


def coerce_line_override(value: Any) -> Optional[LineOverride]:
    if not isinstance(value, Mapping):
        return None
    override = LineOverride(
        type=coerce_line_type(value.get("type")),
        color=coerce_color(value.get("color")),
        width=coerce_width(value.get("width")),
    )
    return None if override.is_empty() else override


def rgb_to_hex(rgb: Any) -> Optional[str]:
    """``[r, g, b]`` with 0..255 channels to ``#rrggbb``."""
    if not isinstance(rgb, (list, tuple)) or len(rgb) != 3:
        return None
    channels = []
    for value in rgb:
        number = coerce_number(value)
        if number is None:
            return None
        channels.append(int(max(0, min(255, round(number)))))
    return "#{:02x}{:02x}{:02x}".format(*channels)


# ---------------------------------------------------------------------------
# Polylines


def _resolve_id(value: Any, allocator: IdAllocator, used_ids: Set[str]) -> str:
    candidate = coerce_label(value, "")
    if candidate and candidate not in used_ids:
        allocator.observe(candidate)
        used_ids.add(candidate)
        return candidate
    identifier = allocator.next_id()
    while identifier in used_ids:
        identifier = allocator.next_id()
    used_ids.add(identifier)
    return identifier


def normalize_polyline(value: Any, allocator: IdAllocator, used_ids: Optional[Set[str]] = None) -> Optional[PolylineItem]:
    """Normalize one polyline-like element, or return ``None`` if unusable."""
    used = used_ids if used_ids is not None else set()
    if isinstance(value, (list, tuple)):
        points = coerce_points(value)
        if len(points) < 2:
            return None
        return PolylineItem(id=_resolve_id(None, allocator, used), points=points)
    if not isinstance(value, Mapping):
        return None

    raw_points = value.get("points")
    if not isinstance(raw_points, (list, tuple)):
        raw_points = value.get("vertices")
    points = coerce_points(raw_points)
    if len(points) < 2:
        return None

    visible = value.get("visible")
    return PolylineItem(
        id=_resolve_id(value.get("id"), allocator, used),
        points=points,
        layer=coerce_label(value.get("layer"), DEFAULT_LAYER),
        type=coerce_label(value.get("type"), DEFAULT_TYPE),
        visible=visible if isinstance(visible, bool) else True,
        entity_index=coerce_index(value.get("entityIndex")),
        line_override=coerce_line_override(value.get("lineOverride")),
    )


def _elements(raw: Any) -> Iterable[Any]:
    if isinstance(raw, (list, tuple)):
        return raw
    if isinstance(raw, Mapping) and isinstance(raw.get("polylines"), (list, tuple)):
        return raw["polylines"]
    return ()


def normalize_document(raw: Any, allocator: Optional[IdAllocator] = None) -> List[PolylineItem]:
    """Normalize a whole document; an empty list means nothing usable was found."""
    allocator = allocator or IdAllocator()
    used_ids: Set[str] = set()
    items: List[PolylineItem] = []
    skipped = 0
    for element in _elements(raw):
        item = normalize_polyline(element, allocator, used_ids)
        if item is None:
            skipped += 1
            continue
        items.append(item)
    if skipped:
        logger.debug("Skipped %d unusable polyline element(s)", skipped)
    return items


# ---------------------------------------------------------------------------
# Entities not covered by the parser projection


def polyline_points_from_entity(entity: Any) -> Optional[List[Point]]:
    """Derive points for entity kinds the parser does not flatten itself.

    Filled quads (SOLID/TRACE/3DFACE) become a closed ring, DIMENSION yields its
    two measurement endpoints and LINE its start and end.
    """
    if not isinstance(entity, Mapping):
        return None
    kind = coerce_label(entity.get("type"), "").upper()
    if kind in _FILLED_TYPES:
        raw = entity.get("corners")
        if not isinstance(raw, (list, tuple)):
            raw = entity.get("vertices")
        corners = coerce_points(raw)[:4]
        if len(corners) == 4 and corners[3] == corners[2]:
            corners = corners[:3]
        if len(corners) < 3:
            return None
        return corners + [corners[0]]
    if kind == "DIMENSION":
        start = coerce_point(entity.get("measureStart"))
        end = coerce_point(entity.get("measureEnd"))
        if start is None or end is None:
            return None
        return [start, end]
    if kind == "LINE":
        start = coerce_point(entity.get("start"))
        end = coerce_point(entity.get("end"))
        if start is None or end is None:
            return None
        return [start, end]
    return None
