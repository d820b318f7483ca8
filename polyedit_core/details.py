"""Read-only rows for the entity detail panel."""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Tuple

from .geometry import is_axis_aligned_rect, is_closed, polygon_area, polyline_length
from .model import PolylineItem
from .normalize import coerce_label, coerce_number, coerce_point

Row = Tuple[str, str]


def format_number(value: Optional[float], precision: int = 3) -> str:
    if value is None:
        return "--"
    return f"{value:.{precision}f}"


def format_point(value: Any, precision: int = 3) -> str:
    point = coerce_point(value)
    if point is None:
        return "--"
    return f"({point[0]:.{precision}f}, {point[1]:.{precision}f})"


_POINT_FIELDS = {
    "LINE": (("Start", "start"), ("End", "end")),
    "ARC": (("Center", "center"),),
    "CIRCLE": (("Center", "center"),),
    "ELLIPSE": (("Center", "center"), ("Major axis", "majorAxis")),
    "TEXT": (("Insert", "insert"),),
    "MTEXT": (("Insert", "insert"),),
    "POINT": (("Position", "position"),),
    "INSERT": (("Insert", "insert"),),
    "DIMENSION": (("Measure start", "measureStart"), ("Measure end", "measureEnd")),
}

_NUMBER_FIELDS = {
    "ARC": (("Radius", "radius"), ("Start angle", "startAngle"), ("End angle", "endAngle")),
    "CIRCLE": (("Radius", "radius"),),
    "ELLIPSE": (("Ratio", "ratio"),),
    "TEXT": (("Height", "height"), ("Rotation", "rotation")),
    "MTEXT": (("Height", "height"), ("Rotation", "rotation")),
    "INSERT": (("Rotation", "rotation"),),
    "DIMENSION": (("Measurement", "measurement"),),
}


def describe_entity(entity: Optional[Mapping[str, Any]]) -> List[Row]:
    """Ordered ``(label, value)`` rows; unknown fields are simply skipped."""
    if not isinstance(entity, Mapping):
        return []
    kind = coerce_label(entity.get("type"), "UNKNOWN").upper()
    rows: List[Row] = [
        ("Type", kind),
        ("Layer", coerce_label(entity.get("layer"), "0")),
    ]
    handle = coerce_label(entity.get("handle"), "")
    if handle:
        rows.append(("Handle", handle))
    line_type = coerce_label(entity.get("lineTypeName"), "")
    if line_type:
        rows.append(("Line type", line_type))

    for label, key in _POINT_FIELDS.get(kind, ()):
        if key in entity:
            rows.append((label, format_point(entity.get(key))))
    for label, key in _NUMBER_FIELDS.get(kind, ()):
        if key in entity:
            rows.append((label, format_number(coerce_number(entity.get(key)))))
    if kind in ("TEXT", "MTEXT") and "text" in entity:
        rows.append(("Text", str(entity.get("text"))))
    if kind == "INSERT" and "block" in entity:
        rows.append(("Block", str(entity.get("block"))))
    vertices = entity.get("vertices")
    if isinstance(vertices, (list, tuple)):
        rows.append(("Vertices", str(len(vertices))))
    return rows


def describe_item(item: PolylineItem) -> List[Row]:
    rows: List[Row] = [
        ("Id", item.id),
        ("Layer", item.layer),
        ("Type", item.type),
        ("Points", str(len(item.points))),
        ("Length", format_number(polyline_length(item.points))),
    ]
    if is_closed(item.points):
        kind = "rectangle" if is_axis_aligned_rect(item.points) else "closed"
        rows.append(("Shape", kind))
        rows.append(("Area", format_number(polygon_area(item.points))))
    else:
        rows.append(("Shape", "open"))
    return rows


def describe(item: PolylineItem) -> List[Row]:
    """Item summary followed by the rows of its source entity, if any."""
    rows = describe_item(item)
    source = item.source or {}
    entity = source.get("entity")
    if isinstance(entity, Mapping):
        rows.extend(describe_entity(entity))
    return rows
