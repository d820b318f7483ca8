"""Exports: canonical JSON, minimal DXF text and printable SVG markup."""
from __future__ import annotations

import json
from typing import Any, Collection, Dict, Iterable, List, Sequence
from xml.sax.saxutils import quoteattr

from .geometry import CLOSED_TOL, Point, points_match
from .model import DEFAULT_LAYER, PolylineItem
from .styles import LayerStyle, StyleRegistry, normalize_layer_name
from .viewport import Bounds

DXF_VERSION = "AC1015"

PAGE_WIDTH_MM = 297.0
PAGE_HEIGHT_MM = 210.0
PAGE_MARGIN_MM = 10.0

DASH_PATTERNS = {
    "solid": None,
    "dash": (6.0, 4.0),
    "dot": (1.0, 3.0),
    "dashdot": (6.0, 3.0, 1.0, 3.0),
}


# ---- Canonical JSON ----------------------------------------------------------


def export_styles(items: Sequence[PolylineItem], styles: StyleRegistry) -> Dict[str, LayerStyle]:
    """Registered styles plus the defaults unseen item layers would get; the registry is not touched."""
    resolved = dict(styles.items())
    for item in items:
        name = normalize_layer_name(item.layer)
        if name not in resolved:
            resolved[name] = styles.default_style(len(resolved) - len(styles))
    return resolved


def _line_style(item: PolylineItem, resolved: Dict[str, LayerStyle]) -> Dict[str, Any]:
    merged = resolved[normalize_layer_name(item.layer)].line.asdict()
    if item.line_override is not None:
        merged.update(item.line_override.asdict())
    return merged


def canonical_document(items: Iterable[PolylineItem], styles: StyleRegistry, visible_layers: Collection[str]) -> Dict[str, Any]:
    items = list(items)
    layers: Dict[str, Any] = {}
    for name, style in export_styles(items, styles).items():
        data = style.asdict()
        data["visible"] = name in visible_layers
        layers[name] = data
    return {"polylines": [item.asdict() for item in items], "layers": layers}


def to_canonical_json(items: Iterable[PolylineItem], styles: StyleRegistry, visible_layers: Collection[str]) -> str:
    """Serialize every item (minus ``source``) plus per-layer styles and visibility."""
    return json.dumps(canonical_document(items, styles, visible_layers), indent=2)


# ---- DXF -----------------------------------------------------------------------


def _fmt(value: float) -> str:
    text = f"{float(value):.6f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def dxf_ring(points: Sequence[Point], tol: float = CLOSED_TOL) -> tuple[List[Point], bool]:
    """Drop a duplicated closing point; returns ``(vertices, closed)``."""
    vertices = list(points)
    closed = False
    if len(vertices) >= 3 and points_match(vertices[0], vertices[-1], tol):
        vertices.pop()
        closed = True
    return vertices, closed


def to_dxf_text(items: Iterable[PolylineItem]) -> str:
    """Emit a HEADER + ENTITIES stream with one LWPOLYLINE per usable item."""
    lines: List[str] = []

    def tag(code: int, value: Any) -> None:
        lines.append(str(code))
        lines.append(str(value))

    tag(0, "SECTION")
    tag(2, "HEADER")
    tag(9, "$ACADVER")
    tag(1, DXF_VERSION)
    tag(0, "ENDSEC")
    tag(0, "SECTION")
    tag(2, "ENTITIES")
    for item in items:
        vertices, closed = dxf_ring(item.points)
        if len(vertices) < 2:
            continue
        tag(0, "LWPOLYLINE")
        tag(8, (item.layer or "").strip() or DEFAULT_LAYER)
        tag(90, len(vertices))
        tag(70, 1 if closed else 0)
        for x, y in vertices:
            tag(10, _fmt(x))
            tag(20, _fmt(y))
    tag(0, "ENDSEC")
    tag(0, "EOF")
    return "\n".join(lines) + "\n"


# ---- Printable SVG ---------------------------------------------------------------


def _dasharray(line_type: str, width: float) -> str:
    pattern = DASH_PATTERNS.get(line_type)
    if not pattern:
        return ""
    return " ".join(_fmt(step * width) for step in pattern)


def to_printable_markup(items: Iterable[PolylineItem], view: Bounds, styles: StyleRegistry) -> str:
    """Render an A4 landscape SVG whose viewBox is the current view window."""
    inner_w = PAGE_WIDTH_MM - 2 * PAGE_MARGIN_MM
    inner_h = PAGE_HEIGHT_MM - 2 * PAGE_MARGIN_MM
    view_box = f"{_fmt(view.min_x)} {_fmt(-view.max_y)} {_fmt(view.width)} {_fmt(view.height)}"
    out: List[str] = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{_fmt(PAGE_WIDTH_MM)}mm" '
            f'height="{_fmt(PAGE_HEIGHT_MM)}mm" viewBox="0 0 {_fmt(PAGE_WIDTH_MM)} {_fmt(PAGE_HEIGHT_MM)}">'
        ),
        (
            f'<svg x="{_fmt(PAGE_MARGIN_MM)}" y="{_fmt(PAGE_MARGIN_MM)}" width="{_fmt(inner_w)}" '
            f'height="{_fmt(inner_h)}" viewBox="{view_box}" preserveAspectRatio="xMidYMid meet">'
        ),
    ]
    items = list(items)
    resolved = export_styles(items, styles)
    for item in items:
        style = _line_style(item, resolved)
        width = float(style["width"])
        points = " ".join(f"{_fmt(x)},{_fmt(-y)}" for x, y in item.points)
        attrs = [
            f"points={quoteattr(points)}",
            'fill="none"',
            f"stroke={quoteattr(style['color'])}",
            f'stroke-width="{_fmt(width)}"',
            'vector-effect="non-scaling-stroke"',
            'stroke-linejoin="round"',
        ]
        dash = _dasharray(style["type"], width)
        if dash:
            attrs.append(f'stroke-dasharray="{dash}"')
        out.append(f'<polyline data-id={quoteattr(item.id)} data-layer={quoteattr(item.layer)} {" ".join(attrs)}/>')
    out.append("</svg>")
    out.append("</svg>")
    return "\n".join(out) + "\n"
