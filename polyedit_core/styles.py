"""Per-layer styles with lazy defaults and per-item line overrides.

Each layer name maps to exactly one :class:`LayerStyle`. ``ensure_style``
creates it on first reference and always hands back the same live object, so a
colour picked in the UI is what every later render and export reads.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Set, Tuple

from .model import DEFAULT_LAYER, PolylineItem
from .normalize import (
    coerce_color,
    coerce_label,
    coerce_line_type,
    coerce_number,
    coerce_width,
)

PALETTE = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
)

# ---- Style records ---------------------------------------------------------


@dataclass
class LineStyle:
    type: str = "solid"
    color: str = PALETTE[0]
    width: float = 1.0

    def asdict(self) -> Dict[str, Any]:
        return {"type": self.type, "color": self.color, "width": float(self.width)}

    def update(self, data: Mapping[str, Any]) -> None:
        line_type = coerce_line_type(data.get("type"))
        if line_type is not None:
            self.type = line_type
        color = coerce_color(data.get("color"))
        if color is not None:
            self.color = color
        width = coerce_width(data.get("width"))
        if width is not None:
            self.width = width


@dataclass
class PointStyle:
    size: float = 4.0

    def asdict(self) -> Dict[str, Any]:
        return {"size": float(self.size)}

    def update(self, data: Mapping[str, Any]) -> None:
        size = coerce_number(data.get("size"))
        if size is not None and size > 0:
            self.size = size


@dataclass
class TextStyle:
    font_family: str = "Arial"
    italic_angle: float = 0.0
    bold: bool = False
    font_size: float = 12.0
    width_factor: float = 1.0
    color: str = "#222222"

    def asdict(self) -> Dict[str, Any]:
        return {
            "fontFamily": self.font_family,
            "italicAngle": float(self.italic_angle),
            "bold": bool(self.bold),
            "fontSize": float(self.font_size),
            "widthFactor": float(self.width_factor),
            "color": self.color,
        }

    def update(self, data: Mapping[str, Any]) -> None:
        self.font_family = coerce_label(data.get("fontFamily"), self.font_family)
        angle = coerce_number(data.get("italicAngle"))
        if angle is not None:
            self.italic_angle = angle
        if isinstance(data.get("bold"), bool):
            self.bold = data["bold"]
        size = coerce_number(data.get("fontSize"))
        if size is not None:
            self.font_size = max(1.0, size)
        factor = coerce_number(data.get("widthFactor"))
        if factor is not None and factor > 0:
            self.width_factor = factor
        color = coerce_color(data.get("color"))
        if color is not None:
            self.color = color


@dataclass
class DimensionStyle:
    scale: float = 1.0
    text_size: float = 10.0
    arrow_size: float = 6.0
    line_gap: float = 2.0

    def asdict(self) -> Dict[str, Any]:
        return {
            "scale": float(self.scale),
            "textSize": float(self.text_size),
            "arrowSize": float(self.arrow_size),
            "lineGap": float(self.line_gap),
        }

    def update(self, data: Mapping[str, Any]) -> None:
        scale = coerce_number(data.get("scale"))
        if scale is not None and scale > 0:
            self.scale = scale
        text_size = coerce_number(data.get("textSize"))
        if text_size is not None:
            self.text_size = max(1.0, text_size)
        arrow = coerce_number(data.get("arrowSize"))
        if arrow is not None and arrow > 0:
            self.arrow_size = arrow
        gap = coerce_number(data.get("lineGap"))
        if gap is not None:
            self.line_gap = max(0.0, gap)


@dataclass
class LayerStyle:
    line: LineStyle = field(default_factory=LineStyle)
    point: PointStyle = field(default_factory=PointStyle)
    text: TextStyle = field(default_factory=TextStyle)
    dim: DimensionStyle = field(default_factory=DimensionStyle)

    def asdict(self) -> Dict[str, Any]:
        return {
            "line": self.line.asdict(),
            "point": self.point.asdict(),
            "text": self.text.asdict(),
            "dim": self.dim.asdict(),
        }

    def update(self, data: Mapping[str, Any]) -> None:
        for key, target in (("line", self.line), ("point", self.point), ("text", self.text), ("dim", self.dim)):
            section = data.get(key)
            if isinstance(section, Mapping):
                target.update(section)


# ---- Registry --------------------------------------------------------------


def normalize_layer_name(name: Any) -> str:
    return coerce_label(name, DEFAULT_LAYER)


class StyleRegistry:
    """Session-owned mapping from layer name to its single live style."""

    def __init__(self) -> None:
        self._styles: Dict[str, LayerStyle] = {}

    def default_style(self, offset: int = 0) -> LayerStyle:
        """Fresh style for the layer created ``offset`` places after the current ones."""
        color = PALETTE[(len(self._styles) + offset) % len(PALETTE)]
        return LayerStyle(line=LineStyle(color=color))

    def ensure_style(self, layer: Any) -> LayerStyle:
        name = normalize_layer_name(layer)
        style = self._styles.get(name)
        if style is None:
            style = self.default_style()
            self._styles[name] = style
        return style

    def get(self, layer: Any) -> Optional[LayerStyle]:
        return self._styles.get(normalize_layer_name(layer))

    def names(self) -> Tuple[str, ...]:
        return tuple(self._styles)

    def items(self) -> Iterator[Tuple[str, LayerStyle]]:
        return iter(list(self._styles.items()))

    def __contains__(self, layer: object) -> bool:
        return normalize_layer_name(layer) in self._styles

    def __len__(self) -> int:
        return len(self._styles)

    def reset(self) -> None:
        self._styles.clear()

    def effective_line_style(self, item: PolylineItem) -> Dict[str, Any]:
        """Layer line style merged with the item's override (override wins)."""
        merged = self.ensure_style(item.layer).line.asdict()
        if item.line_override is not None:
            merged.update(item.line_override.asdict())
        return merged


def line_type_from_name(name: Any) -> Optional[str]:
    """Map a source line-type name to a renderable type.

    ``None`` means "inherit from layer" (blank, BYLAYER, BYBLOCK).
    """
    if not isinstance(name, str):
        return None
    text = name.strip().lower()
    if not text or text in ("bylayer", "byblock"):
        return None
    compact = text.replace("_", "").replace(" ", "")
    if "dashdot" in compact or "dash-dot" in compact:
        return "dashdot"
    if "dot" in compact:
        return "dot"
    if "dash" in compact:
        return "dash"
    return "solid"


def read_layer_config(layers: Any, registry: StyleRegistry) -> Set[str]:
    """Apply a canonical ``layers`` object to ``registry``; return hidden layer names."""
    hidden: Set[str] = set()
    if not isinstance(layers, Mapping):
        return hidden
    for name, data in layers.items():
        style = registry.ensure_style(name)
        if not isinstance(data, Mapping):
            continue
        style.update(data)
        if data.get("visible") is False:
            hidden.add(normalize_layer_name(name))
    return hidden
