"""Model-space view window and the device <-> model mapping.

The visible window is a model-space rectangle. The rendering surface shows it
scaled uniformly to fit (centred, letterboxed on the long axis) with the y axis
flipped: model y grows up, device y grows down. Every update is validated and
applied atomically; an update that would produce a non-finite or empty window
is dropped and the previous bounds stay.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

Point = Tuple[float, float]

MIN_VIEW_SIZE = 1.0
MAX_VIEW_SIZE = 1e9
MAX_PAD_RATIO = 0.5
# exp() overflows past ~709; anything beyond this already hits the size clamp
MAX_ZOOM_EXPONENT = 700.0


@dataclass(frozen=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Point:
        return ((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)

    def is_valid(self) -> bool:
        values = (self.min_x, self.min_y, self.max_x, self.max_y)
        if not all(math.isfinite(v) for v in values):
            return False
        width = self.width
        height = self.height
        return math.isfinite(width) and math.isfinite(height) and width > 0 and height > 0

    def translated(self, dx: float, dy: float) -> "Bounds":
        return Bounds(self.min_x + dx, self.min_y + dy, self.max_x + dx, self.max_y + dy)

    def asdict(self) -> Dict[str, float]:
        return {"minX": self.min_x, "minY": self.min_y, "maxX": self.max_x, "maxY": self.max_y}

    @classmethod
    def from_bbox(cls, bbox: Sequence[float]) -> "Bounds":
        return cls(float(bbox[0]), float(bbox[1]), float(bbox[2]), float(bbox[3]))


DEFAULT_BOUNDS = Bounds(0.0, 0.0, 100.0, 100.0)


@dataclass(frozen=True)
class ScreenTransform:
    """Uniform scale plus letterbox offset for one bounds/surface pair."""

    scale: float
    offset_x: float
    offset_y: float
    bounds: Bounds

    def to_model(self, point: Sequence[float]) -> Point:
        x = self.bounds.min_x + (float(point[0]) - self.offset_x) / self.scale
        y = self.bounds.max_y - (float(point[1]) - self.offset_y) / self.scale
        return (x, y)

    def to_device(self, point: Sequence[float]) -> Point:
        x = self.offset_x + (float(point[0]) - self.bounds.min_x) * self.scale
        y = self.offset_y + (self.bounds.max_y - float(point[1])) * self.scale
        return (x, y)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class Viewport:
    """Owns the current view bounds and the rendering surface size."""

    def __init__(self, surface_width: float = 800.0, surface_height: float = 600.0, bounds: Optional[Bounds] = None) -> None:
        self._surface = (800.0, 600.0)
        self.set_surface(surface_width, surface_height)
        self._bounds = DEFAULT_BOUNDS
        if bounds is not None:
            self.set_bounds(bounds)

    # ------------------------------------------------------------------
    # State
    @property
    def bounds(self) -> Bounds:
        return self._bounds

    @property
    def surface(self) -> Tuple[float, float]:
        return self._surface

    def set_surface(self, width: float, height: float) -> bool:
        if not (math.isfinite(width) and math.isfinite(height)) or width <= 0 or height <= 0:
            return False
        self._surface = (float(width), float(height))
        return True

    def set_bounds(self, bounds: Bounds) -> bool:
        if not bounds.is_valid():
            return False
        self._bounds = bounds
        return True

    def reset(self) -> None:
        self._bounds = DEFAULT_BOUNDS

    # ------------------------------------------------------------------
    # Mapping
    def transform(self, bounds: Optional[Bounds] = None) -> ScreenTransform:
        b = bounds or self._bounds
        sw, sh = self._surface
        scale = min(sw / b.width, sh / b.height)
        offset_x = (sw - b.width * scale) / 2.0
        offset_y = (sh - b.height * scale) / 2.0
        return ScreenTransform(scale=scale, offset_x=offset_x, offset_y=offset_y, bounds=b)

    def device_to_model(self, point: Sequence[float], bounds: Optional[Bounds] = None) -> Point:
        return self.transform(bounds).to_model(point)

    def model_to_device(self, point: Sequence[float]) -> Point:
        return self.transform().to_device(point)

    def model_length(self, device_length: float) -> float:
        """Convert a device distance (pixels) to model units at the current zoom."""
        return float(device_length) / self.transform().scale

    # ------------------------------------------------------------------
    # Navigation
    def zoom_at(self, device_point: Sequence[float], delta: float, rate: float = 0.001) -> bool:
        """Exponential wheel zoom keeping the model point under the cursor fixed."""
        exponent = float(delta) * rate
        if not math.isfinite(exponent):
            return False
        factor = math.exp(_clamp(exponent, -MAX_ZOOM_EXPONENT, MAX_ZOOM_EXPONENT))
        b = self._bounds
        anchor_x, anchor_y = self.device_to_model(device_point)
        fx = (anchor_x - b.min_x) / b.width
        fy = (anchor_y - b.min_y) / b.height
        new_w = _clamp(b.width * factor, MIN_VIEW_SIZE, MAX_VIEW_SIZE)
        new_h = _clamp(b.height * factor, MIN_VIEW_SIZE, MAX_VIEW_SIZE)
        min_x = anchor_x - fx * new_w
        min_y = anchor_y - fy * new_h
        return self.set_bounds(Bounds(min_x, min_y, min_x + new_w, min_y + new_h))

    def pan_by(self, dx: float, dy: float) -> bool:
        return self.set_bounds(self._bounds.translated(float(dx), float(dy)))

    def fit_to_content(self, target: Optional[Bounds], pad_ratio: float = 0.05) -> bool:
        """Frame ``target`` with padding, matching the surface aspect ratio."""
        if target is None or not target.is_valid():
            return self.set_bounds(DEFAULT_BOUNDS)
        pad_ratio = _clamp(float(pad_ratio), 0.0, MAX_PAD_RATIO) if math.isfinite(pad_ratio) else 0.0
        pad = pad_ratio * max(target.width, target.height)
        min_x = target.min_x - pad
        min_y = target.min_y - pad
        max_x = target.max_x + pad
        max_y = target.max_y + pad
        width = max_x - min_x
        height = max_y - min_y
        sw, sh = self._surface
        aspect = sw / sh
        if width / height < aspect:
            extra = (height * aspect - width) / 2.0
            min_x -= extra
            max_x += extra
        else:
            extra = (width / aspect - height) / 2.0
            min_y -= extra
            max_y += extra
        return self.set_bounds(Bounds(min_x, min_y, max_x, max_y))

    def snapshot(self) -> Dict[str, Any]:
        return {"bounds": self._bounds.asdict(), "surface": {"width": self._surface[0], "height": self._surface[1]}}
