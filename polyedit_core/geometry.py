"""Point and bounds helpers for the polyline editing engine.

Points are plain ``(x, y)`` tuples in model space. Anything that touches a whole
point list goes through numpy so that moving a flattened spline with thousands
of vertices costs the same code path as moving a two-point line.
"""
from __future__ import annotations

import math
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

Point = Tuple[float, float]
BBox = Tuple[float, float, float, float]

EPS = 1e-12
CLOSED_TOL = 1e-6


def is_finite_point(point: Sequence[float]) -> bool:
    return math.isfinite(point[0]) and math.isfinite(point[1])


def points_match(p1: Sequence[float], p2: Sequence[float], tol: float = CLOSED_TOL) -> bool:
    return abs(p1[0] - p2[0]) <= tol and abs(p1[1] - p2[1]) <= tol


def _as_array(points: Sequence[Sequence[float]]) -> np.ndarray:
    return np.asarray(points, dtype=float).reshape(-1, 2)


def _to_points(arr: np.ndarray) -> List[Point]:
    return [(float(x), float(y)) for x, y in arr]


def project_point_to_segment(p: Sequence[float], a: Sequence[float], b: Sequence[float]) -> Tuple[Point, float]:
    """Project ``p`` onto segment ``a``-``b``; returns the foot point and clamped ``t``."""
    ax, ay = float(a[0]), float(a[1])
    abx = float(b[0]) - ax
    aby = float(b[1]) - ay
    denom = abx * abx + aby * aby
    if denom <= EPS:
        return (ax, ay), 0.0
    t = ((float(p[0]) - ax) * abx + (float(p[1]) - ay) * aby) / denom
    t = max(0.0, min(1.0, t))
    return (ax + abx * t, ay + aby * t), t


def nearest_segment(point: Sequence[float], points: Sequence[Sequence[float]]) -> Optional[Tuple[int, Point, float]]:
    """Return ``(start_index, projection, distance)`` for the closest segment.

    Every consecutive pair is tested; the projection parameter is clamped to
    ``[0, 1]`` so the result always lies on the polyline.
    """
    if len(points) < 2:
        return None
    pts = _as_array(points)
    a = pts[:-1]
    seg = pts[1:] - a
    denom = np.sum(seg ** 2, axis=1)
    to_point = np.asarray(point, dtype=float) - a
    with np.errstate(divide="ignore", invalid="ignore"):
        t = np.sum(to_point * seg, axis=1) / denom
    t = np.where(denom <= EPS, 0.0, t)
    t = np.clip(t, 0.0, 1.0)
    projection = a + seg * t[:, None]
    dist = np.hypot(point[0] - projection[:, 0], point[1] - projection[:, 1])
    idx = int(np.argmin(dist))
    return idx, (float(projection[idx, 0]), float(projection[idx, 1])), float(dist[idx])


def point_to_polyline_distance(point: Sequence[float], polyline: Sequence[Sequence[float]]) -> float:
    """Compute the minimum distance from ``point`` to the given ``polyline``."""
    if len(polyline) == 0:
        return float("inf")
    if len(polyline) == 1:
        return float(math.hypot(point[0] - polyline[0][0], point[1] - polyline[0][1]))
    hit = nearest_segment(point, polyline)
    return hit[2] if hit is not None else float("inf")


def polyline_length(points: Sequence[Sequence[float]]) -> float:
    """Return the cumulative length of a polyline."""
    if len(points) < 2:
        return 0.0
    delta = np.diff(_as_array(points), axis=0)
    return float(np.sum(np.hypot(delta[:, 0], delta[:, 1])))


def polygon_area(points: Sequence[Sequence[float]]) -> float:
    """Return the absolute area spanned by a closed polygon."""
    if len(points) < 3:
        return 0.0
    pts = _as_array(points)
    x = pts[:, 0]
    y = pts[:, 1]
    return float(0.5 * abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))


# ---------------------------------------------------------------------------
# Bounds


def bounds_of(points: Sequence[Sequence[float]]) -> Optional[BBox]:
    if len(points) == 0:
        return None
    pts = _as_array(points)
    mins = pts.min(axis=0)
    maxs = pts.max(axis=0)
    return (float(mins[0]), float(mins[1]), float(maxs[0]), float(maxs[1]))


def merge_bounds(a: Optional[BBox], b: Optional[BBox]) -> Optional[BBox]:
    if a is None:
        return b
    if b is None:
        return a
    return (min(a[0], b[0]), min(a[1], b[1]), max(a[2], b[2]), max(a[3], b[3]))


def accumulate_bounds(polylines: Iterable[Sequence[Sequence[float]]]) -> Optional[BBox]:
    total: Optional[BBox] = None
    for points in polylines:
        total = merge_bounds(total, bounds_of(points))
    return total


def bounds_center(bbox: BBox) -> Point:
    return ((bbox[0] + bbox[2]) / 2.0, (bbox[1] + bbox[3]) / 2.0)


# ---------------------------------------------------------------------------
# Shape tests


def is_closed(points: Sequence[Sequence[float]], tol: float = CLOSED_TOL) -> bool:
    """True when the last point repeats the first within ``tol``."""
    return len(points) >= 3 and points_match(points[0], points[-1], tol)


def is_axis_aligned_rect(points: Sequence[Sequence[float]], tol: float = CLOSED_TOL) -> bool:
    """True for a closed 4-corner ring whose edges run along the axes."""
    ring = list(points)
    if is_closed(ring, tol):
        ring = ring[:-1]
    if len(ring) != 4:
        return False
    for i in range(4):
        a = ring[i]
        b = ring[(i + 1) % 4]
        horizontal = abs(a[1] - b[1]) <= tol and abs(a[0] - b[0]) > tol
        vertical = abs(a[0] - b[0]) <= tol and abs(a[1] - b[1]) > tol
        if not (horizontal or vertical):
            return False
    return True


# ---------------------------------------------------------------------------
# Affine helpers


def translate_points(points: Sequence[Sequence[float]], dx: float, dy: float) -> List[Point]:
    pts = _as_array(points) + np.array([dx, dy], dtype=float)
    return _to_points(pts)


def scale_points(points: Sequence[Sequence[float]], sx: float, sy: float, center: Sequence[float]) -> List[Point]:
    c = np.asarray(center, dtype=float)
    pts = (_as_array(points) - c) * np.array([sx, sy], dtype=float) + c
    return _to_points(pts)


def rotate_points(points: Sequence[Sequence[float]], degrees: float, center: Sequence[float]) -> List[Point]:
    """Rotate counter-clockwise (model y up) by ``degrees`` around ``center``."""
    rad = math.radians(degrees)
    cos_a = math.cos(rad)
    sin_a = math.sin(rad)
    rot = np.array([[cos_a, -sin_a], [sin_a, cos_a]], dtype=float)
    c = np.asarray(center, dtype=float)
    pts = (_as_array(points) - c) @ rot.T + c
    return _to_points(pts)


def all_finite(points: Sequence[Sequence[float]]) -> bool:
    return bool(np.all(np.isfinite(_as_array(points)))) if len(points) else True
