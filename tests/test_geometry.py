"""Point math helpers: projection, bounds, shape tests and affine transforms."""

from __future__ import annotations

import math

import pytest

from polyedit_core.geometry import (
    all_finite,
    accumulate_bounds,
    bounds_of,
    is_axis_aligned_rect,
    is_closed,
    nearest_segment,
    point_to_polyline_distance,
    polygon_area,
    polyline_length,
    project_point_to_segment,
    rotate_points,
    scale_points,
    translate_points,
)


class TestProjection:
    def test_projection_is_clamped_to_segment(self):
        proj, t = project_point_to_segment((20.0, 5.0), (0.0, 0.0), (10.0, 0.0))
        assert proj == pytest.approx((10.0, 0.0))
        assert t == pytest.approx(1.0)

    def test_degenerate_segment_projects_to_start(self):
        proj, t = project_point_to_segment((3.0, 4.0), (1.0, 1.0), (1.0, 1.0))
        assert proj == pytest.approx((1.0, 1.0))
        assert t == pytest.approx(0.0)

    def test_nearest_segment_picks_closest(self):
        pts = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0)]
        idx, proj, dist = nearest_segment((11.0, 6.0), pts)
        assert idx == 1
        assert proj == pytest.approx((10.0, 6.0))
        assert dist == pytest.approx(1.0)

    def test_nearest_segment_needs_two_points(self):
        assert nearest_segment((0.0, 0.0), [(1.0, 1.0)]) is None

    def test_distance_to_polyline(self):
        pts = [(0.0, 0.0), (10.0, 0.0)]
        assert point_to_polyline_distance((5.0, 3.0), pts) == pytest.approx(3.0)


class TestMeasures:
    def test_length_and_area_of_closed_square(self):
        square = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0), (0.0, 0.0)]
        assert polyline_length(square) == pytest.approx(40.0)
        assert polygon_area(square) == pytest.approx(100.0)
        assert is_closed(square)
        assert is_axis_aligned_rect(square)

    def test_open_polyline_is_not_closed(self):
        pts = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0)]
        assert not is_closed(pts)
        assert not is_axis_aligned_rect(pts)

    def test_bounds(self):
        assert bounds_of([]) is None
        assert bounds_of([(1.0, 5.0), (-2.0, 3.0)]) == (-2.0, 3.0, 1.0, 5.0)
        total = accumulate_bounds([[(0.0, 0.0), (1.0, 1.0)], [(5.0, -1.0), (6.0, 2.0)]])
        assert total == (0.0, -1.0, 6.0, 2.0)


class TestTransforms:
    def test_translate(self):
        assert translate_points([(1.0, 2.0)], 3.0, -2.0) == [(4.0, 0.0)]

    def test_scale_about_center(self):
        square = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]
        out = scale_points(square, 2.0, 2.0, (5.0, 5.0))
        assert out == [
            pytest.approx((-5.0, -5.0)),
            pytest.approx((15.0, -5.0)),
            pytest.approx((15.0, 15.0)),
            pytest.approx((-5.0, 15.0)),
        ]

    def test_rotate_counter_clockwise(self):
        out = rotate_points([(0.0, 0.0), (10.0, 0.0)], 90.0, (5.0, 0.0))
        assert out[0] == pytest.approx((5.0, -5.0))
        assert out[1] == pytest.approx((5.0, 5.0))

    def test_all_finite(self):
        assert all_finite([(0.0, 1.0)])
        assert not all_finite([(0.0, math.inf)])
