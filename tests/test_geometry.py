"""Tests for planar geometry helpers."""

import math

import numpy as np
import pytest

from py_settlement.core.geometry import (
    calculate_circumcenter,
    line_segment_intersection,
    point_in_polygon,
    point_to_segment_distance,
    polygon_area,
    polygon_centroid,
)

UNIT_SQUARE = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])


class TestPolygonArea:
    """Test signed shoelace area."""

    def test_unit_square(self):
        assert polygon_area(UNIT_SQUARE) == pytest.approx(1.0)

    def test_winding_reversal_negates(self):
        assert polygon_area(UNIT_SQUARE[::-1]) == pytest.approx(-1.0)

    @pytest.mark.parametrize("shift", [1, 2, 3])
    def test_rotation_invariant(self, shift):
        rotated = np.roll(UNIT_SQUARE, shift, axis=0)
        assert polygon_area(rotated) == pytest.approx(polygon_area(UNIT_SQUARE))

    def test_too_few_vertices(self):
        assert polygon_area(UNIT_SQUARE[:2]) == 0.0
        assert polygon_area([]) == 0.0


class TestPolygonCentroid:
    """Test area-weighted centroid."""

    @pytest.mark.parametrize("n", [3, 5, 6, 12])
    def test_regular_polygon_centered_at_origin(self, n):
        angles = np.arange(n) * 2 * math.pi / n
        polygon = np.column_stack([np.cos(angles), np.sin(angles)]) * 7.0
        centroid = polygon_centroid(polygon, polygon_area(polygon))
        np.testing.assert_allclose(centroid, [0.0, 0.0], atol=1e-9)

    def test_square_centroid(self):
        square = UNIT_SQUARE * 2.0
        np.testing.assert_allclose(polygon_centroid(square, polygon_area(square)), [1.0, 1.0])

    def test_clockwise_square_centroid(self):
        square = (UNIT_SQUARE * 2.0)[::-1]
        np.testing.assert_allclose(polygon_centroid(square, polygon_area(square)), [1.0, 1.0])

    def test_degenerate_returns_zero(self):
        np.testing.assert_array_equal(polygon_centroid(UNIT_SQUARE, 0.0), [0.0, 0.0])
        np.testing.assert_array_equal(polygon_centroid(UNIT_SQUARE[:2], 1.0), [0.0, 0.0])


class TestLineSegmentIntersection:
    """Test segment-segment intersection."""

    def test_crossing_segments(self):
        hit = line_segment_intersection([0, 0], [2, 2], [0, 2], [2, 0])
        np.testing.assert_allclose(hit, [1.0, 1.0])

    def test_parallel_segments(self):
        assert line_segment_intersection([0, 0], [1, 0], [0, 1], [1, 1]) is None

    def test_intersection_outside_segment(self):
        # Lines meet at (1.5, 1.5), beyond the end of the first segment
        assert line_segment_intersection([0, 0], [1, 1], [3, 0], [0, 3]) is None

    def test_touching_endpoint(self):
        hit = line_segment_intersection([0, 0], [1, 0], [1, -1], [1, 1])
        np.testing.assert_allclose(hit, [1.0, 0.0])


class TestCircumcenter:
    """Test circumcenter computation and its fallbacks."""

    @pytest.mark.parametrize("side", [1.0, 10.0, 37.5])
    def test_equilateral_equidistant(self, side):
        p1 = (0.0, 0.0)
        p2 = (side, 0.0)
        p3 = (side / 2.0, side * math.sqrt(3) / 2.0)
        center = calculate_circumcenter(p1, p2, p3)

        distances = [math.dist(center, p) for p in (p1, p2, p3)]
        assert distances[0] == pytest.approx(distances[1], rel=1e-9)
        assert distances[0] == pytest.approx(distances[2], rel=1e-9)

    def test_right_triangle(self):
        center = calculate_circumcenter((0, 0), (4, 0), (0, 3))
        assert center == pytest.approx((2.0, 1.5))

    def test_collinear_falls_back_to_centroid(self):
        center = calculate_circumcenter((0, 0), (1, 1), (2, 2))
        assert center == pytest.approx((1.0, 1.0))

    def test_sliver_falls_back_to_centroid(self):
        center = calculate_circumcenter((0, 0), (1, 0), (2, 1e-9))
        assert center == pytest.approx((1.0, 1e-9 / 3.0))

    def test_custom_max_distance(self):
        # Circumcenter (2, 1.5) is 0.83 from the centroid (1.33, 1)
        center = calculate_circumcenter((0, 0), (4, 0), (0, 3), max_distance=0.5)
        assert center == pytest.approx((4.0 / 3.0, 1.0))


class TestPointInPolygon:
    """Test crossing-number containment."""

    def test_inside_and_outside(self):
        assert point_in_polygon((0.5, 0.5), UNIT_SQUARE)
        assert not point_in_polygon((1.5, 0.5), UNIT_SQUARE)
        assert not point_in_polygon((0.5, -0.1), UNIT_SQUARE)

    def test_clockwise_polygon(self):
        assert point_in_polygon((0.5, 0.5), UNIT_SQUARE[::-1])

    def test_too_few_vertices(self):
        assert not point_in_polygon((0.5, 0.0), UNIT_SQUARE[:2])


class TestPointToSegmentDistance:
    """Test point-to-segment distance."""

    def test_perpendicular(self):
        assert point_to_segment_distance((0, 1), (-1, 0), (1, 0)) == pytest.approx(1.0)

    def test_beyond_segment_end(self):
        assert point_to_segment_distance((3, 0), (0, 0), (1, 0)) == pytest.approx(2.0)

    def test_degenerate_segment(self):
        assert point_to_segment_distance((3, 4), (0, 0), (0, 0)) == pytest.approx(5.0)
