"""Tests for recursive plot subdivision."""

import numpy as np
import pytest

from py_settlement.core.alea_prng import AleaPRNG
from py_settlement.core.geometry import polygon_area
from py_settlement.core.subdivision import (
    bisect_polygon,
    constrain_road_generator_cells,
    longest_edge,
    push_polygon_from_line,
    push_polygon_from_path,
    subdivide,
)


@pytest.fixture
def square():
    """20m x 20m block."""
    return np.array([[0.0, 0.0], [20.0, 0.0], [20.0, 20.0], [0.0, 20.0]])


@pytest.fixture
def e_shape():
    """Concave block whose perpendicular through the bottom edge crosses four edges."""
    return np.array([
        [0.0, 0.0], [40.0, 0.0], [40.0, 5.0], [10.0, 5.0],
        [10.0, 10.0], [40.0, 10.0], [40.0, 15.0], [0.0, 15.0],
    ])


def _grid(polygon, max_depth=10, empty_prob=0.0, alley_chance=0.0, alley_width=0.0, seed=1):
    """Subdivide with all chaos switched off."""
    return subdivide(polygon, 15.0, 0.0, 0.0, empty_prob, 0, AleaPRNG(seed),
                     max_depth, alley_chance, alley_width)


class TestSubdivide:
    """Test the recursive subdivider."""

    def test_regular_grid(self, square):
        """Test that zero chaos halves the square down to 5m x 5m plots."""
        plots = _grid(square)
        areas = [abs(polygon_area(p)) for p in plots]

        assert len(plots) == 16
        assert all(a == pytest.approx(25.0) for a in areas)
        assert all(15.0 <= a < 60.0 for a in areas)
        assert sum(areas) == pytest.approx(400.0)

    def test_max_depth_zero(self, square):
        plots = _grid(square, max_depth=0)

        assert len(plots) == 2
        assert all(abs(polygon_area(p)) == pytest.approx(200.0) for p in plots)

    def test_max_depth_limits_recursion(self, square):
        plots = _grid(square, max_depth=1)

        assert len(plots) == 4
        assert all(abs(polygon_area(p)) == pytest.approx(100.0) for p in plots)

    def test_below_min_area_returned(self):
        small = np.array([[0.0, 0.0], [3.0, 0.0], [3.0, 3.0], [0.0, 3.0]])
        plots = _grid(small)

        assert len(plots) == 1
        np.testing.assert_array_equal(plots[0], small)

    def test_depth_beyond_max_returned(self, square):
        plots = subdivide(square, 15.0, 0.0, 0.0, 0.0, 11, AleaPRNG(1), 10, 0.0, 0.0)
        assert len(plots) == 1

    def test_all_plots_empty(self, square):
        assert _grid(square, empty_prob=1.0) == []

    def test_clockwise_input(self, square):
        plots = _grid(square[::-1].copy())

        assert len(plots) == 16
        assert sum(abs(polygon_area(p)) for p in plots) == pytest.approx(400.0)

    def test_alleys_remove_area(self, square):
        plots = _grid(square, alley_chance=1.0, alley_width=1.0)
        total = sum(abs(polygon_area(p)) for p in plots)

        # The first cut always gets an alley: 1m x 20m
        assert 0.0 < total <= 380.0 + 1e-6
        assert all(abs(polygon_area(p)) > 0.0 for p in plots)

    def test_failed_cut_returns_polygon(self, e_shape):
        plots = _grid(e_shape)

        assert len(plots) == 1
        assert plots[0] is e_shape

    def test_consistency(self, square):
        plots1 = subdivide(square, 15.0, 0.35, 0.25, 0.05, 0, AleaPRNG(42), 10, 0.8, 0.8)
        plots2 = subdivide(square, 15.0, 0.35, 0.25, 0.05, 0, AleaPRNG(42), 10, 0.8, 0.8)

        assert len(plots1) == len(plots2)
        for a, b in zip(plots1, plots2):
            np.testing.assert_array_equal(a, b)

    def test_chaotic_plots_stay_inside(self, square):
        plots = subdivide(square, 15.0, 0.35, 0.25, 0.0, 0, AleaPRNG(42), 10, 0.0, 0.0)
        total = sum(abs(polygon_area(p)) for p in plots)

        assert total == pytest.approx(400.0)
        for plot in plots:
            assert np.all(plot >= -1e-9)
            assert np.all(plot <= 20.0 + 1e-9)


class TestBisect:
    """Test single cuts."""

    def test_midpoint_cut(self, square):
        halves = bisect_polygon(square, 0, 0.5, 0.0, 0.0)

        assert len(halves) == 2
        assert [abs(polygon_area(h)) for h in halves] == pytest.approx([200.0, 200.0])
        np.testing.assert_allclose(halves[0][0], [10.0, 0.0])
        np.testing.assert_allclose(halves[0][-1], [10.0, 20.0])

    def test_off_center_cut(self, square):
        halves = bisect_polygon(square, 0, 0.25, 0.0, 0.0)
        assert sorted(abs(polygon_area(h)) for h in halves) == pytest.approx([100.0, 300.0])

    def test_four_intersections_fail(self, e_shape):
        halves = bisect_polygon(e_shape, 0, 0.5, 0.0, 0.0)

        assert len(halves) == 1
        assert halves[0] is e_shape

    def test_invalid_edge_index(self, square):
        assert bisect_polygon(square, 7, 0.5, 0.0, 0.0)[0] is square

    def test_separation_opens_gap(self, square):
        halves = bisect_polygon(square, 0, 0.5, 0.0, 2.0)

        assert [abs(polygon_area(h)) for h in halves] == pytest.approx([180.0, 180.0])

    def test_longest_edge_tie_takes_first(self, square):
        idx, start, length = longest_edge(square)

        assert idx == 0
        np.testing.assert_array_equal(start, [0.0, 0.0])
        assert length == pytest.approx(20.0)


class TestPushPolygon:
    """Test shrinking a polygon away from a line."""

    def test_edge_pushed_inward(self):
        polygon = np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]])
        shrunk = push_polygon_from_line(polygon, (0.0, 0.0), (10.0, 0.0), 1.0)

        np.testing.assert_allclose(shrunk, [[0, 1], [10, 1], [10, 10], [0, 10]])

    def test_only_nearby_projecting_vertices_move(self):
        triangle = np.array([[0.0, 0.0], [20.0, 0.0], [0.0, 10.0]])
        shrunk = push_polygon_from_line(triangle, (0.0, 0.0), (0.0, 1.0), 9.0)

        np.testing.assert_allclose(shrunk, [[9, 0], [20, 0], [0, 10]])

    def test_flipped_result_rejected(self):
        triangle = np.array([[0.0, 0.0], [10.0, 0.0], [5.0, 1.0]])
        result = push_polygon_from_line(triangle, (4.0, 3.0), (6.0, 3.0), 2.0)

        assert result is triangle

    def test_zero_length_line(self):
        polygon = np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0]])
        assert push_polygon_from_line(polygon, (1.0, 1.0), (1.0, 1.0), 1.0) is polygon

    def test_path(self):
        polygon = np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]])
        path = [[-5.0, 0.0], [15.0, 0.0], [15.0, 0.05]]
        shrunk = push_polygon_from_path(polygon, path, 2.0)

        np.testing.assert_allclose(shrunk, [[0, 2], [10, 2], [10, 10], [0, 10]])


class TestConstrainRoadCells:
    """Test index-space road carving."""

    def test_road_cell_snapped(self):
        points = np.array([
            [0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0], [0.0, 2.0], [10.0, 2.0],
        ])
        cells = [[0, 1, 2, 3], [0, 1, 2, 3]]
        result = constrain_road_generator_cells(cells, points, [[-5.0, 0.0], [15.0, 0.0]], [0], road_width=4.0)

        assert result[0] == [4, 5, 2, 3]
        assert result[1] == [0, 1, 2, 3]
        assert cells[0] == [0, 1, 2, 3]

    def test_no_road(self):
        cells = [[0, 1, 2]]
        points = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])

        assert constrain_road_generator_cells(cells, points, [], [0]) == cells
