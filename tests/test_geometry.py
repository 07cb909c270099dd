"""
Tests for ground-plane geometry primitives.

Covers ray intersection against circles, squares and rotated rectangles,
containment, plane crossings and circle tessellation.
"""

import math

import numpy as np
import pytest

from hazardroute.utils import geometry


def _normalized(x, z):
    return geometry.normalized_xz((x, 0.0, z))


class TestRayCircle:
    """Quadratic ray/circle intersection."""

    def test_hit_ahead(self):
        enter, exit_ = geometry.intersect_ray_circle((0, 0, 10), 5.0, (0, 0, 0), (0, 0, 1))
        assert enter == pytest.approx(5.0)
        assert exit_ == pytest.approx(15.0)

    def test_start_inside_gives_negative_enter(self):
        enter, exit_ = geometry.intersect_ray_circle((0, 0, 10), 5.0, (0, 0, 10), (0, 0, 1))
        assert enter == pytest.approx(-5.0)
        assert exit_ == pytest.approx(5.0)

    def test_miss(self):
        result = geometry.intersect_ray_circle((0, 0, 10), 5.0, (10, 0, 0), (0, 0, 1))
        assert not geometry.is_intersection(result)

    def test_elevation_is_ignored(self):
        enter, _ = geometry.intersect_ray_circle((0, 50, 10), 5.0, (0, -3, 0), (0, 0, 1))
        assert enter == pytest.approx(5.0)

    @pytest.mark.parametrize("radius,direction", [(0.0, (0, 0, 1)), (-1.0, (0, 0, 1)), (5.0, (0, 0, 0))])
    def test_degenerate_input(self, radius, direction):
        enter, exit_ = geometry.intersect_ray_circle((0, 0, 10), radius, (0, 0, 0), direction)
        assert math.isnan(enter) and math.isnan(exit_)


class TestRaySquare:
    """Slab test against axis-aligned squares."""

    def test_start_inside_parallel_axis(self):
        enter, exit_ = geometry.intersect_ray_square((0, 0, 0), 2.0, (0, 0, 0), (1, 0, 0))
        assert enter == pytest.approx(-2.0)
        assert exit_ == pytest.approx(2.0)

    def test_parallel_outside_misses(self):
        result = geometry.intersect_ray_square((0, 0, 0), 2.0, (0, 0, 5), (1, 0, 0))
        assert not geometry.is_intersection(result)

    def test_diagonal(self):
        direction = _normalized(1, 1)
        enter, exit_ = geometry.intersect_ray_square((0, 0, 0), 2.0, (-10, 0, -10), direction)
        assert enter == pytest.approx(8.0 * math.sqrt(2.0))
        assert exit_ == pytest.approx(12.0 * math.sqrt(2.0))

    def test_diagonal_miss(self):
        direction = _normalized(1, 1)
        result = geometry.intersect_ray_square((0, 0, 0), 2.0, (-10, 0, 0), direction)
        assert not geometry.is_intersection(result)

    def test_pointing_away_still_reports_negative_interval(self):
        enter, exit_ = geometry.intersect_ray_square((0, 0, 10), 2.0, (0, 0, 0), (0, 0, -1))
        assert exit_ < 0.0
        assert enter == pytest.approx(-12.0)


class TestRayRect:
    """Rotated rectangle intersection reduced to its four edges."""

    def test_unrotated_rect_matches_square(self):
        h = 2.0
        start = (-10.0, 0.0, 0.3)
        direction = (1.0, 0.0, 0.0)
        square = geometry.intersect_ray_square((0, 0, 0), h, start, direction)
        rect = geometry.intersect_ray_rect((0, 0, -h), 2 * h, h, 0.0, start, direction)
        assert rect[0] == pytest.approx(square[0])
        assert rect[1] == pytest.approx(square[1])

    def test_unrotated_rect_matches_square_diagonal(self):
        h = 3.0
        start = (-7.0, 0.0, -9.0)
        direction = _normalized(1, 1.3)
        square = geometry.intersect_ray_square((1, 0, 0), h, start, direction)
        rect = geometry.intersect_ray_rect((1, 0, -h), 2 * h, h, 0.0, start, direction)
        assert rect[0] == pytest.approx(square[0])
        assert rect[1] == pytest.approx(square[1])

    def test_rotated_quarter_turn(self):
        # extends along +X from the origin, 2 units wide
        enter, exit_ = geometry.intersect_ray_rect(
            (0, 0, 0), 10.0, 1.0, math.pi / 2, (5, 0, -5), (0, 0, 1)
        )
        assert enter == pytest.approx(4.0)
        assert exit_ == pytest.approx(6.0)

    def test_start_inside(self):
        enter, exit_ = geometry.intersect_ray_rect(
            (0, 0, 0), 10.0, 1.0, math.pi / 2, (5, 0, 0), (0, 0, 1)
        )
        assert enter == pytest.approx(-1.0)
        assert exit_ == pytest.approx(1.0)

    def test_miss(self):
        result = geometry.intersect_ray_rect((0, 0, 0), 10.0, 1.0, math.pi / 2, (-5, 0, -5), (0, 0, 1))
        assert not geometry.is_intersection(result)

    def test_contains(self):
        assert geometry.rect_contains((0, 0, 0), 10.0, 1.0, math.pi / 2, (5, 0, 0))
        assert geometry.rect_contains((0, 0, 0), 10.0, 1.0, math.pi / 2, (9.9, 0, 0.9))
        assert not geometry.rect_contains((0, 0, 0), 10.0, 1.0, math.pi / 2, (-1, 0, 0))
        assert not geometry.rect_contains((0, 0, 0), 10.0, 1.0, math.pi / 2, (5, 0, 1.5))


class TestContainmentAndPlanes:
    def test_circle_and_square_contains(self):
        assert geometry.circle_contains((0, 0, 0), 5.0, (3, 100, 4))
        assert not geometry.circle_contains((0, 0, 0), 5.0, (3.1, 0, 4))
        assert geometry.square_contains((0, 0, 0), 2.0, (2, 0, -2))
        assert not geometry.square_contains((0, 0, 0), 2.0, (2.1, 0, 0))

    def test_plane_crossings(self):
        assert geometry.intersect_z_plane((0, 0, 0), (2, 0, 4), 2.0) == pytest.approx((1.0, 0.0, 2.0))
        assert geometry.intersect_x_plane((0, 0, 0), (2, 6, 4), 1.0) == pytest.approx((1.0, 3.0, 2.0))

    def test_parallel_plane_is_none(self):
        assert geometry.intersect_z_plane((0, 0, 1), (5, 0, 1), 3.0) is None
        assert geometry.intersect_x_plane((1, 0, 0), (1, 0, 5), 3.0) is None

    def test_normalized_xz(self):
        assert geometry.normalized_xz((0, 5, 0)) is None
        assert geometry.normalized_xz((3, 0, 4)) == pytest.approx((0.6, 0.0, 0.8))
        assert geometry.direction_xz((1, 5, 1), (4, -5, 5)) == pytest.approx((0.6, 0.0, 0.8))

    def test_helpers(self):
        assert geometry.max_abs_coord_xz((-3, 99, 2)) == 3
        assert geometry.clamp_x((15, 1, 2), -10, 10) == (10, 1, 2)
        assert geometry.distance_xz((0, 0, 0), (3, 10, 4)) == pytest.approx(5.0)


class TestTessellation:
    def test_segment_count_is_minimal_and_even(self):
        segments = geometry.calculate_circle_segments(5.0, 0.1)
        assert segments == 16
        assert segments % 2 == 0
        # chord error respected
        assert 5.0 * (1 - math.cos(math.pi / segments)) <= 0.1

    def test_segment_count_bounds(self):
        assert geometry.calculate_circle_segments(0.0, 0.1) == 4
        assert geometry.calculate_circle_segments(0.01, 1.0) == 4
        assert geometry.calculate_circle_segments(1e6, 1e-6) == 512

    def test_tessellate_circle(self):
        points = geometry.tessellate_circle((1, 2, 3), 5.0, 0.1)
        assert points.shape == (16, 3)
        distances = np.hypot(points[:, 0] - 1, points[:, 2] - 3)
        np.testing.assert_allclose(distances, 5.0)
        np.testing.assert_allclose(points[:, 1], 2.0)
