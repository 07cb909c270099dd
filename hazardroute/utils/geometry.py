"""
Ground-plane geometry primitives for hazard intersection tests.

All functions are pure. Points and directions are (x, y, z) tuples where y is
elevation; intersection math only looks at the X/Z ground plane. A ray is
(start, direction) with a unit-length ground direction, and ray/shape queries
return signed distances (enter, exit) along the ray:

- enter <= exit for a hit
- (nan, nan) when the ray misses or the input is degenerate
- enter < 0 when the ray starts inside the shape
"""

import math
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..constants.movement_constants import (
    PARALLEL_EPSILON,
    DEGENERATE_LENGTH,
    MIN_CIRCLE_SEGMENTS,
    MAX_CIRCLE_SEGMENTS,
)

Vec3 = Tuple[float, float, float]
Interval = Tuple[float, float]

NO_INTERSECTION: Interval = (math.nan, math.nan)


def vec3(x: float, y: float, z: float) -> Vec3:
    return (float(x), float(y), float(z))


def add(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def sub(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def scale(v: Sequence[float], k: float) -> Vec3:
    return (v[0] * k, v[1] * k, v[2] * k)


def length_sq(v: Sequence[float]) -> float:
    return v[0] * v[0] + v[1] * v[1] + v[2] * v[2]


def xz(v: Sequence[float]) -> Tuple[float, float]:
    return (v[0], v[2])


def dot_xz(a: Sequence[float], b: Sequence[float]) -> float:
    return a[0] * b[0] + a[2] * b[2]


def length_xz_sq(v: Sequence[float]) -> float:
    return v[0] * v[0] + v[2] * v[2]


def length_xz(v: Sequence[float]) -> float:
    return math.sqrt(length_xz_sq(v))


def distance_xz(a: Sequence[float], b: Sequence[float]) -> float:
    return length_xz(sub(b, a))


def normalized_xz(v: Sequence[float]) -> Optional[Vec3]:
    """Scale v so its ground-plane length is 1; None if it has no ground extent."""
    length = length_xz(v)
    if length < DEGENERATE_LENGTH:
        return None
    return (v[0] / length, v[1] / length, v[2] / length)


def direction_xz(start: Sequence[float], end: Sequence[float]) -> Optional[Vec3]:
    """Unit ground direction from start to end, ignoring elevation."""
    d = sub(end, start)
    return normalized_xz((d[0], 0.0, d[2]))


def max_abs_coord_xz(v: Sequence[float]) -> float:
    return max(abs(v[0]), abs(v[2]))


def clamp_x(v: Sequence[float], lo: float, hi: float) -> Vec3:
    return (min(max(v[0], lo), hi), v[1], v[2])


def is_intersection(interval: Interval) -> bool:
    enter, exit_ = interval
    return not (math.isnan(enter) or math.isnan(exit_))


# --------------------------------------------------------------------------- #
# Plane / segment


def intersect_z_plane(a: Sequence[float], b: Sequence[float], z: float) -> Optional[Vec3]:
    """Point on the line through a->b whose z equals the given value."""
    ab = sub(b, a)
    if abs(ab[2]) < DEGENERATE_LENGTH:
        return None
    t = (z - a[2]) / ab[2]
    return add(a, scale(ab, t))


def intersect_x_plane(a: Sequence[float], b: Sequence[float], x: float) -> Optional[Vec3]:
    """Point on the line through a->b whose x equals the given value."""
    ab = sub(b, a)
    if abs(ab[0]) < DEGENERATE_LENGTH:
        return None
    t = (x - a[0]) / ab[0]
    return add(a, scale(ab, t))


# --------------------------------------------------------------------------- #
# Ray / shape


def _valid_direction(direction: Sequence[float]) -> bool:
    return length_xz_sq(direction) >= DEGENERATE_LENGTH


def intersect_ray_circle(
    origin: Sequence[float], radius: float, start: Sequence[float], direction: Sequence[float]
) -> Interval:
    """Signed distances along the ray to the two crossings of a circle boundary."""
    if radius <= 0.0 or not _valid_direction(direction):
        return NO_INTERSECTION
    oa = sub(start, origin)
    dir_dot_oa = dot_xz(direction, oa)
    discriminant = dir_dot_oa * dir_dot_oa - length_xz_sq(oa) + radius * radius
    if discriminant < 0.0:
        return NO_INTERSECTION
    d = math.sqrt(discriminant)
    return (-dir_dot_oa - d, -dir_dot_oa + d)


def _slab(offset: float, component: float, half_side: float) -> Interval:
    if component > PARALLEL_EPSILON:
        return ((-half_side - offset) / component, (half_side - offset) / component)
    if component < -PARALLEL_EPSILON:
        return ((half_side - offset) / component, (-half_side - offset) / component)
    # parallel to this slab: inside forever or never
    if abs(offset) <= half_side:
        return (-math.inf, math.inf)
    return NO_INTERSECTION


def intersect_ray_square(
    origin: Sequence[float], half_side: float, start: Sequence[float], direction: Sequence[float]
) -> Interval:
    """Slab test against an axis-aligned square centred on origin."""
    if half_side <= 0.0 or not _valid_direction(direction):
        return NO_INTERSECTION
    oa = sub(start, origin)
    enter_x, exit_x = _slab(oa[0], direction[0], half_side)
    enter_z, exit_z = _slab(oa[2], direction[2], half_side)
    if math.isnan(enter_x) or math.isnan(enter_z):
        return NO_INTERSECTION
    enter = max(enter_x, enter_z)
    exit_ = min(exit_x, exit_z)
    if enter > exit_:
        return NO_INTERSECTION
    return (enter, exit_)


def rect_corners(
    origin: Sequence[float], length: float, half_width: float, rotation: float
) -> List[Vec3]:
    """Corners of a rectangle whose near edge is centred on origin, in winding order."""
    rd = (math.sin(rotation), 0.0, math.cos(rotation))
    rn = (rd[2], 0.0, -rd[0])
    a = add(origin, scale(rn, half_width))
    b = sub(origin, scale(rn, half_width))
    c = add(b, scale(rd, length))
    d = add(a, scale(rd, length))
    return [a, b, c, d]


def _edges(vertices: Sequence[Vec3]) -> Iterator[Tuple[Vec3, Vec3]]:
    previous = vertices[-1]
    for vertex in vertices:
        yield previous, vertex
        previous = vertex


def _inward_normal(p: Vec3, q: Vec3, center: Sequence[float]) -> Vec3:
    edge = sub(q, p)
    normal = (edge[2], 0.0, -edge[0])
    if dot_xz(normal, sub(center, p)) < 0.0:
        normal = (-normal[0], 0.0, -normal[2])
    return normal


def _rect_center(corners: Sequence[Vec3]) -> Vec3:
    return (
        sum(c[0] for c in corners) / 4.0,
        sum(c[1] for c in corners) / 4.0,
        sum(c[2] for c in corners) / 4.0,
    )


def _intersect_ray_segment(
    a: Sequence[float], b: Sequence[float], start: Sequence[float], direction: Sequence[float]
) -> float:
    """Parameter along segment a->b where the ray's supporting line crosses it."""
    ray_normal = (direction[2], 0.0, -direction[0])
    denominator = dot_xz(ray_normal, sub(b, a))
    if abs(denominator) < DEGENERATE_LENGTH:
        return math.nan
    return dot_xz(ray_normal, sub(start, a)) / denominator


def intersect_ray_rect(
    origin: Sequence[float],
    length: float,
    half_width: float,
    rotation: float,
    start: Sequence[float],
    direction: Sequence[float],
) -> Interval:
    """Signed enter/exit distances against a rotated rectangle."""
    if length <= 0.0 or half_width <= 0.0 or not _valid_direction(direction):
        return NO_INTERSECTION

    corners = rect_corners(origin, length, half_width, rotation)
    center = _rect_center(corners)
    enter = math.nan
    exit_ = math.nan
    for p, q in _edges(corners):
        t = _intersect_ray_segment(p, q, start, direction)
        if math.isnan(t) or t < 0.0 or t > 1.0:
            continue
        crossing = add(p, scale(sub(q, p), t))
        distance = dot_xz(sub(crossing, start), direction)
        # convex => at most one inward and one outward crossing
        if dot_xz(direction, _inward_normal(p, q, center)) > 0.0:
            enter = distance
        else:
            exit_ = distance

    if math.isnan(enter) or math.isnan(exit_):
        return NO_INTERSECTION
    return (enter, exit_)


def circle_contains(origin: Sequence[float], radius: float, point: Sequence[float]) -> bool:
    return length_xz_sq(sub(point, origin)) <= radius * radius


def square_contains(origin: Sequence[float], half_side: float, point: Sequence[float]) -> bool:
    return max_abs_coord_xz(sub(point, origin)) <= half_side


def rect_contains(
    origin: Sequence[float],
    length: float,
    half_width: float,
    rotation: float,
    point: Sequence[float],
) -> bool:
    corners = rect_corners(origin, length, half_width, rotation)
    center = _rect_center(corners)
    for p, q in _edges(corners):
        if dot_xz(_inward_normal(p, q, center), sub(point, p)) < 0.0:
            return False
    return True


# --------------------------------------------------------------------------- #
# Tessellation


def calculate_circle_segments(
    radius: float, max_error: float, angular_length: float = 2.0 * math.pi
) -> int:
    """
    Minimal even number of chords approximating an arc within max_error.

    The chord error for a segment of angle phi is R * (1 - cos(phi / 2)),
    so the largest admissible angle is 2 * acos(1 - error / R).
    """
    if radius <= 0.0 or max_error <= 0.0:
        return MIN_CIRCLE_SEGMENTS
    tess_angle = 2.0 * math.acos(1.0 - min(max_error / radius, 1.0))
    segments = int(math.ceil(angular_length / tess_angle))
    segments = (segments + 1) & ~1  # round up to even for symmetry
    return max(MIN_CIRCLE_SEGMENTS, min(segments, MAX_CIRCLE_SEGMENTS))


def tessellate_circle(center: Sequence[float], radius: float, max_error: float) -> np.ndarray:
    """Polygon vertices (n, 3) approximating a ground-plane circle."""
    segments = calculate_circle_segments(radius, max_error)
    angles = np.linspace(0.0, 2.0 * np.pi, segments, endpoint=False)
    points = np.empty((segments, 3), dtype=np.float64)
    points[:, 0] = center[0] + radius * np.sin(angles)
    points[:, 1] = center[1]
    points[:, 2] = center[2] + radius * np.cos(angles)
    return points
