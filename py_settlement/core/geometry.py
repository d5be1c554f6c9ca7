"""Planar geometry helpers shared by the generation stages.

Polygons are ``(n, 2)`` arrays, implicitly closed, in either winding. Every
function here is total: degenerate input gives a defined zero/empty/fallback
result instead of raising.
"""

from typing import Optional, Tuple

import numpy as np

from ..config import settings

# Area below which a polygon is treated as degenerate
AREA_EPSILON = float(np.finfo(np.float32).eps)


def as_polygon(vertices) -> np.ndarray:
    """Coerce a vertex sequence to a float ``(n, 2)`` array."""
    polygon = np.asarray(vertices, dtype=np.float64)
    if polygon.ndim == 2 and polygon.shape[1] == 2:
        return polygon
    if polygon.size == 0:
        return polygon.reshape(0, 2)
    return polygon.reshape(-1, 2)


def polygon_area(polygon) -> float:
    """Signed shoelace area. Positive for CCW, 0.0 for fewer than 3 vertices."""
    polygon = as_polygon(polygon)
    if len(polygon) < 3:
        return 0.0

    x = polygon[:, 0]
    y = polygon[:, 1]
    x_next = np.roll(x, -1)
    y_next = np.roll(y, -1)
    return float(np.sum(x * y_next - x_next * y) / 2.0)


def polygon_centroid(polygon, area: float) -> np.ndarray:
    """Area-weighted centroid.

    Returns the zero vector for degenerate input (``area == 0`` or fewer than
    3 vertices); callers must check that before trusting the result.
    """
    polygon = as_polygon(polygon)
    if len(polygon) < 3 or area == 0.0:
        return np.zeros(2)

    x = polygon[:, 0]
    y = polygon[:, 1]
    x_next = np.roll(x, -1)
    y_next = np.roll(y, -1)
    cross = x * y_next - x_next * y

    cx = np.sum((x + x_next) * cross)
    cy = np.sum((y + y_next) * cross)
    return np.array([cx, cy]) / (6.0 * area)


def line_segment_intersection(p1, p2, p3, p4) -> Optional[np.ndarray]:
    """
    Intersection of segments p1-p2 and p3-p4 via Cramer's rule.

    Returns:
        Intersection point, or None if the segments are parallel or the
        intersection lies outside either segment
    """
    p1 = np.asarray(p1, dtype=np.float64)
    p2 = np.asarray(p2, dtype=np.float64)
    p3 = np.asarray(p3, dtype=np.float64)
    p4 = np.asarray(p4, dtype=np.float64)

    s1 = p2 - p1
    s2 = p4 - p3

    denom = s1[0] * s2[1] - s2[0] * s1[1]
    if abs(denom) < 1e-6:
        return None

    s = (s1[0] * (p1[1] - p3[1]) - s1[1] * (p1[0] - p3[0])) / denom
    t = (s2[0] * (p1[1] - p3[1]) - s2[1] * (p1[0] - p3[0])) / denom

    if 0.0 <= s <= 1.0 and 0.0 <= t <= 1.0:
        return p1 + t * s1
    return None


def calculate_circumcenter(p1, p2, p3, max_distance: Optional[float] = None) -> Tuple[float, float]:
    """
    Circumcenter of a triangle from the perpendicular-bisector linear system.

    Falls back to the triangle centroid when the points are collinear, or when
    the circumcenter is farther than ``max_distance`` from the centroid (or
    from the origin along either axis). Sliver triangles otherwise produce
    runaway circumcenters.

    Args:
        p1, p2, p3: Triangle vertices as (x, y)
        max_distance: Plausibility bound, defaults to the canvas-derived bound

    Returns:
        (x, y) circumcenter or centroid
    """
    if max_distance is None:
        max_distance = settings.circumcenter_max_distance

    ax, ay = float(p1[0]), float(p1[1])
    bx, by = float(p2[0]), float(p2[1])
    cx, cy = float(p3[0]), float(p3[1])

    centroid_x = (ax + bx + cx) / 3.0
    centroid_y = (ay + by + cy) / 3.0

    # d = 2 * det | 1 x1 y1 | 1 x2 y2 | 1 x3 y3 |
    d = 2.0 * (ax * (by - cy) + bx * (cy - ay) + cx * (ay - by))
    if abs(d) < np.finfo(np.float64).eps:
        return centroid_x, centroid_y

    a_sq = ax * ax + ay * ay
    b_sq = bx * bx + by * by
    c_sq = cx * cx + cy * cy

    ux = (a_sq * (by - cy) + b_sq * (cy - ay) + c_sq * (ay - by)) / d
    uy = (a_sq * (cx - bx) + b_sq * (ax - cx) + c_sq * (bx - ax)) / d

    dist_from_centroid = np.hypot(ux - centroid_x, uy - centroid_y)
    if dist_from_centroid > max_distance or abs(ux) > max_distance or abs(uy) > max_distance:
        return centroid_x, centroid_y

    return ux, uy


def point_in_polygon(point, polygon) -> bool:
    """Ray-casting (crossing number) test. False for fewer than 3 vertices."""
    polygon = as_polygon(polygon)
    if len(polygon) < 3:
        return False

    px, py = float(point[0]), float(point[1])
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > py) != (yj > py) and px < (xj - xi) * (py - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def point_to_segment_distance(point, line_start, line_end) -> float:
    """Shortest distance from a point to the segment line_start-line_end."""
    point = np.asarray(point, dtype=np.float64)
    line_start = np.asarray(line_start, dtype=np.float64)
    line_vec = np.asarray(line_end, dtype=np.float64) - line_start
    point_vec = point - line_start

    length = np.hypot(line_vec[0], line_vec[1])
    if length < AREA_EPSILON:
        return float(np.hypot(point_vec[0], point_vec[1]))

    t = np.clip(np.dot(point_vec, line_vec) / length ** 2, 0.0, 1.0)
    projection = line_start + line_vec * t
    return float(np.hypot(*(point - projection)))


def sort_by_angle(points: np.ndarray, center) -> np.ndarray:
    """Indices ordering ``points`` by angle around ``center`` (stable)."""
    angles = np.arctan2(points[:, 1] - center[1], points[:, 0] - center[0])
    return np.argsort(angles, kind="stable")
