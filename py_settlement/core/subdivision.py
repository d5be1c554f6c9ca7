"""
Recursive plot subdivision.

A block polygon is repeatedly cut across its longest edge until the pieces
reach building size. Cut position, cut angle, alleys, plot size and empty
plots are all drawn from a single seeded PRNG threaded through the recursion,
so a block always subdivides the same way for the same seed.
"""

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
import structlog

from ..config import settings
from .alea_prng import AleaPRNG
from .geometry import (
    as_polygon,
    line_segment_intersection,
    point_to_segment_distance,
    polygon_area,
    polygon_centroid,
)

logger = structlog.get_logger()

# Halves at or below this absolute area are dropped after a cut
MIN_HALF_AREA = 0.1
# A shrink that leaves less than this fraction of the area is rejected
MIN_SHRINK_RATIO = 0.2
# Road segments at or below this length are ignored when carving corridors
MIN_ROAD_SEGMENT = 0.1


def subdivide(polygon, min_area: float, grid_chaos: float, size_chaos: float,
              empty_prob: float, depth: int, rng: AleaPRNG, max_depth: int,
              alley_chance: float, alley_width: float) -> List[np.ndarray]:
    """
    Recursively subdivide a polygon into building plots.

    Draw order per call: cut ratio, cut angle, alley decision, then for each
    half its size factor followed by either the empty-plot draw (terminal
    half) or the recursive call.

    Args:
        polygon: Block polygon, either winding
        min_area: Minimum plot area
        grid_chaos: 0-1 spread of cut position and angle
        size_chaos: 0-1 spread of per-plot size threshold
        empty_prob: Probability a finished plot is left empty
        depth: Current recursion depth (0 at the top)
        rng: Seeded PRNG shared by the whole recursion
        max_depth: Recursion limit
        alley_chance: Alley probability at depth 0, decays linearly to 0 at max_depth
        alley_width: Gap inserted at alley cuts

    Returns:
        List of plot polygons
    """
    polygon = as_polygon(polygon)

    if depth > max_depth:
        return [polygon]

    area = abs(polygon_area(polygon))
    if area < min_area:
        return [polygon]

    longest = longest_edge(polygon)
    if longest is None:
        return [polygon]
    longest_idx = longest[0]

    spread = 0.8 * grid_chaos
    ratio = (1.0 - spread) / 2.0 + rng.random() * spread
    # No rotation close to the terminal size, it produces slivers
    angle_spread = 0.0 if area < min_area * 4.0 else math.pi / 6.0 * grid_chaos
    angle_offset = (rng.random() - 0.5) * angle_spread

    depth_factor = 1.0 - depth / max_depth if max_depth > 0 else 0.0
    separation = alley_width if rng.chance(alley_chance * depth_factor) else 0.0

    halves = bisect_polygon(polygon, longest_idx, ratio, angle_offset, separation)
    if len(halves) == 1 and halves[0] is polygon:
        return [polygon]

    plots = []
    for half in halves:
        size_factor = 2.0 ** (4.0 * size_chaos * (rng.random() - 0.5))
        adjusted_min = min_area * size_factor

        if abs(polygon_area(half)) < adjusted_min * 2.0:
            if rng.random() >= empty_prob:
                plots.append(half)
        else:
            plots.extend(subdivide(
                half, min_area, grid_chaos, size_chaos, empty_prob, depth + 1,
                rng, max_depth, alley_chance, alley_width,
            ))

    return plots


def longest_edge(polygon) -> Optional[Tuple[int, np.ndarray, float]]:
    """Find the vertex that starts the longest edge.

    Returns:
        (index, start vertex, edge length), or None for fewer than 2 vertices
    """
    polygon = as_polygon(polygon)
    if len(polygon) < 2:
        return None

    lengths = np.linalg.norm(np.roll(polygon, -1, axis=0) - polygon, axis=1)
    idx = int(np.argmax(lengths))
    return idx, polygon[idx], float(lengths[idx])


def bisect_polygon(polygon, start_idx: int, ratio: float, angle_offset: float,
                   separation: float) -> List[np.ndarray]:
    """
    Cut a polygon across edge ``start_idx``.

    The cut passes through the point at ``ratio`` along the edge, runs
    perpendicular to it rotated by ``angle_offset`` and is extended past the
    polygon's bounding box. The cut must cross exactly two edges; anything
    else returns ``[polygon]`` (the same object) to signal failure.

    With ``separation > 0`` each half is pushed ``separation / 2`` away from
    the cut line, leaving an alley between them.

    Returns:
        One or two polygons, or ``[polygon]`` if the cut failed
    """
    polygon = as_polygon(polygon)
    n = len(polygon)
    if n < 3 or not 0 <= start_idx < n:
        return [polygon]

    start_v = polygon[start_idx]
    edge_dir = polygon[(start_idx + 1) % n] - start_v
    cut_point = start_v + edge_dir * ratio

    perp = np.array([-edge_dir[1], edge_dir[0]])
    perp_length = np.hypot(perp[0], perp[1])
    if perp_length == 0.0:
        return [polygon]
    perp /= perp_length

    cos_a = math.cos(angle_offset)
    sin_a = math.sin(angle_offset)
    rotated = np.array([
        perp[0] * cos_a - perp[1] * sin_a,
        perp[0] * sin_a + perp[1] * cos_a,
    ])

    extent = polygon.max(axis=0) - polygon.min(axis=0)
    line_extent = np.hypot(extent[0], extent[1])
    line_start = cut_point - rotated * line_extent
    line_end = cut_point + rotated * line_extent

    intersections = []
    for i in range(n):
        hit = line_segment_intersection(line_start, line_end, polygon[i], polygon[(i + 1) % n])
        if hit is not None:
            intersections.append((i, hit))

    if len(intersections) != 2:
        return [polygon]

    (idx1, int1), (idx2, int2) = intersections
    first = np.vstack([int1, polygon[idx1 + 1:idx2 + 1], int2])
    second = np.vstack([int2, polygon[idx2 + 1:], polygon[:idx1 + 1], int1])

    result = []
    for half in (first, second):
        if len(half) < 3 or abs(polygon_area(half)) <= MIN_HALF_AREA:
            continue
        if separation > 0.0:
            half = push_polygon_from_line(half, line_start, line_end, separation * 0.5)
        result.append(half)

    if not result:
        return [polygon]
    return result


def push_polygon_from_line(polygon, line_start, line_end, distance: float) -> np.ndarray:
    """
    Shrink a polygon away from a line segment.

    Vertices within ``2 * distance`` of the segment that project onto it
    (with a 10% overhang) move ``distance`` along the segment normal, towards
    the side the polygon's centroid is on. If that leaves less than 20% of the
    original area, or flips the winding, the original polygon is returned.
    """
    polygon = as_polygon(polygon)
    if len(polygon) < 3:
        return polygon

    line_start = np.asarray(line_start, dtype=np.float64)
    line_vec = np.asarray(line_end, dtype=np.float64) - line_start
    length_sq = float(np.dot(line_vec, line_vec))
    if length_sq == 0.0:
        return polygon

    line_dir = line_vec / math.sqrt(length_sq)
    line_normal = np.array([-line_dir[1], line_dir[0]])

    area = polygon_area(polygon)
    centroid = polygon_centroid(polygon, area)
    direction = line_normal if np.dot(centroid - line_start, line_normal) > 0.0 else -line_normal

    shrunk = polygon.copy()
    for k, vertex in enumerate(polygon):
        if point_to_segment_distance(vertex, line_start, line_start + line_vec) >= distance * 2.0:
            continue
        t = np.dot(vertex - line_start, line_vec) / length_sq
        if -0.1 <= t <= 1.1:
            shrunk[k] = vertex + direction * distance

    # Compare in the original winding so a flipped result counts as collapsed
    orientation = 1.0 if area >= 0.0 else -1.0
    if polygon_area(shrunk) * orientation < abs(area) * MIN_SHRINK_RATIO:
        return polygon
    return shrunk


def push_polygon_from_path(polygon, road_path: Sequence, distance: float) -> np.ndarray:
    """Apply ``push_polygon_from_line`` for every usable segment of a path."""
    path = as_polygon(road_path)
    polygon = as_polygon(polygon)
    for i in range(len(path) - 1):
        if np.linalg.norm(path[i + 1] - path[i]) > MIN_ROAD_SEGMENT:
            polygon = push_polygon_from_line(polygon, path[i], path[i + 1], distance)
    return polygon


def constrain_road_generator_cells(cells: List[List[int]], points: np.ndarray, road_path: Sequence,
                                   road_cell_indices: Sequence[int],
                                   road_width: Optional[float] = None) -> List[List[int]]:
    """
    Pull road cells back from the road, in index space.

    Each listed cell is shrunk away from the road by half the road width and
    every shrunk vertex is snapped to the nearest existing diagram point.
    Other cells are returned unchanged.

    Returns:
        New cell index lists
    """
    if road_width is None:
        road_width = settings.road_width

    result = [list(cell) for cell in cells]
    path = as_polygon(road_path)
    if len(path) < 2 or len(road_cell_indices) == 0 or len(points) == 0:
        return result

    points = np.asarray(points, dtype=np.float64)
    for cell_idx in road_cell_indices:
        cell = result[cell_idx]
        if len(cell) < 3:
            continue

        polygon = push_polygon_from_path(points[cell], path, road_width * 0.5)
        for v, vertex in enumerate(polygon):
            cell[v] = int(np.argmin(np.linalg.norm(points - vertex, axis=1)))

    logger.debug("Road cells constrained", cells=len(road_cell_indices))
    return result
