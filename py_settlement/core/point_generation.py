"""
Generator point placement.

Regular generators are spread along a noisy spiral around the origin and are
later relaxed. Fixed generators bracket the settlement boundary and the road
path in pairs so that the Voronoi edges between each pair follow the
constraint line.
"""

import math
from typing import Optional, Sequence

import numpy as np
import structlog

from ..config import settings
from .alea_prng import AleaPRNG
from .geometry import as_polygon, polygon_area

logger = structlog.get_logger()

# Edges or segments shorter than this are skipped
MIN_EDGE_LENGTH = 0.001
# Road segments whose usable length (after corner exclusion) is below this get no generators
MIN_ROAD_SEGMENT = 0.1


def generate_regular_points(count: int, width: float, height: float,
                            spread: float, seed: int) -> np.ndarray:
    """
    Generate regular generators along a spiral around (0, 0).

    Point ``i`` sits at angle ``i * 0.5`` and radius ``i * spread``, each
    perturbed by seeded noise, clamped to ``[-width, width] x [-height, height]``.

    Args:
        count: Number of points
        width: Half-width clamp
        height: Half-height clamp
        spread: Radial growth per point
        seed: Random seed for reproducibility

    Returns:
        (count, 2) array of points
    """
    prng = AleaPRNG(seed)
    points = np.zeros((count, 2))

    for i in range(count):
        angle = i * 0.5 + prng.uniform(-0.3, 0.3)
        radius = i * spread + prng.uniform(-spread * 0.2, spread * 0.2)

        points[i, 0] = min(max(math.cos(angle) * radius, -width), width)
        points[i, 1] = min(max(math.sin(angle) * radius, -height), height)

    return points


def generate_boundary_polygon(vertex_count: int, base_radius: float, seed: int) -> np.ndarray:
    """Irregular settlement boundary: evenly spaced angles, radius within +-20% of base."""
    prng = AleaPRNG(seed)
    vertices = np.zeros((vertex_count, 2))

    for i in range(vertex_count):
        angle = (i / vertex_count) * 2.0 * math.pi
        radius = base_radius * (1.0 + prng.uniform(-0.2, 0.2))
        vertices[i] = (math.cos(angle) * radius, math.sin(angle) * radius)

    return vertices


def rebuild_boundary_with_offsets(vertex_count: int, base_radius: float, seed: int,
                                  offsets) -> np.ndarray:
    """Base boundary polygon with per-vertex user offsets applied."""
    base = generate_boundary_polygon(vertex_count, base_radius, seed)
    offsets = as_polygon(offsets)
    n = min(len(base), len(offsets))
    base[:n] += offsets[:n]
    return base


def generate_boundary_generators(boundary_polygon, spacing: float, inner_offset: float,
                                 outer_offset: Optional[float] = None) -> np.ndarray:
    """
    Generate constraint generators bracketing each boundary edge.

    The inward normal depends on winding: for a CCW polygon (positive signed
    area) the inside is left of each edge, for CW it is the right. Each edge
    is cut into ``max(1, length // spacing)`` segments and a pair of points is
    placed at every segment midpoint, one ``inner_offset`` inside and one
    ``outer_offset`` outside.

    Args:
        boundary_polygon: (n, 2) boundary vertices, either winding
        spacing: Target distance between pairs along an edge
        inner_offset: Distance of inner generators from the edge
        outer_offset: Distance of outer generators from the edge

    Returns:
        (m, 2) array, inner/outer pairs interleaved
    """
    if outer_offset is None:
        outer_offset = settings.boundary_outer_offset

    boundary = as_polygon(boundary_polygon)
    if len(boundary) < 2:
        return np.zeros((0, 2))

    is_ccw = polygon_area(boundary) > 0.0
    generators = []

    for i in range(len(boundary)):
        start = boundary[i]
        end = boundary[(i + 1) % len(boundary)]
        edge_vec = end - start
        edge_length = float(np.hypot(edge_vec[0], edge_vec[1]))

        if edge_length <= MIN_EDGE_LENGTH:
            continue

        edge_dir = edge_vec / edge_length
        left_normal = np.array([-edge_dir[1], edge_dir[0]])
        inward_normal = left_normal if is_ccw else -left_normal

        num_points = int(max(edge_length / spacing, 1.0))
        for j in range(num_points):
            t = (j + 0.5) / num_points
            point_on_edge = start + edge_vec * t
            generators.append(point_on_edge + inward_normal * inner_offset)
            generators.append(point_on_edge - inward_normal * outer_offset)

    return np.array(generators).reshape(-1, 2)


def generate_road_generators(road_path: Sequence, spacing: Optional[float] = None,
                             offset: Optional[float] = None,
                             corner_distance: Optional[float] = None) -> np.ndarray:
    """
    Generate constraint generator pairs on both sides of a road path.

    Interior segment ends are pulled back by ``corner_distance`` so that two
    segments meeting at a corner do not both constrain it. Segments that are
    too short once the corner margins are removed contribute nothing.

    Returns:
        (m, 2) array of generators, +offset/-offset pairs interleaved
    """
    if spacing is None:
        spacing = settings.road_generator_spacing
    if offset is None:
        offset = settings.road_generator_offset
    if corner_distance is None:
        corner_distance = settings.corner_constraint_distance

    path = as_polygon(road_path)
    if len(path) < 2:
        return np.zeros((0, 2))

    generators = []
    last_segment = len(path) - 2

    for i in range(len(path) - 1):
        start = path[i]
        edge_vec = path[i + 1] - start
        edge_length = float(np.hypot(edge_vec[0], edge_vec[1]))
        if edge_length < MIN_EDGE_LENGTH:
            continue

        edge_dir = edge_vec / edge_length
        perpendicular = np.array([-edge_dir[1], edge_dir[0]])

        segment_start = corner_distance if i > 0 else 0.0
        segment_end = edge_length - corner_distance if i < last_segment else edge_length
        segment_length = segment_end - segment_start

        if segment_length <= MIN_ROAD_SEGMENT:
            continue

        num_pairs = int(math.ceil(segment_length / spacing)) + 1
        for j in range(num_pairs):
            t = 0.5 if num_pairs == 1 else j / (num_pairs - 1)
            point_on_edge = start + edge_dir * (segment_start + segment_length * t)
            generators.append(point_on_edge + perpendicular * offset)
            generators.append(point_on_edge - perpendicular * offset)

    logger.debug("Road generators placed", segments=len(path) - 1, generators=len(generators))
    return np.array(generators).reshape(-1, 2)
