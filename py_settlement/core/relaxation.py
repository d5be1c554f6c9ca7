"""Constrained Lloyd relaxation of regular generators around fixed generators."""

import numpy as np
import structlog

from .geometry import AREA_EPSILON, polygon_area, polygon_centroid, sort_by_angle
from .triangulation import triangulate

logger = structlog.get_logger()


def relax(regular_points, fixed_points, steps: int, width: float, height: float) -> np.ndarray:
    """Apply constrained Lloyd's relaxation.

    Each step triangulates regular + fixed points, builds every regular
    point's approximate Voronoi cell from the circumcenters of its incident
    triangles and moves the point to that cell's centroid. Fixed points are
    never moved; they only pin the shape of the triangulation.

    Args:
        regular_points: (n, 2) relaxable generators
        fixed_points: (m, 2) constraint generators
        steps: Number of relaxation iterations
        width: Half-width clamp for moved points
        height: Half-height clamp for moved points

    Returns:
        (n + m, 2) array: relaxed regular points followed by the fixed points
        in their original order
    """
    regular = np.array(regular_points, dtype=np.float64).reshape(-1, 2)
    fixed = np.array(fixed_points, dtype=np.float64).reshape(-1, 2)
    n_regular = len(regular)

    logger.info("Starting constrained relaxation", steps=steps,
                regular_points=n_regular, fixed_points=len(fixed))

    for step in range(steps):
        triangulation = triangulate(np.vstack([regular, fixed]))
        circumcenters = triangulation.circumcenters()

        moved = 0
        for i in range(n_regular):
            incident = triangulation.vertex_triangles[i]
            if len(incident) < 3:
                continue

            cell = circumcenters[incident]
            cell = cell[sort_by_angle(cell, cell.mean(axis=0))]

            area = polygon_area(cell)
            if abs(area) <= AREA_EPSILON:
                continue

            centroid = polygon_centroid(cell, area)
            regular[i, 0] = np.clip(centroid[0], -width, width)
            regular[i, 1] = np.clip(centroid[1], -height, height)
            moved += 1

        logger.debug("Relaxation step complete", step=step + 1, moved=moved)

    return np.vstack([regular, fixed])
