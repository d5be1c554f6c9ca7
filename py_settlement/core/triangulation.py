"""Delaunay triangulation shared by relaxation and the Voronoi builder."""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import structlog
from scipy.spatial import Delaunay, QhullError

from .geometry import calculate_circumcenter

logger = structlog.get_logger()


@dataclass
class Triangulation:
    """Triangles of a point set plus the per-point incidence the dual graph needs."""
    points: np.ndarray                 # (n, 2) input points, in input order
    simplices: np.ndarray              # (m, 3) point indices per triangle
    neighbors: np.ndarray              # (m, 3) neighbouring triangle per edge, -1 on the hull
    vertex_triangles: List[List[int]]  # incident triangles per input point, ascending
    skipped: List[int] = field(default_factory=list)  # points qhull did not insert

    def __len__(self) -> int:
        return len(self.simplices)

    @property
    def hull_triangles(self) -> np.ndarray:
        """Boolean flag per triangle: True if one of its edges lies on the hull."""
        if len(self.neighbors) == 0:
            return np.zeros(0, dtype=bool)
        return np.any(self.neighbors == -1, axis=1)

    def circumcenters(self, max_distance: Optional[float] = None) -> np.ndarray:
        """Circumcenter of every triangle, with the centroid fallbacks applied."""
        centers = np.zeros((len(self.simplices), 2))
        for t, (a, b, c) in enumerate(self.simplices):
            centers[t] = calculate_circumcenter(
                self.points[a], self.points[b], self.points[c], max_distance=max_distance
            )
        return centers


def _empty_triangulation(points: np.ndarray) -> Triangulation:
    return Triangulation(
        points=points,
        simplices=np.empty((0, 3), dtype=np.int64),
        neighbors=np.empty((0, 3), dtype=np.int64),
        vertex_triangles=[[] for _ in range(len(points))],
    )


def triangulate(points) -> Triangulation:
    """
    Delaunay-triangulate a point set.

    Points qhull refuses to insert (exact duplicates, or points dropped for
    precision) are reported in ``skipped``. A skipped point that coincides
    exactly with an inserted vertex shares that vertex's triangles, so both
    generators see the same cell; any other skipped point has no triangles.

    A point set that cannot be triangulated at all (fewer than 3 points, all
    collinear) yields an empty triangulation rather than an error.

    Args:
        points: (n, 2) array of point coordinates

    Returns:
        Triangulation over the input indices
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)

    if len(points) < 3:
        logger.warning("Too few points to triangulate", points=len(points))
        return _empty_triangulation(points)

    try:
        delaunay = Delaunay(points)
    except (QhullError, ValueError) as e:
        logger.warning("Delaunay triangulation failed", points=len(points), error=str(e))
        return _empty_triangulation(points)

    vertex_triangles = [[] for _ in range(len(points))]
    for t, simplex in enumerate(delaunay.simplices):
        for v in simplex:
            vertex_triangles[v].append(t)

    skipped = []
    for point_idx, _, vertex_idx in delaunay.coplanar:
        skipped.append(int(point_idx))
        if np.array_equal(points[point_idx], points[vertex_idx]):
            vertex_triangles[point_idx] = list(vertex_triangles[vertex_idx])

    if skipped:
        logger.warning("Triangulation skipped points", skipped=len(skipped), indices=skipped)

    return Triangulation(
        points=points,
        simplices=delaunay.simplices.astype(np.int64),
        neighbors=delaunay.neighbors.astype(np.int64),
        vertex_triangles=vertex_triangles,
        skipped=sorted(skipped),
    )
