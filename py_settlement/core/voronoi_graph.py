"""Voronoi diagram construction for settlement generation."""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

import numpy as np
import structlog
from scipy.spatial.distance import pdist

from ..config import settings
from .geometry import AREA_EPSILON, as_polygon, point_in_polygon, polygon_area, sort_by_angle
from .triangulation import triangulate

logger = structlog.get_logger()

# Points closer than this make a skeleton invalid
DUPLICATE_POINT_EPSILON = 1e-4


@dataclass
class VoronoiDiagram:
    """Merged circumcenters and the cells built on them."""
    points: np.ndarray           # (k, 2) merged circumcenters (Voronoi vertices)
    cells: List[List[int]]       # angularly sorted indices into points, one list per kept generator
    cell_generators: List[int]   # generator index each cell belongs to
    skipped_generators: List[int] = field(default_factory=list)

    def cell_polygon(self, cell_idx: int) -> np.ndarray:
        """Dereference a cell into an (n, 2) polygon."""
        return self.points[self.cells[cell_idx]]


@dataclass
class SkeletonData:
    """
    Aggregate of everything one settlement layout is derived from.

    Generators are stored regular points first, then road generators, then
    boundary generators; ``regular_count`` and ``road_generator_count`` record
    the split. The caller owns this object and decides which stages to rerun.
    """
    generator_points: np.ndarray     # (n, 2) all generators
    points: np.ndarray               # (k, 2) circumcenters, computed or manually edited
    cells: List[List[int]]           # indices into points forming one Voronoi polygon each
    boundary_polygon: np.ndarray     # (b, 2) settlement boundary
    road_path: np.ndarray = field(default_factory=lambda: np.zeros((0, 2)))
    boundary_vertex_offsets: Optional[np.ndarray] = field(default=None)  # user offsets from the base boundary
    cell_generators: List[int] = field(default_factory=list)
    regular_count: int = 0
    road_generator_count: int = 0

    def __post_init__(self):
        if self.boundary_vertex_offsets is None:
            self.boundary_vertex_offsets = np.zeros((len(self.boundary_polygon), 2))

    def get_boundary_vertex(self, idx: int) -> Optional[np.ndarray]:
        if 0 <= idx < len(self.boundary_polygon):
            return self.boundary_polygon[idx].copy()
        return None

    def set_boundary_vertex(self, idx: int, pos, base_polygon=None) -> None:
        """Move a boundary vertex; with ``base_polygon`` the offset from it is remembered."""
        if not 0 <= idx < len(self.boundary_polygon):
            return
        self.boundary_polygon[idx] = pos
        if base_polygon is not None and idx < len(base_polygon) and idx < len(self.boundary_vertex_offsets):
            self.boundary_vertex_offsets[idx] = np.asarray(pos, dtype=np.float64) - base_polygon[idx]

    def boundary_vertex_count(self) -> int:
        return len(self.boundary_polygon)

    def cell_polygons(self) -> List[np.ndarray]:
        return [self.points[cell] for cell in self.cells]

    def road_cell_indices(self) -> List[int]:
        """Cells whose generator is a road constraint generator."""
        first = self.regular_count
        last = self.regular_count + self.road_generator_count
        return [i for i, g in enumerate(self.cell_generators) if first <= g < last]

    def with_diagram(self, diagram: VoronoiDiagram) -> "SkeletonData":
        return replace(self, points=diagram.points, cells=diagram.cells,
                       cell_generators=diagram.cell_generators)

    def is_valid(self) -> bool:
        """
        Diagram health check.

        Valid means: points and cells are non-empty, every cell has at least
        3 in-range indices and non-degenerate area, and no two points are
        closer than ``DUPLICATE_POINT_EPSILON``.
        """
        if len(self.points) == 0 or len(self.cells) == 0:
            return False

        for cell in self.cells:
            if len(cell) < 3:
                return False
            if any(idx < 0 or idx >= len(self.points) for idx in cell):
                return False
            if abs(polygon_area(self.points[cell])) < AREA_EPSILON:
                return False

        if len(self.points) > 1 and np.any(pdist(self.points) < DUPLICATE_POINT_EPSILON):
            return False

        return True


def merge_circumcenters(circumcenters: np.ndarray, merge_threshold: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Fuse circumcenters closer than ``merge_threshold``.

    Single pass in index order: each unclaimed point starts a cluster and
    claims every later unclaimed point within the threshold of itself. Each
    cluster collapses to its mean. The result depends on enumeration order,
    which is fixed by the triangulation, so it is reproducible.

    Returns:
        Tuple of (merged points, old index -> merged index mapping)
    """
    n = len(circumcenters)
    mapping = np.full(n, -1, dtype=np.int64)
    used = np.zeros(n, dtype=bool)
    merged = []

    for i in range(n):
        if used[i]:
            continue

        distances = np.linalg.norm(circumcenters[i + 1:] - circumcenters[i], axis=1)
        claimed = np.nonzero(~used[i + 1:] & (distances < merge_threshold))[0] + i + 1
        cluster = np.concatenate(([i], claimed))

        used[cluster] = True
        mapping[cluster] = len(merged)
        merged.append(circumcenters[cluster].mean(axis=0))

    return np.array(merged).reshape(-1, 2), mapping


def build_voronoi(generators, boundary_polygon, merge_threshold: float,
                  bound_margin: Optional[float] = None,
                  extreme_distance: Optional[float] = None) -> VoronoiDiagram:
    """
    Construct Voronoi cells for the generators that lie inside the boundary.

    Steps: Delaunay triangulation, circumcenter per triangle (centroid
    fallback outside ``bound_margin`` x canvas), merge pass, per-generator
    cell assembly, filtering, angular sort around the generator.

    A cell is dropped when it has fewer than 3 distinct vertices, its
    generator lies outside ``boundary_polygon``, one of its triangles lies on
    the triangulation hull (unbounded cell), or one of its vertices is farther
    than ``extreme_distance`` from the origin.

    Args:
        generators: (n, 2) generator positions, freshly generated or edited
        boundary_polygon: Settlement boundary
        merge_threshold: Circumcenters closer than this are fused
        bound_margin: Canvas multiple for the circumcenter bound check
        extreme_distance: Radius for the extreme-vertex cell filter

    Returns:
        VoronoiDiagram with cells in generator order
    """
    if bound_margin is None:
        bound_margin = settings.circumcenter_bound_margin
    if extreme_distance is None:
        extreme_distance = settings.extreme_circumcenter_distance

    generators = np.asarray(generators, dtype=np.float64).reshape(-1, 2)
    boundary = as_polygon(boundary_polygon)

    triangulation = triangulate(generators)
    raw_centers = triangulation.circumcenters()

    # Out-of-bounds circumcenters fall back to the triangle centroid
    max_x = settings.canvas_width * bound_margin
    max_y = settings.canvas_height * bound_margin
    for t, center in enumerate(raw_centers):
        if abs(center[0]) > max_x or abs(center[1]) > max_y:
            raw_centers[t] = generators[triangulation.simplices[t]].mean(axis=0)

    points, mapping = merge_circumcenters(raw_centers, merge_threshold)
    hull = triangulation.hull_triangles

    logger.info("Circumcenters merged", triangles=len(raw_centers), merged=len(points),
                threshold=merge_threshold)

    cells = []
    cell_generators = []
    for g, incident in enumerate(triangulation.vertex_triangles):
        indices = list(dict.fromkeys(int(mapping[t]) for t in incident))
        if len(indices) < 3:
            continue

        generator = generators[g]
        if not point_in_polygon(generator, boundary):
            continue

        if any(hull[t] for t in incident):
            continue

        if np.any(np.linalg.norm(points[indices], axis=1) > extreme_distance):
            continue

        order = sort_by_angle(points[indices], generator)
        cells.append([indices[k] for k in order])
        cell_generators.append(g)

    logger.info("Voronoi cells built", generators=len(generators), cells=len(cells),
                skipped_generators=len(triangulation.skipped))

    return VoronoiDiagram(
        points=points,
        cells=cells,
        cell_generators=cell_generators,
        skipped_generators=triangulation.skipped,
    )
