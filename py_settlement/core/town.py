"""
Town assembly: skeleton regeneration and block/building generation.

The caller owns a ``SkeletonData`` and picks a ``RegenerationStrategy`` to say
which derived structures must be recomputed; manual edits to everything
upstream of that stage are preserved. ``generate_town`` then turns the
skeleton's cells into blocks of building footprints.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np
import structlog

from ..config import Params, settings
from .alea_prng import AleaPRNG
from .point_generation import (
    generate_boundary_generators,
    generate_boundary_polygon,
    generate_regular_points,
    generate_road_generators,
    rebuild_boundary_with_offsets,
)
from .relaxation import relax
from .subdivision import push_polygon_from_path, subdivide
from .voronoi_graph import SkeletonData, build_voronoi

logger = structlog.get_logger()


class RegenerationStrategy(str, Enum):
    """Which part of the skeleton to rebuild. Each level includes the ones after it."""

    BOUNDARY = "boundary"      # boundary polygon from params + seed + stored vertex offsets
    GENERATORS = "generators"  # spiral + constraint generators, relaxed
    DIAGRAM = "diagram"        # Voronoi diagram from the current generator positions
    PLOTS = "plots"            # nothing; keep points and cells, only the town is rebuilt


@dataclass
class Building:
    """A single building footprint."""
    id: int
    footprint: np.ndarray
    wall_height: float


@dataclass
class Block:
    """A Voronoi cell and the buildings subdivided out of it."""
    id: int
    polygon: np.ndarray
    buildings: List[Building] = field(default_factory=list)


@dataclass
class Town:
    seed: int
    blocks: List[Block] = field(default_factory=list)

    @property
    def building_count(self) -> int:
        return sum(len(block.buildings) for block in self.blocks)

    def footprints(self) -> List[np.ndarray]:
        return [building.footprint for block in self.blocks for building in block.buildings]


def build_generators(boundary_polygon, road_path, params: Params, seed: int,
                     width: Optional[float] = None,
                     height: Optional[float] = None) -> Tuple[np.ndarray, int, int]:
    """
    Place and relax all generators for a boundary and road path.

    Returns:
        Tuple of (generators, regular count, road generator count). Generators
        are ordered regular, road, boundary.
    """
    if width is None:
        width = settings.canvas_width
    if height is None:
        height = settings.canvas_height

    boundary_generators = generate_boundary_generators(
        boundary_polygon, params.boundary_spacing, params.boundary_inner_offset
    )
    road_generators = generate_road_generators(road_path)
    regular = generate_regular_points(params.generator_count, width, height, params.spiral_spread, seed)

    fixed = np.vstack([road_generators, boundary_generators])
    generators = relax(regular, fixed, params.relaxation_steps, width, height)
    return generators, len(regular), len(road_generators)


def initial_skeleton(params: Params, seed: int, road_path=None) -> SkeletonData:
    """Generate a skeleton from scratch."""
    boundary = generate_boundary_polygon(params.boundary_vertex_count, params.boundary_scale, seed)
    road = np.zeros((0, 2)) if road_path is None else np.asarray(road_path, dtype=np.float64).reshape(-1, 2)

    generators, regular_count, road_count = build_generators(boundary, road, params, seed)
    diagram = build_voronoi(generators, boundary, params.circumcenter_merge_threshold)

    return SkeletonData(
        generator_points=generators,
        points=diagram.points,
        cells=diagram.cells,
        boundary_polygon=boundary,
        road_path=road,
        cell_generators=diagram.cell_generators,
        regular_count=regular_count,
        road_generator_count=road_count,
    )


def regenerate(skeleton: SkeletonData, params: Params, seed: int,
               strategy: RegenerationStrategy) -> SkeletonData:
    """
    Recompute the skeleton from ``strategy`` downwards.

    The input is not modified. A change of boundary vertex count discards the
    stored vertex offsets, since they no longer line up with the vertices.

    Returns:
        New SkeletonData
    """
    strategy = RegenerationStrategy(strategy)
    logger.info("Regenerating skeleton", strategy=strategy.value, seed=seed)

    if strategy is RegenerationStrategy.PLOTS:
        return replace(
            skeleton,
            points=skeleton.points.copy(),
            cells=[list(cell) for cell in skeleton.cells],
            cell_generators=list(skeleton.cell_generators),
        )

    boundary = skeleton.boundary_polygon.copy()
    offsets = skeleton.boundary_vertex_offsets.copy()

    if strategy is RegenerationStrategy.BOUNDARY:
        if len(boundary) != params.boundary_vertex_count:
            offsets = np.zeros((params.boundary_vertex_count, 2))
        boundary = rebuild_boundary_with_offsets(
            params.boundary_vertex_count, params.boundary_scale, seed, offsets
        )

    if strategy in (RegenerationStrategy.BOUNDARY, RegenerationStrategy.GENERATORS):
        generators, regular_count, road_count = build_generators(boundary, skeleton.road_path, params, seed)
    else:
        generators = skeleton.generator_points.copy()
        regular_count = skeleton.regular_count
        road_count = skeleton.road_generator_count

    diagram = build_voronoi(generators, boundary, params.circumcenter_merge_threshold)

    rebuilt = replace(
        skeleton,
        generator_points=generators,
        boundary_polygon=boundary,
        road_path=skeleton.road_path.copy(),
        boundary_vertex_offsets=offsets,
        regular_count=regular_count,
        road_generator_count=road_count,
    )
    return rebuilt.with_diagram(diagram)


def generate_town(skeleton: SkeletonData, params: Params, seed: int) -> Town:
    """
    Subdivide every skeleton cell into building footprints.

    Cells of road generators first get a road-width corridor carved out of
    them. Each block uses its own PRNG stream, seeded from ``seed`` plus the
    block index, so blocks are independent of each other.

    Args:
        skeleton: Skeleton whose cells become blocks
        params: Generation parameters
        seed: Base seed

    Returns:
        Town with one block per cell
    """
    town = Town(seed=seed)
    if len(skeleton.points) == 0:
        return town

    polygons = skeleton.cell_polygons()

    if len(skeleton.road_path) >= 2:
        for cell_idx in skeleton.road_cell_indices():
            polygons[cell_idx] = push_polygon_from_path(
                polygons[cell_idx], skeleton.road_path, settings.road_width * 0.5
            )

    building_id = 0
    for block_idx, polygon in enumerate(polygons):
        rng = AleaPRNG.for_stream(seed, block_idx)
        plots = subdivide(
            polygon,
            params.min_area,
            params.grid_chaos,
            params.size_chaos,
            params.empty_prob,
            0,
            rng,
            params.max_recursion_depth,
            params.alley_chance,
            params.alley_width,
        )

        block = Block(id=block_idx, polygon=polygon)
        for footprint in plots:
            wall_height = rng.uniform(params.min_wall_height, params.max_wall_height)
            block.buildings.append(Building(id=building_id, footprint=footprint, wall_height=wall_height))
            building_id += 1
        town.blocks.append(block)

    logger.info("Town generated", seed=seed, blocks=len(town.blocks), buildings=building_id)
    return town
