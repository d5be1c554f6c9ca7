"""
Core settlement generation functionality.
"""

from .alea_prng import AleaPRNG
from .point_generation import (generate_regular_points, generate_boundary_polygon,
                               generate_boundary_generators, generate_road_generators)
from .relaxation import relax
from .voronoi_graph import VoronoiDiagram, SkeletonData, build_voronoi
from .subdivision import subdivide
from .town import RegenerationStrategy, Town, Block, Building, initial_skeleton, regenerate, generate_town

__all__ = ['AleaPRNG', 'generate_regular_points', 'generate_boundary_polygon',
           'generate_boundary_generators', 'generate_road_generators', 'relax',
           'VoronoiDiagram', 'SkeletonData', 'build_voronoi', 'subdivide',
           'RegenerationStrategy', 'Town', 'Block', 'Building',
           'initial_skeleton', 'regenerate', 'generate_town']
