#!/usr/bin/env python3
"""
Generate a sample town using the full settlement pipeline.

This includes:
1. Boundary polygon and constraint generators
2. Spiral generators with constrained Lloyd's relaxation
3. Voronoi cell construction
4. Recursive subdivision of every cell into building footprints

Usage:
    python generate_sample_towns.py [seed] [output.json]

If no seed is provided, the configured initial seed is used.
"""

import json
import logging
import sys
from pathlib import Path

import structlog

from py_settlement.config import Params, settings
from py_settlement.core.town import generate_town, initial_skeleton

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.JSONRenderer() if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


def create_town(seed, params=None):
    """Generate a skeleton and town and return them as a JSON-ready dict."""
    params = params or Params()

    skeleton = initial_skeleton(params, seed)
    town = generate_town(skeleton, params, seed)

    logger.info("Sample town generated", seed=seed, cells=len(skeleton.cells),
                buildings=town.building_count, valid=skeleton.is_valid())

    return {
        "seed": seed,
        "params": params.model_dump(),
        "valid": skeleton.is_valid(),
        "boundary_polygon": skeleton.boundary_polygon.tolist(),
        "generator_points": skeleton.generator_points.tolist(),
        "points": skeleton.points.tolist(),
        "cells": skeleton.cells,
        "blocks": [
            {
                "id": block.id,
                "polygon": block.polygon.tolist(),
                "buildings": [
                    {"id": b.id, "footprint": b.footprint.tolist(), "wall_height": b.wall_height}
                    for b in block.buildings
                ],
            }
            for block in town.blocks
        ],
    }


if __name__ == "__main__":
    seed = int(sys.argv[1]) if len(sys.argv) > 1 else settings.initial_seed
    output = Path(sys.argv[2]) if len(sys.argv) > 2 else Path(f"town_{seed}.json")

    data = create_town(seed)
    output.write_text(json.dumps(data, indent=2))
    print(f"Saved {len(data['blocks'])} blocks to {output}")
