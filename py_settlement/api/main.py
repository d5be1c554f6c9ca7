"""FastAPI main application."""

import logging
from typing import List, Optional, Tuple

import numpy as np
import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..config import Params, settings
from ..core.town import Town, generate_town, initial_skeleton
from ..core.voronoi_graph import SkeletonData

# Configure logging
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

app = FastAPI(
    title="Settlement Generator API",
    description="Procedural settlement blocks and building footprints from seed points",
    version="0.1.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Point = Tuple[float, float]


# Request/Response models
class TownGenerationRequest(BaseModel):
    """Request to generate a town."""

    seed: Optional[int] = Field(None, ge=0, le=2**64 - 1, description="Random seed, defaults to the configured initial seed")
    params: Params = Field(default_factory=Params, description="Generation parameters")
    road_path: List[Point] = Field(default_factory=list, description="Road path as an ordered point list")


class BuildingResponse(BaseModel):
    id: int
    footprint: List[Point]
    wall_height: float


class BlockResponse(BaseModel):
    id: int
    polygon: List[Point]
    buildings: List[BuildingResponse]


class TownResponse(BaseModel):
    """Generated skeleton and town."""

    seed: int
    valid: bool
    boundary_polygon: List[Point]
    generator_points: List[Point]
    points: List[Point]
    cells: List[List[int]]
    blocks: List[BlockResponse]
    building_count: int


class SkeletonValidationRequest(BaseModel):
    """Diagram to check, as produced (or edited) by a client."""

    points: List[Point]
    cells: List[List[int]]


class ValidationResponse(BaseModel):
    valid: bool


def _as_points(array: np.ndarray) -> List[Point]:
    return [(float(x), float(y)) for x, y in array]


def _town_response(skeleton: SkeletonData, town: Town) -> TownResponse:
    blocks = [
        BlockResponse(
            id=block.id,
            polygon=_as_points(block.polygon),
            buildings=[
                BuildingResponse(id=b.id, footprint=_as_points(b.footprint), wall_height=b.wall_height)
                for b in block.buildings
            ],
        )
        for block in town.blocks
    ]
    return TownResponse(
        seed=town.seed,
        valid=skeleton.is_valid(),
        boundary_polygon=_as_points(skeleton.boundary_polygon),
        generator_points=_as_points(skeleton.generator_points),
        points=_as_points(skeleton.points),
        cells=skeleton.cells,
        blocks=blocks,
        building_count=town.building_count,
    )


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Settlement Generator API",
        "version": "0.1.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/towns/generate", response_model=TownResponse)
def generate(request: TownGenerationRequest):
    """Generate a skeleton and its town synchronously."""
    seed = settings.initial_seed if request.seed is None else request.seed
    logger.info("Town generation requested", seed=seed, road_points=len(request.road_path))

    try:
        skeleton = initial_skeleton(request.params, seed, road_path=request.road_path or None)
        town = generate_town(skeleton, request.params, seed)
    except Exception as e:
        logger.error("Town generation failed", seed=seed, error=str(e))
        raise HTTPException(status_code=500, detail="Town generation failed")

    return _town_response(skeleton, town)


@app.post("/skeletons/validate", response_model=ValidationResponse)
async def validate_skeleton(request: SkeletonValidationRequest):
    """Run the diagram health check on client-supplied points and cells."""
    points = np.array(request.points, dtype=np.float64).reshape(-1, 2)
    skeleton = SkeletonData(
        generator_points=np.zeros((0, 2)),
        points=points,
        cells=request.cells,
        boundary_polygon=np.zeros((0, 2)),
    )
    return ValidationResponse(valid=skeleton.is_valid())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
