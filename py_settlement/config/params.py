"""
Generation parameters for a settlement pass.

A ``Params`` bundle is frozen while a pass runs. Callers that change a value
(a slider, an API request) derive a new bundle with ``model_copy(update=...)``
and trigger regeneration.
"""

from pydantic import BaseModel, Field, model_validator


class Params(BaseModel):
    """Parameters for one generation pass. All lengths in meters."""

    # Subdivision
    min_area: float = Field(default=15.0, gt=0, description="Minimum building footprint area (m2)")
    grid_chaos: float = Field(default=0.35, ge=0.0, le=1.0, description="Geometric irregularity factor")
    size_chaos: float = Field(default=0.25, ge=0.0, le=1.0, description="Building size variation factor")
    empty_prob: float = Field(default=0.05, ge=0.0, le=1.0, description="Probability of a plot being empty")
    alley_width: float = Field(default=0.8, ge=0.0, description="Gap inserted at alley cuts")
    alley_chance: float = Field(default=0.8, ge=0.0, le=1.0, description="Probability of an alley at depth 0")
    max_recursion_depth: int = Field(default=10, ge=0, le=32, description="Subdivision depth limit")

    # Boundary
    boundary_vertex_count: int = Field(default=4, ge=3, description="Boundary polygon vertex count")
    boundary_scale: float = Field(default=75.0, gt=0, description="Settlement radius")
    boundary_spacing: float = Field(default=12.0, gt=0, description="Generator spacing along boundary edges")
    boundary_inner_offset: float = Field(default=1.0, ge=0, description="Inner boundary generator offset")

    # Generators
    generator_count: int = Field(default=30, ge=0, description="Number of regular generators")
    spiral_spread: float = Field(default=3.0, gt=0, description="Radial growth per spiral step")
    relaxation_steps: int = Field(default=4, ge=0, description="Lloyd relaxation iterations")

    # Voronoi
    circumcenter_merge_threshold: float = Field(
        default=0.01, gt=0, description="Merge circumcenters closer than this distance"
    )

    # Buildings
    min_wall_height: float = Field(default=2.0, gt=0, description="Minimum wall height")
    max_wall_height: float = Field(default=6.0, gt=0, description="Maximum wall height")

    @model_validator(mode="after")
    def check_wall_heights(self):
        if self.min_wall_height > self.max_wall_height:
            raise ValueError("min_wall_height must not exceed max_wall_height")
        return self

    class Config:
        frozen = True
