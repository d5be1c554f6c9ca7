from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings pulled from environment variables (or a local .env file)."""

    # Generation area, in meters. This is the working canvas, not the settlement size.
    canvas_width: float = Field(default=500.0, gt=0, description="Working area half-width")
    canvas_height: float = Field(default=500.0, gt=0, description="Working area half-height")

    # Circumcenter guards, expressed as multiples of the canvas size
    circumcenter_distance_factor: float = Field(
        default=5.0, gt=0, description="Max circumcenter distance from its triangle centroid (x canvas width)"
    )
    circumcenter_bound_margin: float = Field(
        default=2.0, gt=0, description="Voronoi vertices beyond this (x canvas size) fall back to centroids"
    )
    extreme_circumcenter_factor: float = Field(
        default=3.0, gt=0, description="Cells touching vertices beyond this radius (x canvas width) are dropped"
    )

    # Constraint generators
    boundary_outer_offset: float = Field(default=2.0, ge=0, description="Outer boundary generator offset")
    road_generator_spacing: float = Field(default=7.0, gt=0, description="Generator spacing along roads")
    road_generator_offset: float = Field(default=0.1, gt=0, description="Road generator offset from the path")
    corner_constraint_distance: float = Field(default=2.0, ge=0, description="Road corner exclusion distance")
    road_width: float = Field(default=4.0, ge=0, description="Road corridor width")

    initial_seed: int = Field(default=1512086461918454205, ge=0, description="Seed used when none is given")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    @property
    def circumcenter_max_distance(self) -> float:
        """Distance beyond which a circumcenter is replaced by its triangle centroid."""
        return self.canvas_width * self.circumcenter_distance_factor

    @property
    def extreme_circumcenter_distance(self) -> float:
        """Distance from the origin beyond which a Voronoi cell is discarded."""
        return self.canvas_width * self.extreme_circumcenter_factor

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
