"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Library settings pulled from environment variables."""

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # Undo history
    undo_capacity: int = Field(default=11, ge=1, description="Maximum number of undo strokes kept")
    record_undo: bool = Field(default=True, description="Record undo steps for brush applications")

    # Numerics
    falloff_epsilon: float = Field(
        default=1e-6, gt=0, description="Smallest allowed falloff denominator"
    )
    max_noise_octaves: int = Field(default=100, ge=1, description="Octave cap for fractal noise")

    class Config:
        env_prefix = "EROSION_BRUSH_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
