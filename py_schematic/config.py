"""Configuration management."""

import os
from pathlib import Path

from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings

# Load .env for local/dev environments only if values are missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    # Data source
    data_file: str = Field(default="map.json", description="Path to the correspondence point file")
    watch_enabled: bool = Field(default=True, description="Invalidate mappings when the data file changes")
    watch_interval_seconds: float = Field(default=2.5, description="Data file polling interval")

    # Triangulation
    border_margin: float = Field(
        default=1000.0, description="Margin around the point bounds used for the super points"
    )

    # Grid line sampling
    grid_line_spacing: float = Field(default=10.0, description="Distance between sampled grid lines")
    grid_line_step: float = Field(default=1.0, description="Sample step along a grid line")

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=6886, description="API port")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "SCHEMATIC_"
        extra = "ignore"


settings = Settings()
