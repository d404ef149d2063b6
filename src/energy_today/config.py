"""
Application settings.

Values come from the environment (prefix ``ENERGY_TODAY_``) or a ``.env``
file in the working directory. Every tunable constant that callers may want
to override without code changes lives here; module-level constants keep the
documented defaults.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from energy_today.analysis.accuracy import MAX_ACCURACY_RECORDS
from energy_today.analysis.correlation import MIN_SAMPLE_SIZE
from energy_today.engine.models import CompositeWeights


class Settings(BaseSettings):
    """Runtime configuration loaded from env and ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="ENERGY_TODAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    app_name: str = "energy-today"
    app_env: str = "dev"
    debug: bool = False

    # Persistence
    data_dir: Path = Path("data")
    user_id: str = "default"

    # Weather observations (Open-Meteo)
    lat: float = Field(default=45.5, ge=-90, le=90)
    lon: float = Field(default=-122.6, ge=-180, le=180)

    # Analytics
    min_sample_size: int = Field(default=MIN_SAMPLE_SIZE, ge=1)
    correlation_scan_limit: int | None = Field(default=1000, ge=1)
    observation_max_records: int = Field(default=2000, ge=1)
    accuracy_max_records: int = Field(default=MAX_ACCURACY_RECORDS, ge=1)

    # Engine
    snapshot_cache_size: int = Field(default=512, ge=1)
    fortune_table_path: Path | None = None
    weight_numerology: float = Field(default=1.0, ge=0)
    weight_lunar: float = Field(default=1.0, ge=0)
    weight_element: float = Field(default=1.0, ge=0)
    weight_day_fortune: float = Field(default=1.0, ge=0)
    weight_natal_moon: float = Field(default=0.0, ge=0)

    def composite_weights(self) -> CompositeWeights:
        """Build the composite weighting from the ``weight_*`` fields."""
        return CompositeWeights(
            numerology=self.weight_numerology,
            lunar=self.weight_lunar,
            element=self.weight_element,
            day_fortune=self.weight_day_fortune,
            natal_moon=self.weight_natal_moon,
        )


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
