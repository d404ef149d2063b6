"""Open-Meteo historical weather data source.

Fetches past daily weather (free, no API key) and converts it into
``weather`` observations for the correlation engine.

Public API:
  - historical: fetch_historical_daily (archive API for past dates)
  - observations: daily_to_observations, condition_for_code
  - client: API URL, shared constants
"""

from energy_today.datasources.weather.client import OPEN_METEO_HISTORICAL
from energy_today.datasources.weather.historical import fetch_historical_daily
from energy_today.datasources.weather.observations import (
    condition_for_code,
    daily_to_observations,
)

__all__ = [
    "OPEN_METEO_HISTORICAL",
    "condition_for_code",
    "daily_to_observations",
    "fetch_historical_daily",
]
