"""Turn Open-Meteo daily arrays into weather observations.

Each day yields up to four observations in the ``weather`` category:

    temperature_max_c   float
    temperature_min_c   float
    precipitation_mm    float (numeric threshold 0 -> "it rained")
    sunny               bool  (WMO weather code 0 or 1)

Missing values (``null`` in the API response) are skipped.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from energy_today.schemas import Observation, ObservationCategory

# WMO weather interpretation codes -> coarse condition
_CONDITION_RANGES: tuple[tuple[range, str], ...] = (
    (range(0, 2), "sunny"),
    (range(2, 4), "cloudy"),
    (range(45, 49), "foggy"),
    (range(51, 68), "rainy"),
    (range(71, 78), "snowy"),
    (range(80, 83), "rainy"),
    (range(85, 87), "snowy"),
    (range(95, 100), "stormy"),
)

_NUMERIC_SUBJECTS = {
    "temperature_2m_max": "temperature_max_c",
    "temperature_2m_min": "temperature_min_c",
    "precipitation_sum": "precipitation_mm",
}


def condition_for_code(code: int | None) -> str | None:
    """Coarse condition (sunny, cloudy, rainy, ...) for a WMO code."""
    if code is None:
        return None
    for codes, condition in _CONDITION_RANGES:
        if code in codes:
            return condition
    return None


def daily_to_observations(payload: dict[str, Any]) -> list[Observation]:
    """Convert an Open-Meteo ``daily`` response to observations, date order."""
    daily = payload.get("daily", {})
    dates = daily.get("time", [])

    observations: list[Observation] = []
    for i, day in enumerate(dates):
        obs_date = date.fromisoformat(day)
        for api_name, subject in _NUMERIC_SUBJECTS.items():
            values = daily.get(api_name, [])
            value = values[i] if i < len(values) else None
            if value is None:
                continue
            observations.append(
                Observation(
                    category=ObservationCategory.WEATHER,
                    subject=subject,
                    date=obs_date,
                    outcome=float(value),
                )
            )

        codes = daily.get("weather_code", [])
        code = codes[i] if i < len(codes) else None
        if code is not None:
            observations.append(
                Observation(
                    category=ObservationCategory.WEATHER,
                    subject="sunny",
                    date=obs_date,
                    outcome=condition_for_code(int(code)) == "sunny",
                )
            )
    return observations
