"""
Prefect flows: refresh weather observations and build the insights report.

Run locally:
    python -m energy_today.flows.insights

Run with Prefect dashboard:
    prefect server start &
    python -m energy_today.flows.insights
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from datetime import UTC, date, datetime, timedelta
from pathlib import Path
from typing import Any

from prefect import flow, task

from energy_today.analysis.common import InsufficientData
from energy_today.config import get_settings
from energy_today.datasources.weather import historical as weather_historical
from energy_today.datasources.weather.client import MAX_DAYS_PER_REQUEST
from energy_today.datasources.weather.observations import daily_to_observations
from energy_today.engine import EngineContext, snapshot_to_dict
from energy_today.journal import AppendOnlyLog
from energy_today.schemas import BirthProfile, Observation, ObservationCategory
from energy_today.store import (
    FileStore,
    KeyValueStore,
    is_fresh,
    key_for,
    read_data,
    read_envelope,
    write_envelope,
)
from energy_today.tracking import CorrelationEngine, PredictionAccuracyTracker, ProfileRepository
from energy_today.tracking.observations import observation_key

# Key-value store shared by the flows
store: KeyValueStore = FileStore(Path("data"))

# Numeric subjects whose Pearson correlation goes into the report
CORRELATED_SUBJECTS: dict[ObservationCategory, tuple[str, ...]] = {
    ObservationCategory.WEATHER: ("temperature_max_c", "precipitation_mm"),
    ObservationCategory.SLEEP: ("hours", "quality"),
}


def weather_key(user_id: str) -> str:
    return key_for("weather", user_id)


def insights_key(user_id: str) -> str:
    return key_for("insights", user_id)


def _result_to_dict(result: Any) -> dict[str, Any]:
    if isinstance(result, InsufficientData):
        return {"insufficient_data": asdict(result)}
    return asdict(result)


# =============================================================================
# Weather
# =============================================================================


@task(name="fetch-weather-history", retries=2, retry_delay_seconds=5)
async def fetch_weather_history(
    start: date, end: date, lat: float = 45.5, lon: float = -122.6
) -> dict[str, Any]:
    """Fetch daily weather between two dates from the Open-Meteo archive."""
    return await asyncio.to_thread(
        weather_historical.fetch_historical_daily, start.isoformat(), end.isoformat(), lat, lon
    )


@task(name="save-weather-history")
async def save_weather_history(
    payload: dict[str, Any],
    user_id: str,
    lat: float,
    lon: float,
    start: date | None = None,
    end: date | None = None,
) -> str:
    """Save the raw archive response via store, with the query in its meta."""
    key = weather_key(user_id)
    params: dict[str, Any] = {"location": {"lat": lat, "lon": lon}}
    if start is not None and end is not None:
        params["start"] = start.isoformat()
        params["end"] = end.isoformat()
    await write_envelope(
        store,
        key,
        payload,
        source="open-meteo.com (archive)",
        valid_until=datetime.now(UTC) + timedelta(hours=24),
        **params,
    )
    return key


async def cached_weather_matches(
    key: str, lat: float, lon: float, start: date, end: date
) -> bool:
    """Whether the stored archive response is fresh and answers this exact query."""
    if not await is_fresh(store, key):
        return False
    envelope = await read_envelope(store, key) or {}
    meta = envelope.get("meta", {})
    return (
        meta.get("location") == {"lat": lat, "lon": lon}
        and meta.get("start") == start.isoformat()
        and meta.get("end") == end.isoformat()
    )


@task(name="record-weather-observations")
async def record_weather_observations(
    payload: dict[str, Any], user_id: str, max_records: int
) -> int:
    """Append weather observations for (subject, date) pairs not yet logged.

    Returns:
        Number of observations added.
    """
    log = AppendOnlyLog(
        store,
        observation_key(user_id, ObservationCategory.WEATHER),
        Observation,
        max_records=max_records,
    )
    seen = {(obs.subject, obs.date) for obs in await log.read()}
    added = 0
    for obs in daily_to_observations(payload):
        if (obs.subject, obs.date) in seen:
            continue
        await log.append(obs)
        added += 1
    return added


@flow(name="refresh-weather", log_prints=True)
async def refresh_weather(
    lat: float | None = None,
    lon: float | None = None,
    days: int = 30,
    today: date | None = None,
    user_id: str | None = None,
) -> dict[str, Any]:
    """
    Fetch recent daily weather and log it as observations.

    Skips the API call while the cached archive response is still fresh and
    was fetched for the same location and date range.
    """
    settings = get_settings()
    lat = settings.lat if lat is None else lat
    lon = settings.lon if lon is None else lon
    user_id = user_id or settings.user_id
    days = max(1, min(days, MAX_DAYS_PER_REQUEST))
    # the archive lags a few days behind today
    end = (today or date.today()) - timedelta(days=1)
    start = end - timedelta(days=days - 1)

    key = weather_key(user_id)
    if await cached_weather_matches(key, lat, lon, start, end):
        print("Weather history is fresh, skipping fetch.")
        payload = await read_data(store, key) or {}
    else:
        print(f"Fetching weather for ({lat}, {lon}) {start} to {end}...")
        payload = await fetch_weather_history(start, end, lat, lon)
        await save_weather_history(payload, user_id, lat, lon, start, end)

    weather_days = len(payload.get("daily", {}).get("time", []))
    added = await record_weather_observations(payload, user_id, settings.observation_max_records)
    print(f"Logged {added} new weather observations over {weather_days} days")
    return {"weather_days": weather_days, "observations_added": added}


# =============================================================================
# Insights
# =============================================================================


@task(name="load-profile")
async def load_profile(user_id: str) -> BirthProfile | None:
    return await ProfileRepository(store, user_id).get()


@task(name="compute-forecast")
async def compute_forecast(profile: BirthProfile, start: date, days: int) -> list[dict[str, Any]]:
    """Snapshots for ``days`` dates from ``start``."""
    engine = EngineContext.from_settings(get_settings())
    return [snapshot_to_dict(s) for s in engine.forecast(profile, start, days)]


@task(name="compute-correlations")
async def compute_correlations(profile: BirthProfile, user_id: str) -> dict[str, Any]:
    """Impact rankings, Pearson correlations and business patterns."""
    settings = get_settings()
    engine = EngineContext.from_settings(settings)
    correlations = CorrelationEngine.from_settings(
        store, engine, profile, settings, user_id=user_id
    )

    impacts: dict[str, list[dict[str, Any]]] = {}
    for category in (ObservationCategory.HABIT, ObservationCategory.BUSINESS):
        ranked = await correlations.rank_impacts(category)
        impacts[category.value] = [asdict(r) for r in ranked]

    pearson: list[dict[str, Any]] = []
    for category, subjects in CORRELATED_SUBJECTS.items():
        for subject in subjects:
            result = await correlations.correlation_of(category, subject)
            pearson.append(
                {"category": category.value, "subject": subject, **_result_to_dict(result)}
            )

    success_rates: dict[str, list[dict[str, Any]]] = {}
    patterns: dict[str, dict[str, Any]] = {}
    for subject in await correlations.subjects(ObservationCategory.BUSINESS):
        bands = await correlations.success_rates_by_band(subject)
        success_rates[subject] = [asdict(b) for b in bands]
        activities = await correlations.activity_success_rates(subject)
        patterns[subject] = {
            "best_activities": [asdict(a) for a in activities],
            "advice": asdict(await correlations.advice_success_rates(subject)),
            "trend": (await correlations.recent_trend(subject)).value,
        }

    return {
        "impacts": impacts,
        "correlations": pearson,
        "success_rates": success_rates,
        "business_patterns": patterns,
    }


@task(name="compute-accuracy")
async def compute_accuracy(user_id: str, today: date) -> dict[str, Any]:
    """Overall, last-30-day and calibration accuracy."""
    tracker = PredictionAccuracyTracker.from_settings(
        store, get_settings(), user_id=user_id
    )
    return {
        "overall": _result_to_dict(await tracker.stats()),
        "last_30_days": _result_to_dict(await tracker.recent(30, today)),
        "calibration": [asdict(b) for b in await tracker.calibration()],
    }


@task(name="save-insights")
async def save_insights(report: dict[str, Any], user_id: str) -> str:
    """Save the derived report via store (always recomputed, no expiry)."""
    key = insights_key(user_id)
    await write_envelope(store, key, report, source="energy-today")
    return key


@flow(name="build-insights", log_prints=True)
async def build_insights(
    today: date | None = None,
    forecast_days: int = 7,
    user_id: str | None = None,
) -> dict[str, Any]:
    """
    Recompute every derived insight for one user and store the report.

    The report is derived data: it is overwritten on every run and never
    read back as ground truth.
    """
    settings = get_settings()
    user_id = user_id or settings.user_id
    today = today or date.today()

    profile = await load_profile(user_id)
    if profile is None:
        print(f"No birth profile for {user_id!r}, nothing to build.")
        return {"built": False}

    forecast = await compute_forecast(profile, today, forecast_days)
    correlations = await compute_correlations(profile, user_id)
    accuracy = await compute_accuracy(user_id, today)

    report = {
        "generated_for": today.isoformat(),
        "profile_id": profile.profile_id,
        "forecast": forecast,
        **correlations,
        "accuracy": accuracy,
    }
    key = await save_insights(report, user_id)
    ranked = sum(len(v) for v in correlations["impacts"].values())
    print(f"Saved insights ({len(forecast)} forecast days, {ranked} ranked impacts) to {key}")
    return {"built": True, "forecast_days": len(forecast), "ranked_impacts": ranked}


if __name__ == "__main__":
    result = asyncio.run(build_insights())
    print(f"Flow complete: {result}")
