"""Shared fixtures."""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path

import pytest

from energy_today.config import get_settings
from energy_today.engine import EngineContext
from energy_today.schemas import BirthProfile
from energy_today.store import MemoryStore
from energy_today.systems.day_fortune import DayFortuneTable, load_day_fortune_table


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Ignore ENERGY_TODAY_* variables and any .env in the working directory."""
    for name in list(os.environ):
        if name.startswith("ENERGY_TODAY_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()


@pytest.fixture
def profile() -> BirthProfile:
    return BirthProfile(name="Test User", date_of_birth=date(1990, 1, 1))


@pytest.fixture
def timed_profile() -> BirthProfile:
    return BirthProfile.model_validate(
        {
            "name": "Timed User",
            "date_of_birth": "1990-01-01",
            "time_of_birth": "06:30",
            "place_of_birth": {
                "city": "Greenwich",
                "country": "UK",
                "latitude": 51.48,
                "longitude": 0.0,
            },
        }
    )


@pytest.fixture
def table() -> DayFortuneTable:
    return load_day_fortune_table()


@pytest.fixture
def engine(table: DayFortuneTable) -> EngineContext:
    return EngineContext(table=table)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()
