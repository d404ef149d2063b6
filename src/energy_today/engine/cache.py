"""Bounded snapshot cache and the engine context that owns it."""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import TYPE_CHECKING

from energy_today.engine.compose import MAX_RANGE_DAYS, compute_snapshot
from energy_today.engine.models import DEFAULT_WEIGHTS, CompositeWeights
from energy_today.errors import ValidationError
from energy_today.systems.day_fortune import load_day_fortune_table
from energy_today.systems.numerology import validate_date

if TYPE_CHECKING:
    from energy_today.config import Settings
    from energy_today.engine.models import DailySnapshot
    from energy_today.schemas import BirthProfile
    from energy_today.systems.day_fortune import DayFortuneTable

logger = logging.getLogger(__name__)

CacheKey = tuple[str, date, str | None]

DEFAULT_CACHE_SIZE = 512


class SnapshotCache:
    """LRU cache of snapshots keyed by ``(profile_id, date, activity)``.

    Snapshots are pure functions of their key, so entries never go stale;
    the cache only bounds memory.
    """

    def __init__(self, maxsize: int = DEFAULT_CACHE_SIZE) -> None:
        if maxsize < 1:
            msg = f"maxsize must be >= 1, got {maxsize}"
            raise ValueError(msg)
        self.maxsize = maxsize
        self.hits = 0
        self.misses = 0
        self._entries: OrderedDict[CacheKey, DailySnapshot] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: CacheKey) -> DailySnapshot | None:
        snapshot = self._entries.get(key)
        if snapshot is None:
            self.misses += 1
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return snapshot

    def put(self, key: CacheKey, snapshot: DailySnapshot) -> None:
        self._entries[key] = snapshot
        self._entries.move_to_end(key)
        while len(self._entries) > self.maxsize:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0


@dataclass
class EngineContext:
    """Table, weights and cache shared by everything that scores dates.

    Build one per process (or per test) and pass it down; there is no
    module-level engine state.
    """

    table: DayFortuneTable
    weights: CompositeWeights = DEFAULT_WEIGHTS
    cache: SnapshotCache = field(default_factory=SnapshotCache)

    @classmethod
    def default(cls) -> EngineContext:
        """Packaged table, equal weights, default cache size."""
        return cls(table=load_day_fortune_table())

    @classmethod
    def from_settings(cls, settings: Settings) -> EngineContext:
        table = load_day_fortune_table(settings.fortune_table_path)
        return cls(
            table=table,
            weights=settings.composite_weights(),
            cache=SnapshotCache(settings.snapshot_cache_size),
        )

    def snapshot(
        self, profile: BirthProfile, day: date, activity: str | None = None
    ) -> DailySnapshot:
        """Cached ``compute_snapshot`` for one date."""
        key: CacheKey = (profile.profile_id, day, activity.lower() if activity else None)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        snapshot = compute_snapshot(
            profile, day, table=self.table, weights=self.weights, activity=activity
        )
        self.cache.put(key, snapshot)
        return snapshot

    def score(self, profile: BirthProfile, day: date) -> float:
        """Composite score for one date (no activity)."""
        return self.snapshot(profile, day).composite.score

    def forecast(
        self, profile: BirthProfile, start: date, days: int = 7, activity: str | None = None
    ) -> list[DailySnapshot]:
        """Snapshots for ``days`` consecutive dates from ``start``.

        Raises:
            ValidationError: On a day count outside 1-MAX_RANGE_DAYS or a
                range running past the last supported date.
        """
        if not 1 <= days <= MAX_RANGE_DAYS:
            msg = f"days must be between 1 and {MAX_RANGE_DAYS}, got {days}"
            raise ValidationError(msg)
        start = validate_date(start)
        if (date.max - start).days < days - 1:
            msg = f"A {days}-day forecast from {start} runs past {date.max}"
            raise ValidationError(msg)
        logger.debug("Forecasting %d days from %s", days, start)
        return [self.snapshot(profile, start + timedelta(days=i), activity) for i in range(days)]
