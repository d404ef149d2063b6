"""Tests for the LRU snapshot cache."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from energy_today.engine import SnapshotCache, compute_snapshot
from energy_today.schemas import BirthProfile
from energy_today.systems.day_fortune import DayFortuneTable


class TestSnapshotCache:
    """Test eviction and counters."""

    def test_rejects_zero_size(self) -> None:
        with pytest.raises(ValueError):
            SnapshotCache(0)

    def test_evicts_least_recently_used(
        self, profile: BirthProfile, table: DayFortuneTable
    ) -> None:
        cache = SnapshotCache(maxsize=2)
        days = [date(2024, 1, 1) + timedelta(days=i) for i in range(3)]
        keys = [(profile.profile_id, d, None) for d in days]
        snaps = [compute_snapshot(profile, d, table=table) for d in days]

        cache.put(keys[0], snaps[0])
        cache.put(keys[1], snaps[1])
        assert cache.get(keys[0]) is snaps[0]  # 0 is now most recent
        cache.put(keys[2], snaps[2])

        assert len(cache) == 2
        assert cache.get(keys[1]) is None
        assert cache.get(keys[0]) is snaps[0]
        assert cache.get(keys[2]) is snaps[2]

    def test_counters_and_clear(self, profile: BirthProfile, table: DayFortuneTable) -> None:
        cache = SnapshotCache()
        key = (profile.profile_id, date(2024, 1, 1), None)
        assert cache.get(key) is None
        cache.put(key, compute_snapshot(profile, date(2024, 1, 1), table=table))
        cache.get(key)
        assert (cache.hits, cache.misses) == (1, 1)

        cache.clear()
        assert len(cache) == 0
        assert (cache.hits, cache.misses) == (0, 0)
