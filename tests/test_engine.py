"""Tests for the composite snapshot engine."""

from __future__ import annotations

import random
from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from energy_today.analysis.common import round_half_up
from energy_today.engine import (
    DEFAULT_WEIGHTS,
    CompositeCategory,
    CompositeWeights,
    EngineContext,
    classify_composite,
    compute_range,
    compute_snapshot,
    snapshot_from_dict,
    snapshot_to_dict,
)
from energy_today.engine.compose import (
    combine_components,
    element_component,
    numerology_intensity,
    root_distance,
)
from energy_today.errors import ValidationError
from energy_today.schemas import BirthProfile
from energy_today.systems.day_fortune import DayFortuneTable, Weekday
from energy_today.systems.elements import Element, RelationshipClass
from energy_today.systems.lunar import LunarPhase

TARGET = date(2024, 6, 15)

# 1800-01-01 through 2100-12-31
EARLIEST = date(1800, 1, 1)
SPAN_DAYS = (date(2100, 12, 31) - EARLIEST).days + 1


def _random_profile(rng: random.Random) -> BirthProfile:
    birth = EARLIEST + timedelta(days=rng.randrange(0, SPAN_DAYS))
    time_of_birth = None
    if rng.random() < 0.5:
        time_of_birth = f"{rng.randrange(24):02d}:{rng.randrange(60):02d}"
    place = None
    if rng.random() < 0.5:
        place = {
            "city": "Somewhere",
            "country": "Anywhere",
            "latitude": rng.uniform(-90, 90),
            "longitude": rng.uniform(-180, 180),
        }
    return BirthProfile(
        name="Random",
        date_of_birth=birth,
        time_of_birth=time_of_birth,
        place_of_birth=place,
    )


class TestComputeSnapshot:
    """End-to-end snapshot for a known profile and date."""

    def test_numbers(self, profile: BirthProfile, table: DayFortuneTable) -> None:
        snap = compute_snapshot(profile, TARGET, table=table)
        assert snap.date == TARGET
        assert snap.julian_day_number == 2460477
        assert snap.life_path_number == 3
        assert snap.personal_year_number == 1
        assert snap.day_number == 6
        assert snap.profile_id == profile.profile_id

    def test_systems(self, profile: BirthProfile, table: DayFortuneTable) -> None:
        snap = compute_snapshot(profile, TARGET, table=table)
        assert snap.lunar_phase is LunarPhase.FIRST_QUARTER
        assert snap.element_interaction.user_element is Element.METAL
        assert snap.element_interaction.day_element is Element.WOOD
        assert snap.element_interaction.relationship_class is RelationshipClass.DESTROYS
        assert snap.element_interaction.score == -0.5
        assert snap.day_fortune.weekday is Weekday.SATURDAY
        assert snap.day_fortune.color == "Purple"
        assert snap.day_fortune.category is None
        assert snap.day_fortune.score == 40

    def test_composite(self, profile: BirthProfile, table: DayFortuneTable) -> None:
        snap = compute_snapshot(profile, TARGET, table=table)
        assert snap.composite.components == {
            "numerology": 12.5,
            "lunar": 80.0,
            "element": 25.0,
            "day_fortune": 40.0,
        }
        # 39.375 rounds half-up
        assert snap.score == 39.38
        assert snap.composite.category is CompositeCategory.CHALLENGING
        assert snap.natal_moon is None

    def test_activity(self, profile: BirthProfile, table: DayFortuneTable) -> None:
        snap = compute_snapshot(profile, TARGET, table=table, activity="Planning")
        assert snap.day_fortune.category == "planning"
        assert snap.day_fortune.score == 75
        assert snap.score == 48.13
        assert snap.composite.category is CompositeCategory.MODERATE

    def test_unknown_activity_uses_base(
        self, profile: BirthProfile, table: DayFortuneTable
    ) -> None:
        snap = compute_snapshot(profile, TARGET, table=table, activity="juggling")
        assert snap.day_fortune.category is None
        assert snap.day_fortune.score == 40

    def test_deterministic(self, profile: BirthProfile, table: DayFortuneTable) -> None:
        assert compute_snapshot(profile, TARGET, table=table) == compute_snapshot(
            profile, TARGET, table=table
        )

    def test_string_and_datetime_inputs(
        self, profile: BirthProfile, table: DayFortuneTable
    ) -> None:
        expected = compute_snapshot(profile, TARGET, table=table)
        assert compute_snapshot(profile, "2024-06-15", table=table) == expected
        aware = datetime(2024, 6, 14, 22, 0, tzinfo=timezone(timedelta(hours=-4)))
        assert compute_snapshot(profile, aware, table=table) == expected

    def test_out_of_range_date(self, profile: BirthProfile, table: DayFortuneTable) -> None:
        with pytest.raises(ValidationError):
            compute_snapshot(profile, date(1700, 1, 1), table=table)
        with pytest.raises(ValidationError):
            compute_snapshot(profile, "15/06/2024", table=table)

    def test_random_profiles_and_dates_stay_in_bounds(self, table: DayFortuneTable) -> None:
        rng = random.Random(42)
        activities = [*table.activities, "unknown", None]
        with_natal = CompositeWeights(natal_moon=1)
        for _ in range(1000):
            profile = _random_profile(rng)
            day = EARLIEST + timedelta(days=rng.randrange(0, SPAN_DAYS))
            weights = with_natal if rng.random() < 0.5 else DEFAULT_WEIGHTS
            snap = compute_snapshot(
                profile, day, table=table, weights=weights, activity=rng.choice(activities)
            )
            assert 0 <= snap.score <= 100
            assert snap.score == round(snap.score, 2)
            assert snap.composite.category is classify_composite(snap.score)
            assert all(0 <= v <= 100 for v in snap.composite.components.values())

    def test_natal_moon_component(
        self, timed_profile: BirthProfile, table: DayFortuneTable
    ) -> None:
        plain = compute_snapshot(timed_profile, TARGET, table=table)
        assert plain.natal_moon is not None
        assert "natal_moon" in plain.composite.components

        only_natal = CompositeWeights(
            numerology=0, lunar=0, element=0, day_fortune=0, natal_moon=1
        )
        snap = compute_snapshot(timed_profile, TARGET, table=table, weights=only_natal)
        assert snap.score == round_half_up(plain.natal_moon.resonance, 2)


class TestWeights:
    """Test weighting and combination."""

    def test_zero_weight_drops_component(
        self, profile: BirthProfile, table: DayFortuneTable
    ) -> None:
        weights = CompositeWeights(numerology=0, lunar=1, element=0, day_fortune=0)
        assert compute_snapshot(profile, TARGET, table=table, weights=weights).score == 80

    def test_relative_weights(self) -> None:
        weights = CompositeWeights(numerology=3, lunar=1, element=0, day_fortune=0)
        assert combine_components({"numerology": 100, "lunar": 0}, weights) == 75

    def test_missing_component_renormalized(self) -> None:
        weights = CompositeWeights(natal_moon=1)
        components = {"numerology": 40, "lunar": 60, "natal_moon": None}
        assert combine_components(components, weights) == 50

    def test_falls_back_to_default_weights(self) -> None:
        weights = CompositeWeights(numerology=0, lunar=0, element=0, day_fortune=0, natal_moon=1)
        components = {"natal_moon": None, "lunar": 80, "element": 40}
        assert combine_components(components, weights) == 60

    def test_only_natal_weight_without_birth_time(
        self, profile: BirthProfile, table: DayFortuneTable
    ) -> None:
        weights = CompositeWeights(numerology=0, lunar=0, element=0, day_fortune=0, natal_moon=1)
        snap = compute_snapshot(profile, TARGET, table=table, weights=weights)
        assert snap.natal_moon is None
        assert snap.score == compute_snapshot(profile, TARGET, table=table).score

    def test_nothing_to_combine(self) -> None:
        with pytest.raises(ValidationError):
            combine_components({"natal_moon": None}, DEFAULT_WEIGHTS)

    def test_rounds_half_up(self) -> None:
        weights = CompositeWeights(numerology=1, lunar=1, element=0, day_fortune=0)
        assert combine_components({"numerology": 10.005, "lunar": 10.005}, weights) == 10.01
        assert combine_components({"numerology": 0.125, "lunar": 0.125}, weights) == 0.13

    def test_negative_weight_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CompositeWeights(lunar=-1)

    def test_all_zero_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CompositeWeights(numerology=0, lunar=0, element=0, day_fortune=0, natal_moon=0)


class TestComponents:
    """Test the per-system component mappings."""

    def test_root_distance(self) -> None:
        assert root_distance(6, 3) == 3
        assert root_distance(6, 1) == 4
        assert root_distance(9, 1) == 1
        assert root_distance(11, 2) == 0

    def test_numerology_intensity(self) -> None:
        assert numerology_intensity(6, 3, 1) == 12.5
        assert numerology_intensity(5, 5, 5) == 100

    def test_element_component(self) -> None:
        assert element_component(-1) == 0
        assert element_component(0.8) == pytest.approx(90)

    @pytest.mark.parametrize(
        ("score", "category"),
        [
            (100, CompositeCategory.STRONG),
            (75, CompositeCategory.STRONG),
            (74.99, CompositeCategory.MODERATE),
            (40, CompositeCategory.MODERATE),
            (39.99, CompositeCategory.CHALLENGING),
            (0, CompositeCategory.CHALLENGING),
        ],
    )
    def test_classify(self, score: float, category: CompositeCategory) -> None:
        assert classify_composite(score) is category


class TestComputeRange:
    """Test date ranges."""

    def test_inclusive(self, profile: BirthProfile, table: DayFortuneTable) -> None:
        snaps = compute_range(profile, TARGET, TARGET + timedelta(days=6), table=table)
        assert [s.date for s in snaps] == [TARGET + timedelta(days=i) for i in range(7)]

    def test_single_day(self, profile: BirthProfile, table: DayFortuneTable) -> None:
        assert len(compute_range(profile, "2024-06-15", "2024-06-15", table=table)) == 1

    def test_reversed(self, profile: BirthProfile, table: DayFortuneTable) -> None:
        with pytest.raises(ValidationError):
            compute_range(profile, TARGET, TARGET - timedelta(days=1), table=table)

    def test_too_long(self, profile: BirthProfile, table: DayFortuneTable) -> None:
        with pytest.raises(ValidationError):
            compute_range(profile, TARGET, TARGET + timedelta(days=366), table=table)


class TestSerialization:
    """Test snapshot dict conversion."""

    def test_shape(self, profile: BirthProfile, table: DayFortuneTable) -> None:
        data = snapshot_to_dict(compute_snapshot(profile, TARGET, table=table))
        assert data["date"] == "2024-06-15"
        assert data["lunar_phase"]["name"] == "first_quarter"
        assert data["element_interaction"]["relationship_class"] == "destroys"
        assert data["day_fortune"] == {
            "weekday": "saturday",
            "color": "Purple",
            "category": None,
            "score": 40.0,
        }
        assert data["composite"]["category"] == "challenging"
        assert "natal_moon" not in data

    def test_restores_snapshot(self, timed_profile: BirthProfile, table: DayFortuneTable) -> None:
        snap = compute_snapshot(timed_profile, TARGET, table=table)
        restored = snapshot_from_dict(snapshot_to_dict(snap))
        assert restored.composite == snap.composite
        assert restored.day_fortune == snap.day_fortune
        assert restored.lunar.phase is snap.lunar.phase
        assert restored.natal_moon is not None

    def test_malformed(self) -> None:
        with pytest.raises(ValidationError):
            snapshot_from_dict({"date": "2024-06-15"})


class TestEngineContext:
    """Test the cached engine context."""

    def test_snapshot_cached(self, engine: EngineContext, profile: BirthProfile) -> None:
        first = engine.snapshot(profile, TARGET)
        second = engine.snapshot(profile, TARGET)
        assert first is second
        assert engine.cache.hits == 1
        assert engine.cache.misses == 1

    def test_activity_is_part_of_key(self, engine: EngineContext, profile: BirthProfile) -> None:
        plain = engine.snapshot(profile, TARGET)
        planning = engine.snapshot(profile, TARGET, "planning")
        assert plain.score != planning.score
        assert engine.snapshot(profile, TARGET, "PLANNING") is planning

    def test_score(self, engine: EngineContext, profile: BirthProfile) -> None:
        assert engine.score(profile, TARGET) == engine.snapshot(profile, TARGET).score

    def test_forecast(self, engine: EngineContext, profile: BirthProfile) -> None:
        snaps = engine.forecast(profile, TARGET, 3)
        assert [s.date for s in snaps] == [TARGET + timedelta(days=i) for i in range(3)]
        assert len(engine.cache) == 3

    @pytest.mark.parametrize("days", [0, 367])
    def test_forecast_bounds(self, engine: EngineContext, profile: BirthProfile, days: int) -> None:
        with pytest.raises(ValidationError):
            engine.forecast(profile, TARGET, days)

    def test_forecast_past_last_date(self, engine: EngineContext, profile: BirthProfile) -> None:
        last = date(9999, 12, 31)
        assert len(engine.forecast(profile, last, 1)) == 1
        with pytest.raises(ValidationError):
            engine.forecast(profile, last, 2)
        with pytest.raises(ValidationError):
            engine.forecast(profile, date(9999, 12, 1), 40)

    def test_default(self) -> None:
        engine = EngineContext.default()
        assert engine.table.score_for(Weekday.SATURDAY) == 40

    def test_now_independent(self, engine: EngineContext, profile: BirthProfile) -> None:
        noon = datetime(2024, 6, 15, 12, tzinfo=UTC)
        assert compute_snapshot(profile, noon, table=engine.table) == engine.snapshot(
            profile, TARGET
        )
