"""
Composite energy score from the four calculation systems.

Each system contributes a 0-100 component:

    numerology   100 - 25 * mean(cyclic distance of the day root to the
                 life-path root and to the personal-year root)
    lunar        phase intensity (lunar.PHASE_INTENSITY)
    element      (interaction_score + 1) * 50
    day_fortune  weekday activity score, or the weekday base score
    natal_moon   lunar resonance (only with a time of birth, weight 0 by default)

The composite is the weighted mean of the present components, rounded half-up
to two decimals (``analysis.common.round_half_up``, the rule every reported
number follows) and clamped to [0, 100]. Components with zero weight or no
value are left out and the remaining weights renormalized. When that leaves
nothing (only natal_moon weighted, no time of birth) the default equal
weights apply instead.

Everything here is a pure function of (profile, date, table, weights,
activity): no clock reads, no caching, no I/O.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING

from energy_today.analysis.common import round_half_up
from energy_today.engine.models import (
    DEFAULT_WEIGHTS,
    Composite,
    CompositeCategory,
    CompositeWeights,
    DailySnapshot,
    DayFortune,
    ElementInteraction,
)
from energy_today.errors import ValidationError
from energy_today.systems import elements, lunar, numerology
from energy_today.systems.day_fortune import weekday_of

if TYPE_CHECKING:
    from energy_today.schemas import BirthProfile
    from energy_today.systems.day_fortune import DayFortuneTable

STRONG_THRESHOLD = 75.0
MODERATE_THRESHOLD = 40.0

# Largest cyclic distance between two roots on 1..9
MAX_ROOT_DISTANCE = 4

# Longest range compute_range will produce in one call
MAX_RANGE_DAYS = 366


def classify_composite(score: float) -> CompositeCategory:
    """Map a composite score to its category (>= 75 strong, >= 40 moderate)."""
    if score >= STRONG_THRESHOLD:
        return CompositeCategory.STRONG
    if score >= MODERATE_THRESHOLD:
        return CompositeCategory.MODERATE
    return CompositeCategory.CHALLENGING


def root_distance(a: int, b: int) -> int:
    """Cyclic distance between two numbers after collapsing to roots 1..9."""
    d = abs(numerology.root_number(a) - numerology.root_number(b)) % 9
    return min(d, 9 - d)


def numerology_intensity(day_num: int, life_path: int, personal_year: int) -> float:
    """How closely the day's number resonates with the personal numbers (0-100)."""
    mean_distance = (root_distance(day_num, life_path) + root_distance(day_num, personal_year)) / 2
    return 100.0 - (100.0 / MAX_ROOT_DISTANCE) * mean_distance


def element_component(score: float) -> float:
    """Map an interaction score on [-1, 1] to [0, 100]."""
    return (score + 1.0) * 50.0


def combine_components(
    components: dict[str, float | None], weights: CompositeWeights
) -> float:
    """Weighted mean of the present components, rounded and clamped to [0, 100].

    Falls back to ``DEFAULT_WEIGHTS`` when no weighted component is present.
    """
    weight_for = weights.as_dict()
    total = 0.0
    weight_sum = 0.0
    for name, value in components.items():
        weight = weight_for.get(name, 0.0)
        if value is None or weight <= 0:
            continue
        total += weight * value
        weight_sum += weight

    if weight_sum == 0:
        if weights != DEFAULT_WEIGHTS:
            return combine_components(components, DEFAULT_WEIGHTS)
        msg = "No weighted components available for the composite"
        raise ValidationError(msg)
    return min(100.0, max(0.0, round_half_up(total / weight_sum, 2)))


def _as_day(value: date | datetime | str) -> date:
    if isinstance(value, str):
        return numerology.parse_date(value)
    return numerology.validate_date(lunar.to_utc_date(value))


def compute_snapshot(
    profile: BirthProfile,
    day: date | datetime | str,
    *,
    table: DayFortuneTable,
    weights: CompositeWeights = DEFAULT_WEIGHTS,
    activity: str | None = None,
) -> DailySnapshot:
    """
    Compute the full daily snapshot for ``profile`` on ``day``.

    Args:
        profile: Birth data.
        day: Target date. Datetimes are normalized to their UTC date.
        table: Weekday fortune configuration.
        weights: Component weights.
        activity: Optional activity category for the day fortune score.

    Returns:
        Frozen snapshot; identical inputs always give an identical snapshot.

    Raises:
        ValidationError: On an out-of-range or malformed date.
    """
    target = _as_day(day)
    birth = numerology.validate_date(profile.date_of_birth)

    life_path = numerology.life_path_number(birth)
    personal_year = numerology.personal_year_number(birth.month, birth.day, target.year)
    day_num = numerology.day_number(target.day)

    reading = lunar.lunar_reading(target)
    natal = lunar.natal_moon(profile, reading)

    user_element = elements.element_for_year(birth.year)
    day_element = elements.element_for_year(target.year)
    relation = elements.relationship(user_element, day_element)
    interaction = ElementInteraction(
        user_element=user_element,
        day_element=day_element,
        relationship_class=relation,
        score=elements.INTERACTION_SCORES[relation],
    )

    weekday = weekday_of(target)
    entry = table.entry_for(weekday)
    category = activity.lower() if activity and activity.lower() in entry.scores else None
    fortune = DayFortune(
        weekday=weekday,
        color=entry.color,
        category=category,
        score=table.score_for(weekday, category),
    )

    components: dict[str, float | None] = {
        "numerology": numerology_intensity(day_num, life_path, personal_year),
        "lunar": float(reading.intensity),
        "element": element_component(interaction.score),
        "day_fortune": fortune.score,
        "natal_moon": natal.resonance if natal else None,
    }
    score = combine_components(components, weights)
    composite = Composite(
        score=score,
        category=classify_composite(score),
        components={k: round_half_up(v, 2) for k, v in components.items() if v is not None},
    )

    return DailySnapshot(
        date=target,
        profile_id=profile.profile_id,
        julian_day_number=reading.julian_day_number,
        life_path_number=life_path,
        personal_year_number=personal_year,
        day_number=day_num,
        lunar=reading,
        element_interaction=interaction,
        day_fortune=fortune,
        composite=composite,
        natal_moon=natal,
    )


def compute_range(
    profile: BirthProfile,
    start: date | datetime | str,
    end: date | datetime | str,
    *,
    table: DayFortuneTable,
    weights: CompositeWeights = DEFAULT_WEIGHTS,
    activity: str | None = None,
) -> list[DailySnapshot]:
    """Snapshots for every date from ``start`` to ``end`` inclusive."""
    first = _as_day(start)
    last = _as_day(end)
    if last < first:
        msg = f"Range end {last} is before start {first}"
        raise ValidationError(msg)
    days = (last - first).days + 1
    if days > MAX_RANGE_DAYS:
        msg = f"Range of {days} days exceeds {MAX_RANGE_DAYS}"
        raise ValidationError(msg)
    return [
        compute_snapshot(
            profile, first + timedelta(days=i), table=table, weights=weights, activity=activity
        )
        for i in range(days)
    ]
