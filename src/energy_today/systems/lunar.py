"""
Lunar phase from the Julian Day Number.

The moon's age is the time since a known new moon, modulo the mean synodic
month:

    JD        = JDN(date) - 0.5                  (UTC midnight of the date)
    moon_age  = (JD - REFERENCE_NEW_MOON_JD) mod SYNODIC_MONTH_DAYS

The age is bucketed into eight equal, contiguous intervals starting at 0
(each SYNODIC_MONTH_DAYS / 8 ~= 3.6913 days wide):

    new [0, 3.69)  waxing crescent [3.69, 7.38)  first quarter [7.38, 11.07)
    waxing gibbous [11.07, 14.77)  full [14.77, 18.46)
    waning gibbous [18.46, 22.15)  last quarter [22.15, 25.84)
    waning crescent [25.84, 29.53)

References:
    - Fliegel & Van Flandern (1968), "A Machine Algorithm for Processing
      Calendar Dates", Communications of the ACM 11(10).
    - Reference new moon: 2000-01-06 18:14 UTC.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING

from energy_today.systems.numerology import validate_date

if TYPE_CHECKING:
    from energy_today.schemas import BirthProfile

SYNODIC_MONTH_DAYS = 29.530588853

# Julian Date of the new moon of 2000-01-06 18:14 UTC
REFERENCE_NEW_MOON_JD = 2451550.259722

PHASE_WIDTH_DAYS = SYNODIC_MONTH_DAYS / 8


class LunarPhase(StrEnum):
    """The eight named phases, in cycle order."""

    NEW_MOON = "new_moon"
    WAXING_CRESCENT = "waxing_crescent"
    FIRST_QUARTER = "first_quarter"
    WAXING_GIBBOUS = "waxing_gibbous"
    FULL_MOON = "full_moon"
    WANING_GIBBOUS = "waning_gibbous"
    LAST_QUARTER = "last_quarter"
    WANING_CRESCENT = "waning_crescent"


PHASE_ORDER: tuple[LunarPhase, ...] = tuple(LunarPhase)

# Lower bound (in days of moon age) of each bucket
PHASE_BOUNDARIES: tuple[tuple[LunarPhase, float], ...] = tuple(
    (phase, i * PHASE_WIDTH_DAYS) for i, phase in enumerate(PHASE_ORDER)
)

# 0-100 contribution of each phase to the composite score
PHASE_INTENSITY: dict[LunarPhase, int] = {
    LunarPhase.NEW_MOON: 70,
    LunarPhase.WAXING_CRESCENT: 75,
    LunarPhase.FIRST_QUARTER: 80,
    LunarPhase.WAXING_GIBBOUS: 85,
    LunarPhase.FULL_MOON: 95,
    LunarPhase.WANING_GIBBOUS: 85,
    LunarPhase.LAST_QUARTER: 75,
    LunarPhase.WANING_CRESCENT: 65,
}


@dataclass(frozen=True)
class LunarReading:
    """Moon state at the UTC midnight of one calendar date."""

    julian_day_number: int
    age_days: float
    phase: LunarPhase

    @property
    def intensity(self) -> int:
        return PHASE_INTENSITY[self.phase]


@dataclass(frozen=True)
class NatalMoon:
    """Moon at the birth instant and its resonance with a given day."""

    age_days: float
    phase: LunarPhase
    resonance: float


def to_utc_date(value: date | datetime) -> date:
    """Normalize to a UTC calendar date. Naive datetimes are taken as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()
    return value


def _gregorian_jdn(d: date) -> int:
    a = (14 - d.month) // 12
    y = d.year + 4800 - a
    m = d.month + 12 * a - 3
    return d.day + (153 * m + 2) // 5 + 365 * y + y // 4 - y // 100 + y // 400 - 32045


def julian_day_number(value: date | datetime) -> int:
    """Integer Julian Day Number of a Gregorian calendar date (noon-based)."""
    return _gregorian_jdn(validate_date(to_utc_date(value)))


def julian_date_at_midnight(value: date | datetime) -> float:
    """Julian Date of 00:00 UTC on the given calendar date."""
    return julian_day_number(value) - 0.5


def moon_age(jd: float) -> float:
    """Days since the last new moon, in ``[0, SYNODIC_MONTH_DAYS)``."""
    age = (jd - REFERENCE_NEW_MOON_JD) % SYNODIC_MONTH_DAYS
    # float modulo of a tiny negative can round up to the divisor
    if age >= SYNODIC_MONTH_DAYS:
        age = 0.0
    return age


def phase_for_age(age_days: float) -> LunarPhase:
    """Bucket a moon age into one of the eight phases."""
    if not 0 <= age_days < SYNODIC_MONTH_DAYS:
        age_days %= SYNODIC_MONTH_DAYS
    index = min(int(age_days // PHASE_WIDTH_DAYS), len(PHASE_ORDER) - 1)
    return PHASE_ORDER[index]


def lunar_reading(value: date | datetime) -> LunarReading:
    """Moon age and phase at the UTC midnight of ``value``."""
    jdn = julian_day_number(value)
    age = moon_age(jdn - 0.5)
    return LunarReading(julian_day_number=jdn, age_days=age, phase=phase_for_age(age))


def birth_instant_jd(profile: BirthProfile) -> float | None:
    """Julian Date of the birth instant, or None without a time of birth.

    Local time is shifted to UTC by ``longitude / 15`` hours when a
    birthplace is known, otherwise it is taken as UTC.
    """
    minutes = profile.birth_minutes
    if minutes is None:
        return None
    offset_hours = profile.place_of_birth.longitude / 15 if profile.place_of_birth else 0.0
    local = datetime.combine(profile.date_of_birth, datetime.min.time())
    utc = local + timedelta(minutes=minutes) - timedelta(hours=offset_hours)
    day_start = datetime.combine(utc.date(), datetime.min.time())
    fraction = (utc - day_start).total_seconds() / 86400
    return _gregorian_jdn(utc.date()) - 0.5 + fraction


def lunar_resonance(natal_age: float, day_age: float) -> float:
    """0-100 closeness of two moon ages on the cycle (100 = same age)."""
    diff = abs(natal_age - day_age) % SYNODIC_MONTH_DAYS
    distance = min(diff, SYNODIC_MONTH_DAYS - diff)
    return 50.0 * (1.0 + math.cos(math.pi * distance / (SYNODIC_MONTH_DAYS / 2)))


def natal_moon(profile: BirthProfile, day: LunarReading) -> NatalMoon | None:
    """Natal moon for ``profile`` relative to ``day``; None if birth time is unknown."""
    jd = birth_instant_jd(profile)
    if jd is None:
        return None
    age = moon_age(jd)
    return NatalMoon(
        age_days=age,
        phase=phase_for_age(age),
        resonance=lunar_resonance(age, day.age_days),
    )
