"""
Domain models for energy-today.

Pydantic models for user-supplied input and persisted records. These define
the canonical schema; everything read from the key-value store is validated
back through them.
"""

from __future__ import annotations

import hashlib
import uuid
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from energy_today.errors import ValidationError
from energy_today.systems.numerology import MIN_YEAR

M = TypeVar("M", bound=BaseModel)


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(UTC)


def parse_model(model: type[M], data: Any) -> M:
    """Validate ``data`` into ``model``, raising the package ``ValidationError``."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        msg = f"Invalid {model.__name__}: {exc.errors(include_url=False)}"
        raise ValidationError(msg) from exc


# =============================================================================
# Profile
# =============================================================================


class PlaceOfBirth(BaseModel):
    """Birthplace with coordinates."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    city: str
    country: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class BirthProfile(BaseModel):
    """Immutable birth data captured at onboarding.

    Never edited; a changed profile is saved as a whole new value.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    date_of_birth: date
    time_of_birth: str | None = Field(default=None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    place_of_birth: PlaceOfBirth | None = None

    @field_validator("date_of_birth")
    @classmethod
    def _year_in_range(cls, value: date) -> date:
        if value.year < MIN_YEAR:
            msg = f"date_of_birth year must be >= {MIN_YEAR}"
            raise ValueError(msg)
        return value

    @property
    def profile_id(self) -> str:
        """Stable digest of the profile contents (cache key)."""
        canonical = self.model_dump_json()
        return hashlib.sha256(canonical.encode()).hexdigest()[:16]

    @property
    def birth_minutes(self) -> int | None:
        """Minutes after local midnight of the time of birth, if known."""
        if self.time_of_birth is None:
            return None
        hours, minutes = self.time_of_birth.split(":")
        return int(hours) * 60 + int(minutes)


# =============================================================================
# Observations
# =============================================================================


class ObservationCategory(StrEnum):
    """Kind of real-world data point."""

    HABIT = "habit"
    SLEEP = "sleep"
    BUSINESS = "business"
    WEATHER = "weather"


class Observation(BaseModel):
    """A dated real-world data point, normalized across categories.

    ``subject`` names what was observed within the category: a habit id, a
    sleep measure (``hours``, ``quality``), a business measure or a weather
    variable. ``outcome`` is a done/not-done flag or a measured value.

    Business observations may also list the ``activities`` done that day
    and whether the day's advice was followed (None when not reported).
    """

    id: str = Field(default_factory=_new_id)
    category: ObservationCategory
    subject: str = Field(..., min_length=1)
    date: date
    outcome: bool | float
    activities: list[str] = Field(default_factory=list)
    followed_advice: bool | None = None
    recorded_at: datetime = Field(default_factory=_utcnow)

    @field_validator("date")
    @classmethod
    def _year_in_range(cls, value: date) -> date:
        if value.year < MIN_YEAR:
            msg = f"observation year must be >= {MIN_YEAR}"
            raise ValueError(msg)
        return value

    @field_validator("activities")
    @classmethod
    def _normalize_activities(cls, value: list[str]) -> list[str]:
        names = [name.strip().lower() for name in value]
        if not all(names):
            msg = "activity names must not be empty"
            raise ValueError(msg)
        return list(dict.fromkeys(names))


# =============================================================================
# Forecast accuracy
# =============================================================================


class Rating(StrEnum):
    """User verdict on a forecast."""

    ACCURATE = "accurate"
    INACCURATE = "inaccurate"


class AccuracyRecord(BaseModel):
    """One user rating of one forecast."""

    id: str = Field(default_factory=_new_id)
    forecast_id: str = Field(..., min_length=1)
    rating: Rating
    category: str = Field(default="general", min_length=1)
    confidence: float | None = Field(default=None, ge=0, le=100)
    rated_on: date
    recorded_at: datetime = Field(default_factory=_utcnow)
