"""Composite engine data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from energy_today.errors import ValidationError

if TYPE_CHECKING:
    from datetime import date

    from energy_today.systems.day_fortune import Weekday
    from energy_today.systems.elements import Element, RelationshipClass
    from energy_today.systems.lunar import LunarPhase, LunarReading, NatalMoon


class CompositeCategory(StrEnum):
    STRONG = "strong"
    MODERATE = "moderate"
    CHALLENGING = "challenging"


@dataclass(frozen=True)
class CompositeWeights:
    """Relative weight of each component in the composite score.

    Weights need not sum to 1; they are renormalized over the components
    that are actually present. A weight of 0 drops the component.
    """

    numerology: float = 1.0
    lunar: float = 1.0
    element: float = 1.0
    day_fortune: float = 1.0
    natal_moon: float = 0.0

    def __post_init__(self) -> None:
        for name, value in self.as_dict().items():
            if value < 0:
                msg = f"Weight {name} must be >= 0, got {value}"
                raise ValidationError(msg)
        if not any(self.as_dict().values()):
            msg = "At least one composite weight must be positive"
            raise ValidationError(msg)

    def as_dict(self) -> dict[str, float]:
        return {
            "numerology": self.numerology,
            "lunar": self.lunar,
            "element": self.element,
            "day_fortune": self.day_fortune,
            "natal_moon": self.natal_moon,
        }


DEFAULT_WEIGHTS = CompositeWeights()


@dataclass(frozen=True)
class ElementInteraction:
    """The user's year element meeting the day's year element."""

    user_element: Element
    day_element: Element
    relationship_class: RelationshipClass
    score: float


@dataclass(frozen=True)
class DayFortune:
    """Weekday fortune applied to one date.

    ``category`` is the activity whose score was used, or None when the
    weekday base score applies.
    """

    weekday: Weekday
    color: str
    category: str | None
    score: float


@dataclass(frozen=True)
class Composite:
    """Weighted composite on [0, 100] and the 0-100 components behind it."""

    score: float
    category: CompositeCategory
    components: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class DailySnapshot:
    """Everything the engine derives for one profile on one date."""

    date: date
    profile_id: str
    julian_day_number: int
    life_path_number: int
    personal_year_number: int
    day_number: int
    lunar: LunarReading
    element_interaction: ElementInteraction
    day_fortune: DayFortune
    composite: Composite
    natal_moon: NatalMoon | None = None

    @property
    def lunar_phase(self) -> LunarPhase:
        return self.lunar.phase

    @property
    def score(self) -> float:
        return self.composite.score
