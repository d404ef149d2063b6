"""JSON serialization helpers for daily snapshots."""

from __future__ import annotations

from datetime import date
from typing import Any

from energy_today.analysis.common import round_half_up
from energy_today.engine.models import (
    Composite,
    CompositeCategory,
    DailySnapshot,
    DayFortune,
    ElementInteraction,
)
from energy_today.errors import ValidationError
from energy_today.systems.day_fortune import Weekday
from energy_today.systems.elements import Element, RelationshipClass
from energy_today.systems.lunar import LunarPhase, LunarReading, NatalMoon


def snapshot_to_dict(snapshot: DailySnapshot) -> dict[str, Any]:
    """Serialize a DailySnapshot to a JSON-compatible dict.

    ``natal_moon`` is only present when the profile has a time of birth.
    """
    result: dict[str, Any] = {
        "date": snapshot.date.isoformat(),
        "profile_id": snapshot.profile_id,
        "julian_day_number": snapshot.julian_day_number,
        "life_path_number": snapshot.life_path_number,
        "personal_year_number": snapshot.personal_year_number,
        "day_number": snapshot.day_number,
        "lunar_phase": {
            "name": snapshot.lunar.phase.value,
            "age_days": round(snapshot.lunar.age_days, 4),
        },
        "element_interaction": {
            "user_element": snapshot.element_interaction.user_element.value,
            "day_element": snapshot.element_interaction.day_element.value,
            "relationship_class": snapshot.element_interaction.relationship_class.value,
            "score": snapshot.element_interaction.score,
        },
        "day_fortune": {
            "weekday": snapshot.day_fortune.weekday.value,
            "color": snapshot.day_fortune.color,
            "category": snapshot.day_fortune.category,
            "score": snapshot.day_fortune.score,
        },
        "composite": {
            "score": snapshot.composite.score,
            "category": snapshot.composite.category.value,
            "components": dict(snapshot.composite.components),
        },
    }
    if snapshot.natal_moon is not None:
        result["natal_moon"] = {
            "name": snapshot.natal_moon.phase.value,
            "age_days": round(snapshot.natal_moon.age_days, 4),
            "resonance": round_half_up(snapshot.natal_moon.resonance, 2),
        }
    return result


def snapshot_from_dict(data: dict[str, Any]) -> DailySnapshot:
    """Rebuild a DailySnapshot from ``snapshot_to_dict`` output.

    Ages are restored at the stored precision.

    Raises:
        ValidationError: If a field is missing or has an unknown value.
    """
    try:
        lunar = data["lunar_phase"]
        element = data["element_interaction"]
        fortune = data["day_fortune"]
        composite = data["composite"]
        natal = data.get("natal_moon")
        return DailySnapshot(
            date=date.fromisoformat(data["date"]),
            profile_id=data["profile_id"],
            julian_day_number=int(data["julian_day_number"]),
            life_path_number=int(data["life_path_number"]),
            personal_year_number=int(data["personal_year_number"]),
            day_number=int(data["day_number"]),
            lunar=LunarReading(
                julian_day_number=int(data["julian_day_number"]),
                age_days=float(lunar["age_days"]),
                phase=LunarPhase(lunar["name"]),
            ),
            element_interaction=ElementInteraction(
                user_element=Element(element["user_element"]),
                day_element=Element(element["day_element"]),
                relationship_class=RelationshipClass(element["relationship_class"]),
                score=float(element["score"]),
            ),
            day_fortune=DayFortune(
                weekday=Weekday(fortune["weekday"]),
                color=fortune["color"],
                category=fortune.get("category"),
                score=float(fortune["score"]),
            ),
            composite=Composite(
                score=float(composite["score"]),
                category=CompositeCategory(composite["category"]),
                components={k: float(v) for k, v in composite.get("components", {}).items()},
            ),
            natal_moon=NatalMoon(
                age_days=float(natal["age_days"]),
                phase=LunarPhase(natal["name"]),
                resonance=float(natal["resonance"]),
            )
            if natal
            else None,
        )
    except (KeyError, TypeError, ValueError) as exc:
        msg = f"Malformed snapshot: {exc}"
        raise ValidationError(msg) from exc
