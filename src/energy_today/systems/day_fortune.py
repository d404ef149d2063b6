"""
Weekday fortune table (Thai day-color tradition).

Each weekday carries a color, a base score and per-activity scores, all on
0-100. The values are configuration, not logic: the packaged
``data/day_fortune.json`` holds the defaults and any compatible JSON file can
replace it (see ``Settings.fortune_table_path``).

Table format::

    {
      "activities": ["meetings", ...],
      "days": {
        "monday": {"color": "Yellow", "base_score": 82, "scores": {"meetings": 85, ...}},
        ...
      }
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from importlib import resources
from pathlib import Path
from typing import Any

from energy_today.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TABLE_RESOURCE = "day_fortune.json"


class Weekday(StrEnum):
    """Weekdays in ``date.weekday()`` order (Monday = 0)."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


WEEKDAY_ORDER: tuple[Weekday, ...] = tuple(Weekday)


def weekday_of(day: date) -> Weekday:
    return WEEKDAY_ORDER[day.weekday()]


@dataclass(frozen=True)
class DayFortuneEntry:
    """Color, base score and activity scores for one weekday."""

    weekday: Weekday
    color: str
    base_score: float
    scores: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class DayFortuneTable:
    """The seven weekday entries plus the known activity categories."""

    entries: dict[Weekday, DayFortuneEntry]
    activities: tuple[str, ...] = ()

    def entry_for(self, weekday: Weekday | str) -> DayFortuneEntry:
        try:
            return self.entries[Weekday(str(weekday).lower())]
        except ValueError as exc:
            msg = f"Unknown weekday: {weekday!r}"
            raise ValidationError(msg) from exc

    def knows(self, activity: str) -> bool:
        return activity.lower() in self.activities

    def score_for(self, weekday: Weekday | str, activity: str | None = None) -> float:
        """Activity score for the weekday, or its base score.

        The base score is used when ``activity`` is None or is not
        configured for that day.
        """
        entry = self.entry_for(weekday)
        if activity is None:
            return entry.base_score
        return entry.scores.get(activity.lower(), entry.base_score)


def _check_score(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        msg = f"{where}: score must be a number, got {value!r}"
        raise ValidationError(msg)
    if not 0 <= value <= 100:
        msg = f"{where}: score {value} outside 0-100"
        raise ValidationError(msg)
    return float(value)


def parse_day_fortune_table(raw: dict[str, Any]) -> DayFortuneTable:
    """Build a table from its JSON form, checking every weekday and score.

    ``activities`` lists the activity categories callers may ask for. Every
    per-day score must name one of them; without the list, the categories
    are taken from the scores themselves.

    Raises:
        ValidationError: On a missing weekday, missing color, a score
            outside 0-100 or a score for an undeclared activity.
    """
    days = raw.get("days")
    if not isinstance(days, dict):
        msg = "Day fortune table needs a 'days' mapping"
        raise ValidationError(msg)
    declared = raw.get("activities")
    if declared is not None and not isinstance(declared, list):
        msg = "Day fortune table 'activities' must be a list"
        raise ValidationError(msg)

    entries: dict[Weekday, DayFortuneEntry] = {}
    for weekday in WEEKDAY_ORDER:
        day = days.get(weekday.value)
        if not isinstance(day, dict):
            msg = f"Day fortune table is missing {weekday.value}"
            raise ValidationError(msg)
        color = day.get("color")
        if not color:
            msg = f"{weekday.value}: missing color"
            raise ValidationError(msg)
        scores = {
            str(name).lower(): _check_score(score, f"{weekday.value}.{name}")
            for name, score in (day.get("scores") or {}).items()
        }
        entries[weekday] = DayFortuneEntry(
            weekday=weekday,
            color=str(color),
            base_score=_check_score(day.get("base_score"), f"{weekday.value}.base_score"),
            scores=scores,
        )

    if declared is None:
        activities = tuple(sorted({name for e in entries.values() for name in e.scores}))
    else:
        activities = tuple(dict.fromkeys(str(a).lower() for a in declared))
        for entry in entries.values():
            unknown = sorted(set(entry.scores) - set(activities))
            if unknown:
                msg = f"{entry.weekday.value}: scores for undeclared activities {unknown}"
                raise ValidationError(msg)
    return DayFortuneTable(entries=entries, activities=activities)


def load_day_fortune_table(path: Path | None = None) -> DayFortuneTable:
    """Load a table from ``path``, or the packaged default table."""
    if path is None:
        resource = resources.files("energy_today.systems") / "data" / DEFAULT_TABLE_RESOURCE
        text = resource.read_text(encoding="utf-8")
    else:
        logger.debug("Loading day fortune table from %s", path)
        text = path.read_text(encoding="utf-8")

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"Day fortune table is not valid JSON: {exc}"
        raise ValidationError(msg) from exc
    if not isinstance(raw, dict):
        msg = "Day fortune table must be a JSON object"
        raise ValidationError(msg)
    return parse_day_fortune_table(raw)
