"""The four symbolic calculation systems.

Each module is a pure, deterministic function of its inputs: no I/O (apart
from loading the packaged day fortune table), no clock reads, no caches.

Modules:
  - numerology: life-path, personal-year and day numbers
  - lunar: Julian Day Number, moon age and phase, natal moon
  - elements: year element and five-element relationships
  - day_fortune: weekday color, base and activity scores (JSON-configured)

Adding a calculation system
---------------------------
1. Create ``systems/{name}.py`` with pure functions and frozen dataclasses::

       def my_reading(day: date) -> MyReading:
           ...

2. Rules:
   - Validate input with ``numerology.validate_date`` and raise
     ``energy_today.errors.ValidationError`` on bad input.
   - No store access, no HTTP, no Prefect decorators.
   - Expose a 0-100 intensity the composite can weight.

3. Wire into ``engine/compose.py``: add a field to ``CompositeWeights`` and a
   component in ``compute_snapshot``.

4. Re-export here and add tests in ``tests/test_{name}.py``.
"""

from energy_today.systems.day_fortune import (
    DayFortuneEntry,
    DayFortuneTable,
    Weekday,
    load_day_fortune_table,
    weekday_of,
)
from energy_today.systems.elements import (
    Element,
    RelationshipClass,
    element_for_year,
    interaction_score,
    relationship,
)
from energy_today.systems.lunar import LunarPhase, LunarReading, NatalMoon, lunar_reading
from energy_today.systems.numerology import (
    day_number,
    life_path_number,
    personal_year_number,
    reduce_number,
)

__all__ = [
    "DayFortuneEntry",
    "DayFortuneTable",
    "Element",
    "LunarPhase",
    "LunarReading",
    "NatalMoon",
    "RelationshipClass",
    "Weekday",
    "day_number",
    "element_for_year",
    "interaction_score",
    "life_path_number",
    "load_day_fortune_table",
    "lunar_reading",
    "personal_year_number",
    "reduce_number",
    "relationship",
    "weekday_of",
]
