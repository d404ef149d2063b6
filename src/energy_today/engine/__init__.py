"""Daily snapshot engine.

Combines the four calculation systems into a ``DailySnapshot`` with a 0-100
composite score. ``compose`` is pure; ``EngineContext`` adds a bounded LRU
cache on top and is the object services hold on to.
"""

from energy_today.engine.cache import EngineContext, SnapshotCache
from energy_today.engine.compose import (
    MODERATE_THRESHOLD,
    STRONG_THRESHOLD,
    classify_composite,
    compute_range,
    compute_snapshot,
)
from energy_today.engine.models import (
    DEFAULT_WEIGHTS,
    Composite,
    CompositeCategory,
    CompositeWeights,
    DailySnapshot,
    DayFortune,
    ElementInteraction,
)
from energy_today.engine.serialization import snapshot_from_dict, snapshot_to_dict

__all__ = [
    "DEFAULT_WEIGHTS",
    "MODERATE_THRESHOLD",
    "STRONG_THRESHOLD",
    "Composite",
    "CompositeCategory",
    "CompositeWeights",
    "DailySnapshot",
    "DayFortune",
    "ElementInteraction",
    "EngineContext",
    "SnapshotCache",
    "classify_composite",
    "compute_range",
    "compute_snapshot",
    "snapshot_from_dict",
    "snapshot_to_dict",
]
