"""Async services over the key-value store.

Each service owns the store keys for one concern and delegates the
arithmetic to ``analysis/``:

  - observations: ``CorrelationEngine`` (``observations:{user}:{category}``)
  - accuracy: ``PredictionAccuracyTracker`` (``accuracy:{user}``)
  - profiles: ``ProfileRepository`` (``profile:{user}``)

Services on the same store share its ``store.locks_for`` registry, so appends
to the same key are serialized however many services are built.
"""

from energy_today.tracking.accuracy import PredictionAccuracyTracker
from energy_today.tracking.observations import CorrelationEngine
from energy_today.tracking.profiles import ProfileRepository

__all__ = ["CorrelationEngine", "PredictionAccuracyTracker", "ProfileRepository"]
