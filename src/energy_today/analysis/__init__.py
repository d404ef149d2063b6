"""Statistics over snapshots, observations and forecast ratings.

Each module is pure: inputs are already-loaded records and scores, outputs
are frozen dataclasses. The async services in ``tracking/`` load data from
the store and call into here.

Dependency rule: analysis/ imports ``schemas`` and ``analysis.common`` only.
It never reads the store, scores dates or fetches data.

Modules:
  - correlation: habit/outcome impact, Pearson r, success rate by score band,
    business patterns (activities, advice, recent trend)
  - accuracy: overall and per-category forecast accuracy, calibration
  - common: ``InsufficientData`` and half-up rounding

Adding an analysis module
-------------------------
1. Create ``analysis/{name}.py`` with a pure function::

       from energy_today.analysis.common import InsufficientData

       def trend_of(pairs: Sequence[tuple[date, float]]) -> Trend | InsufficientData:
           ...

2. Rules:
   - Return ``InsufficientData`` (don't raise) when the sample is too small.
   - No I/O, no HTTP, no Prefect decorators.

3. Wire into a service in ``tracking/`` and, if it belongs in the report,
   into ``flows/insights.py``.

4. Re-export here and add tests in ``tests/test_{name}.py``.
"""

from energy_today.analysis.accuracy import (
    MAX_ACCURACY_RECORDS,
    AccuracyStats,
    CalibrationBand,
    accuracy_stats,
    calibration,
)
from energy_today.analysis.common import InsufficientData
from energy_today.analysis.correlation import (
    MIN_SAMPLE_SIZE,
    ActivitySuccess,
    AdviceSuccess,
    BandSuccessRate,
    CorrelationResult,
    ImpactResult,
    Trend,
    activity_success_rates,
    advice_success_rates,
    correlation_from_pairs,
    impact_from_pairs,
    rank_impacts,
    recent_trend,
    success_rates_by_band,
)

__all__ = [
    "MAX_ACCURACY_RECORDS",
    "MIN_SAMPLE_SIZE",
    "AccuracyStats",
    "ActivitySuccess",
    "AdviceSuccess",
    "BandSuccessRate",
    "CalibrationBand",
    "CorrelationResult",
    "ImpactResult",
    "InsufficientData",
    "Trend",
    "accuracy_stats",
    "activity_success_rates",
    "advice_success_rates",
    "calibration",
    "correlation_from_pairs",
    "impact_from_pairs",
    "rank_impacts",
    "recent_trend",
    "success_rates_by_band",
]
