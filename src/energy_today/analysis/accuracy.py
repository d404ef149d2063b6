"""Forecast accuracy statistics from user ratings.

Percentages are whole numbers rounded half-up, so 1 accurate out of 8
reports 13, not 12.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

from energy_today.analysis.common import InsufficientData, percentage

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date

    from energy_today.schemas import AccuracyRecord

# Ratings kept per user; older ones are dropped on append
MAX_ACCURACY_RECORDS = 500

# (label, lowest stated confidence in band), highest band first
CONFIDENCE_BANDS: tuple[tuple[str, float], ...] = (
    ("high", 80.0),
    ("medium", 50.0),
    ("low", 0.0),
)


@dataclass(frozen=True)
class AccuracyStats:
    overall: int
    total: int
    accurate: int
    inaccurate: int
    by_category: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class CalibrationBand:
    """Observed accuracy of forecasts made at one stated-confidence band."""

    band: str
    count: int
    accuracy: int


def _is_accurate(record: AccuracyRecord) -> bool:
    return record.rating == "accurate"


def accuracy_stats(records: Sequence[AccuracyRecord]) -> AccuracyStats | InsufficientData:
    """Overall and per-category accuracy; InsufficientData with no ratings."""
    if not records:
        return InsufficientData(reason="No forecast ratings yet", required=1, available=0)

    accurate = sum(1 for r in records if _is_accurate(r))
    per_category: dict[str, list[int]] = defaultdict(lambda: [0, 0])
    for record in records:
        counts = per_category[record.category]
        counts[1] += 1
        if _is_accurate(record):
            counts[0] += 1

    return AccuracyStats(
        overall=percentage(accurate, len(records)),
        total=len(records),
        accurate=accurate,
        inaccurate=len(records) - accurate,
        by_category={
            category: percentage(hit, total)
            for category, (hit, total) in sorted(per_category.items())
        },
    )


def records_since(
    records: Sequence[AccuracyRecord], days: int, today: date
) -> list[AccuracyRecord]:
    """Ratings whose ``rated_on`` falls in the last ``days`` days up to ``today``."""
    start = today - timedelta(days=days - 1)
    return [r for r in records if start <= r.rated_on <= today]


def confidence_band(confidence: float) -> str:
    for label, lowest in CONFIDENCE_BANDS:
        if confidence >= lowest:
            return label
    return CONFIDENCE_BANDS[-1][0]


def calibration(records: Sequence[AccuracyRecord]) -> list[CalibrationBand]:
    """Accuracy per stated-confidence band, skipping ratings without a confidence.

    Well-calibrated forecasts show higher accuracy in higher bands.
    """
    totals = {label: 0 for label, _ in CONFIDENCE_BANDS}
    hits = {label: 0 for label, _ in CONFIDENCE_BANDS}
    for record in records:
        if record.confidence is None:
            continue
        label = confidence_band(record.confidence)
        totals[label] += 1
        if _is_accurate(record):
            hits[label] += 1
    return [
        CalibrationBand(
            band=label,
            count=totals[label],
            accuracy=percentage(hits[label], totals[label]),
        )
        for label, _ in CONFIDENCE_BANDS
    ]
