"""Observation outcomes against composite scores.

Pure statistics over already-joined data: each function receives
``(outcome, score)`` pairs, one per date, and never touches the store. The
async service in ``tracking/observations.py`` builds the pairs.

Impact of a habit (or any yes/no outcome)::

    impact = mean(score on days it occurred) - mean(score on days it did not)

Numeric outcomes count as "occurred" when ``outcome > threshold``. Either
side with fewer than ``MIN_SAMPLE_SIZE`` days gives ``InsufficientData``.

Business patterns (success by activity, followed vs ignored advice, recent
trend) take ``(observation, score)`` entries instead, since they need the
observation's activities and advice flag.
"""

from __future__ import annotations

import statistics
from collections import defaultdict
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from energy_today.analysis.common import InsufficientData, percentage, round_half_up

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import date

    from energy_today.schemas import Observation

MIN_SAMPLE_SIZE = 5
DEFAULT_THRESHOLD = 0.0

# |impact| bands (composite points)
MODERATE_IMPACT = 5.0
STRONG_IMPACT = 15.0

# |r| bands
STRONG_CORRELATION = 0.7
MODERATE_CORRELATION = 0.4
WEAK_CORRELATION = 0.2

# sample-size confidence
HIGH_CONFIDENCE_SAMPLES = 20
MEDIUM_CONFIDENCE_SAMPLES = 10

# (label, lowest score in band), highest band first
SCORE_BANDS: tuple[tuple[str, float], ...] = (
    ("85-100", 85.0),
    ("70-84", 70.0),
    ("50-69", 50.0),
    ("0-49", 0.0),
)

# recent trend: last TREND_WINDOW_DAYS dates against the window before
TREND_WINDOW_DAYS = 7
TREND_MARGIN = 0.1

OutcomePair = tuple[bool | float, float]
ScoredObservation = tuple["Observation", float]


class ImpactBand(StrEnum):
    MINIMAL = "minimal"
    MODERATE = "moderate"
    STRONG = "strong"


class CorrelationStrength(StrEnum):
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"
    NONE = "none"


class Confidence(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class ImpactResult:
    """Difference in mean composite score with and without an outcome."""

    category: str
    subject: str
    impact: float
    mean_occurred: float
    mean_not_occurred: float
    occurred_count: int
    not_occurred_count: int
    band: ImpactBand
    recommendation: str


@dataclass(frozen=True)
class CorrelationResult:
    """Pearson correlation between numeric outcomes and composite scores."""

    category: str
    subject: str
    r: float
    strength: CorrelationStrength
    confidence: Confidence
    sample_size: int


@dataclass(frozen=True)
class BandSuccessRate:
    """Share of successful outcomes among days in one composite band."""

    band: str
    count: int
    success_rate: int


def latest_by_date(observations: Iterable[Observation]) -> dict[date, Observation]:
    """One observation per date; a later entry replaces an earlier one.

    ``observations`` must be in recorded (log) order.
    """
    by_date: dict[date, Observation] = {}
    for obs in observations:
        by_date[obs.date] = obs
    return by_date


def occurred(outcome: bool | float, threshold: float = DEFAULT_THRESHOLD) -> bool:
    """Whether an outcome counts as "it happened"."""
    if isinstance(outcome, bool):
        return outcome
    return outcome > threshold


def impact_band(impact: float) -> ImpactBand:
    magnitude = abs(impact)
    if magnitude >= STRONG_IMPACT:
        return ImpactBand.STRONG
    if magnitude >= MODERATE_IMPACT:
        return ImpactBand.MODERATE
    return ImpactBand.MINIMAL


def recommendation_for(subject: str, impact: float) -> str:
    """Human-readable advice from the sign and size of an impact."""
    band = impact_band(impact)
    points = f"{abs(impact):.1f}"
    if band is ImpactBand.MINIMAL:
        return f"{subject} has minimal impact on your energy levels."
    if impact > 0:
        if band is ImpactBand.STRONG:
            return f"{subject} boosts your energy by {points} points. Make it a priority!"
        return f"{subject} boosts your energy by {points} points. Try to do this more often!"
    if band is ImpactBand.STRONG:
        return f"{subject} reduces your energy by {points} points. Avoid it on important days."
    return f"{subject} reduces your energy by {points} points. Consider reducing this habit."


def impact_from_pairs(
    category: str,
    subject: str,
    pairs: Sequence[OutcomePair],
    *,
    threshold: float = DEFAULT_THRESHOLD,
    min_sample_size: int = MIN_SAMPLE_SIZE,
) -> ImpactResult | InsufficientData:
    """
    Impact of ``subject`` from one ``(outcome, score)`` pair per date.

    Args:
        category: Observation category (for the result only).
        subject: Habit or measure name.
        pairs: ``(outcome, composite score)`` per distinct date.
        threshold: Numeric outcomes above this count as occurred.
        min_sample_size: Minimum days required on each side.

    Returns:
        ImpactResult, or InsufficientData if either side is too small.
    """
    with_scores = [score for outcome, score in pairs if occurred(outcome, threshold)]
    without_scores = [score for outcome, score in pairs if not occurred(outcome, threshold)]

    smaller = min(len(with_scores), len(without_scores))
    if smaller < min_sample_size:
        return InsufficientData(
            reason=(
                f"{subject}: need {min_sample_size} days with and without, "
                f"have {len(with_scores)} and {len(without_scores)}"
            ),
            required=min_sample_size,
            available=smaller,
        )

    mean_with = statistics.fmean(with_scores)
    mean_without = statistics.fmean(without_scores)
    impact = round_half_up(mean_with - mean_without, 2)
    return ImpactResult(
        category=category,
        subject=subject,
        impact=impact,
        mean_occurred=round_half_up(mean_with, 2),
        mean_not_occurred=round_half_up(mean_without, 2),
        occurred_count=len(with_scores),
        not_occurred_count=len(without_scores),
        band=impact_band(impact),
        recommendation=recommendation_for(subject, impact),
    )


def rank_impacts(results: Iterable[ImpactResult | InsufficientData]) -> list[ImpactResult]:
    """Impacts sorted by magnitude (largest first), ties by subject.

    ``InsufficientData`` entries are dropped.
    """
    impacts = [r for r in results if isinstance(r, ImpactResult)]
    return sorted(impacts, key=lambda r: (-abs(r.impact), r.subject))


def correlation_strength(r: float) -> CorrelationStrength:
    magnitude = abs(r)
    if magnitude >= STRONG_CORRELATION:
        return CorrelationStrength.STRONG
    if magnitude >= MODERATE_CORRELATION:
        return CorrelationStrength.MODERATE
    if magnitude >= WEAK_CORRELATION:
        return CorrelationStrength.WEAK
    return CorrelationStrength.NONE


def sample_confidence(sample_size: int) -> Confidence:
    if sample_size >= HIGH_CONFIDENCE_SAMPLES:
        return Confidence.HIGH
    if sample_size >= MEDIUM_CONFIDENCE_SAMPLES:
        return Confidence.MEDIUM
    return Confidence.LOW


def correlation_from_pairs(
    category: str,
    subject: str,
    pairs: Sequence[OutcomePair],
    *,
    min_sample_size: int = MIN_SAMPLE_SIZE,
) -> CorrelationResult | InsufficientData:
    """Pearson r between outcomes (bools as 0/1) and scores."""
    if len(pairs) < min_sample_size:
        return InsufficientData(
            reason=f"{subject}: need {min_sample_size} days, have {len(pairs)}",
            required=min_sample_size,
            available=len(pairs),
        )

    outcomes = [float(outcome) for outcome, _ in pairs]
    scores = [score for _, score in pairs]
    try:
        r = statistics.correlation(outcomes, scores)
    except statistics.StatisticsError:
        # one side is constant
        return InsufficientData(
            reason=f"{subject}: outcomes or scores do not vary",
            required=min_sample_size,
            available=len(pairs),
        )

    r = round_half_up(r, 4)
    return CorrelationResult(
        category=category,
        subject=subject,
        r=r,
        strength=correlation_strength(r),
        confidence=sample_confidence(len(pairs)),
        sample_size=len(pairs),
    )


def score_band(score: float) -> str:
    for label, lowest in SCORE_BANDS:
        if score >= lowest:
            return label
    return SCORE_BANDS[-1][0]


def success_rates_by_band(
    scores: Sequence[float], successes: Sequence[bool]
) -> list[BandSuccessRate]:
    """Success rate per composite band, highest band first.

    Bands with no days report a count and rate of 0.
    """
    if len(scores) != len(successes):
        msg = f"scores and successes differ in length: {len(scores)} != {len(successes)}"
        raise ValueError(msg)

    totals = {label: 0 for label, _ in SCORE_BANDS}
    wins = {label: 0 for label, _ in SCORE_BANDS}
    for score, success in zip(scores, successes, strict=True):
        label = score_band(score)
        totals[label] += 1
        if success:
            wins[label] += 1

    return [
        BandSuccessRate(
            band=label,
            count=totals[label],
            success_rate=percentage(wins[label], totals[label]),
        )
        for label, _ in SCORE_BANDS
    ]


# =============================================================================
# Business patterns
# =============================================================================


class Trend(StrEnum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


@dataclass(frozen=True)
class ActivitySuccess:
    """How days with one activity turned out."""

    activity: str
    attempts: int
    success_rate: int
    average_score: int


@dataclass(frozen=True)
class GroupSuccess:
    count: int
    success_rate: int


@dataclass(frozen=True)
class AdviceSuccess:
    """Success on days the advice was followed against days it was ignored."""

    followed: GroupSuccess
    ignored: GroupSuccess


def activity_success_rates(
    entries: Iterable[ScoredObservation], threshold: float = DEFAULT_THRESHOLD
) -> list[ActivitySuccess]:
    """
    Success rate and mean composite score per activity.

    Args:
        entries: ``(observation, composite score)`` per distinct date.
        threshold: Numeric outcomes above this count as a success.

    Returns:
        One result per activity seen, best success rate first, ties by name.
    """
    scores: defaultdict[str, list[float]] = defaultdict(list)
    wins: defaultdict[str, int] = defaultdict(int)
    for obs, score in entries:
        success = occurred(obs.outcome, threshold)
        for activity in obs.activities:
            scores[activity].append(score)
            if success:
                wins[activity] += 1

    results = [
        ActivitySuccess(
            activity=activity,
            attempts=len(values),
            success_rate=percentage(wins[activity], len(values)),
            average_score=int(round_half_up(statistics.fmean(values))),
        )
        for activity, values in scores.items()
    ]
    return sorted(results, key=lambda r: (-r.success_rate, r.activity))


def _group(successes: list[bool]) -> GroupSuccess:
    return GroupSuccess(
        count=len(successes), success_rate=percentage(sum(successes), len(successes))
    )


def advice_success_rates(
    entries: Iterable[ScoredObservation], threshold: float = DEFAULT_THRESHOLD
) -> AdviceSuccess:
    """Success rates split by ``followed_advice``; unreported days are left out."""
    followed: list[bool] = []
    ignored: list[bool] = []
    for obs, _ in entries:
        if obs.followed_advice is None:
            continue
        target = followed if obs.followed_advice else ignored
        target.append(occurred(obs.outcome, threshold))
    return AdviceSuccess(followed=_group(followed), ignored=_group(ignored))


def recent_trend(
    successes: Sequence[bool],
    window: int = TREND_WINDOW_DAYS,
    margin: float = TREND_MARGIN,
) -> Trend:
    """Success rate of the newest ``window`` dates against the ``window`` before.

    ``successes`` holds one flag per date, oldest first. With fewer than two
    full windows the trend is stable.
    """
    if window < 1:
        msg = f"window must be >= 1, got {window}"
        raise ValueError(msg)
    if len(successes) < 2 * window:
        return Trend.STABLE
    recent = sum(successes[-window:]) / window
    previous = sum(successes[-2 * window : -window]) / window
    diff = recent - previous
    if diff > margin:
        return Trend.IMPROVING
    if diff < -margin:
        return Trend.DECLINING
    return Trend.STABLE
