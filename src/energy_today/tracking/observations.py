"""Observation logging and correlation queries.

Observations live in one append-only log per user and category
(``observations:{user}:{category}``). Queries replay the log, keep the last
observation recorded for each date, join each date with its recomputed
composite score and hand the pairs to ``analysis.correlation``.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import TYPE_CHECKING

from energy_today.analysis import correlation
from energy_today.analysis.common import InsufficientData
from energy_today.errors import ValidationError
from energy_today.journal import AppendOnlyLog
from energy_today.schemas import Observation, ObservationCategory, parse_model
from energy_today.store import key_for, locks_for

if TYPE_CHECKING:
    from datetime import date

    from energy_today.analysis.correlation import (
        ActivitySuccess,
        AdviceSuccess,
        BandSuccessRate,
        CorrelationResult,
        ImpactResult,
        OutcomePair,
        ScoredObservation,
        Trend,
    )
    from energy_today.config import Settings
    from energy_today.engine import EngineContext
    from energy_today.schemas import BirthProfile
    from energy_today.store import KeyLocks, KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_OBSERVATIONS = 2000

# Dates joined between cooperative yields to the event loop
SCAN_YIELD_EVERY = 64


def observation_key(user_id: str, category: ObservationCategory) -> str:
    return key_for("observations", user_id, category.value)


def _category(value: ObservationCategory | str) -> ObservationCategory:
    try:
        return ObservationCategory(value)
    except ValueError as exc:
        msg = f"Unknown observation category: {value!r}"
        raise ValidationError(msg) from exc


def _check_outcome(outcome: bool | float) -> None:
    if isinstance(outcome, bool):
        return
    if not isinstance(outcome, int | float) or not math.isfinite(outcome):
        msg = f"Outcome must be a bool or a finite number, got {outcome!r}"
        raise ValidationError(msg)


class CorrelationEngine:
    """Record observations and measure how they track the composite score."""

    def __init__(
        self,
        store: KeyValueStore,
        engine: EngineContext,
        profile: BirthProfile,
        *,
        user_id: str = "default",
        max_records: int = DEFAULT_MAX_OBSERVATIONS,
        min_sample_size: int = correlation.MIN_SAMPLE_SIZE,
        scan_limit: int | None = None,
        locks: KeyLocks | None = None,
    ) -> None:
        self.store = store
        self.engine = engine
        self.profile = profile
        self.user_id = user_id
        self.max_records = max_records
        self.min_sample_size = min_sample_size
        self.scan_limit = scan_limit
        self.locks = locks or locks_for(store)

    @classmethod
    def from_settings(
        cls,
        store: KeyValueStore,
        engine: EngineContext,
        profile: BirthProfile,
        settings: Settings,
        locks: KeyLocks | None = None,
        user_id: str | None = None,
    ) -> CorrelationEngine:
        return cls(
            store,
            engine,
            profile,
            user_id=user_id or settings.user_id,
            max_records=settings.observation_max_records,
            min_sample_size=settings.min_sample_size,
            scan_limit=settings.correlation_scan_limit,
            locks=locks,
        )

    def log(self, category: ObservationCategory | str) -> AppendOnlyLog[Observation]:
        cat = _category(category)
        return AppendOnlyLog(
            self.store,
            observation_key(self.user_id, cat),
            Observation,
            max_records=self.max_records,
            locks=self.locks,
        )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def record_observation(
        self,
        category: ObservationCategory | str,
        day: date | str,
        outcome: bool | float,
        subject: str,
        *,
        activities: list[str] | None = None,
        followed_advice: bool | None = None,
    ) -> Observation:
        """Append one observation.

        ``activities`` and ``followed_advice`` feed the business pattern
        queries and are optional for every category.

        Raises:
            ValidationError: On an unknown category, bad date, empty activity
                name or a non-finite outcome.
        """
        _check_outcome(outcome)
        cat = _category(category)
        observation = parse_model(
            Observation,
            {
                "category": cat,
                "date": day,
                "outcome": outcome,
                "subject": subject,
                "activities": activities or [],
                "followed_advice": followed_advice,
            },
        )
        await self.log(cat).append(observation)
        logger.debug("Recorded %s/%s on %s", cat.value, subject, observation.date)
        return observation

    async def record_many(self, observations: list[Observation]) -> int:
        """Append already-built observations (e.g. from a data source)."""
        for observation in observations:
            await self.log(observation.category).append(observation)
        return len(observations)

    async def correct_observation(
        self,
        category: ObservationCategory | str,
        observation_id: str,
        outcome: bool | float,
    ) -> Observation | None:
        """Replace the outcome of one observation by id; None if not found."""
        _check_outcome(outcome)
        return await self.log(category).replace(
            observation_id, lambda obs: obs.model_copy(update={"outcome": outcome})
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def observations(
        self, category: ObservationCategory | str, subject: str | None = None
    ) -> list[Observation]:
        """Observations in recorded order, optionally for one subject."""
        records = await self.log(category).read(self.scan_limit)
        if subject is None:
            return records
        return [r for r in records if r.subject == subject]

    async def subjects(self, category: ObservationCategory | str) -> list[str]:
        """Distinct subjects in the category, sorted."""
        return sorted({r.subject for r in await self.observations(category)})

    async def _scored(
        self, category: ObservationCategory | str, subject: str
    ) -> list[ScoredObservation]:
        """Last observation per date with that date's composite score, oldest first."""
        by_date = correlation.latest_by_date(await self.observations(category, subject))
        scored: list[ScoredObservation] = []
        for i, (day, obs) in enumerate(sorted(by_date.items())):
            if i and i % SCAN_YIELD_EVERY == 0:
                await asyncio.sleep(0)
            scored.append((obs, self.engine.score(self.profile, day)))
        return scored

    async def _pairs(
        self, category: ObservationCategory | str, subject: str
    ) -> list[OutcomePair]:
        return [(obs.outcome, score) for obs, score in await self._scored(category, subject)]

    async def impact_of(
        self,
        category: ObservationCategory | str,
        subject: str,
        threshold: float | None = None,
    ) -> ImpactResult | InsufficientData:
        """Mean composite score on days ``subject`` occurred minus days it didn't."""
        pairs = await self._pairs(category, subject)
        return correlation.impact_from_pairs(
            _category(category).value,
            subject,
            pairs,
            threshold=correlation.DEFAULT_THRESHOLD if threshold is None else threshold,
            min_sample_size=self.min_sample_size,
        )

    async def rank_impacts(
        self,
        category: ObservationCategory | str,
        subjects: list[str] | None = None,
        threshold: float | None = None,
    ) -> list[ImpactResult]:
        """Impacts of ``subjects`` (default: every subject) by magnitude.

        Subjects without enough data are left out.
        """
        if subjects is None:
            subjects = await self.subjects(category)
        results = [await self.impact_of(category, s, threshold) for s in subjects]
        for result in results:
            if isinstance(result, InsufficientData):
                logger.debug("Skipping from ranking: %s", result.reason)
        return correlation.rank_impacts(results)

    async def correlation_of(
        self, category: ObservationCategory | str, subject: str
    ) -> CorrelationResult | InsufficientData:
        """Pearson r between the outcome values and the composite score."""
        pairs = await self._pairs(category, subject)
        return correlation.correlation_from_pairs(
            _category(category).value,
            subject,
            pairs,
            min_sample_size=self.min_sample_size,
        )

    async def success_rates_by_band(
        self,
        subject: str,
        category: ObservationCategory | str = ObservationCategory.BUSINESS,
        threshold: float | None = None,
    ) -> list[BandSuccessRate]:
        """Share of successful days per composite band for ``subject``."""
        cutoff = correlation.DEFAULT_THRESHOLD if threshold is None else threshold
        pairs = await self._pairs(category, subject)
        return correlation.success_rates_by_band(
            [score for _, score in pairs],
            [correlation.occurred(outcome, cutoff) for outcome, _ in pairs],
        )

    async def activity_success_rates(
        self,
        subject: str,
        category: ObservationCategory | str = ObservationCategory.BUSINESS,
        threshold: float | None = None,
    ) -> list[ActivitySuccess]:
        """Success rate and mean composite per activity logged with ``subject``."""
        cutoff = correlation.DEFAULT_THRESHOLD if threshold is None else threshold
        return correlation.activity_success_rates(await self._scored(category, subject), cutoff)

    async def advice_success_rates(
        self,
        subject: str,
        category: ObservationCategory | str = ObservationCategory.BUSINESS,
        threshold: float | None = None,
    ) -> AdviceSuccess:
        cutoff = correlation.DEFAULT_THRESHOLD if threshold is None else threshold
        return correlation.advice_success_rates(await self._scored(category, subject), cutoff)

    async def recent_trend(
        self,
        subject: str,
        category: ObservationCategory | str = ObservationCategory.BUSINESS,
        threshold: float | None = None,
    ) -> Trend:
        """Whether ``subject`` succeeds more often over the last week of logged dates."""
        cutoff = correlation.DEFAULT_THRESHOLD if threshold is None else threshold
        pairs = await self._pairs(category, subject)
        return correlation.recent_trend([correlation.occurred(o, cutoff) for o, _ in pairs])
