"""Forecast ratings: record them, report accuracy."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from energy_today.analysis import accuracy
from energy_today.errors import ValidationError
from energy_today.journal import AppendOnlyLog
from energy_today.schemas import AccuracyRecord, parse_model
from energy_today.store import key_for, locks_for

if TYPE_CHECKING:
    from energy_today.analysis.accuracy import AccuracyStats, CalibrationBand
    from energy_today.analysis.common import InsufficientData
    from energy_today.config import Settings
    from energy_today.schemas import Rating
    from energy_today.store import KeyLocks, KeyValueStore

logger = logging.getLogger(__name__)


def accuracy_key(user_id: str) -> str:
    return key_for("accuracy", user_id)


class PredictionAccuracyTracker:
    """Append-only log of forecast ratings for one user."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        user_id: str = "default",
        max_records: int = accuracy.MAX_ACCURACY_RECORDS,
        locks: KeyLocks | None = None,
    ) -> None:
        self.user_id = user_id
        self.log: AppendOnlyLog[AccuracyRecord] = AppendOnlyLog(
            store,
            accuracy_key(user_id),
            AccuracyRecord,
            max_records=max_records,
            locks=locks or locks_for(store),
        )

    @classmethod
    def from_settings(
        cls,
        store: KeyValueStore,
        settings: Settings,
        locks: KeyLocks | None = None,
        user_id: str | None = None,
    ) -> PredictionAccuracyTracker:
        return cls(
            store,
            user_id=user_id or settings.user_id,
            max_records=settings.accuracy_max_records,
            locks=locks,
        )

    async def rate(
        self,
        forecast_id: str,
        rating: Rating | str,
        category: str = "general",
        confidence: float | None = None,
        *,
        rated_on: date | str | None = None,
    ) -> AccuracyRecord:
        """Record one rating (``rated_on`` defaults to today).

        Raises:
            ValidationError: On an unknown rating, empty id or category, or a
                confidence outside 0-100.
        """
        record = parse_model(
            AccuracyRecord,
            {
                "forecast_id": forecast_id,
                "rating": rating,
                "category": category,
                "confidence": confidence,
                "rated_on": rated_on if rated_on is not None else date.today(),
            },
        )
        await self.log.append(record)
        logger.debug("Rated forecast %s as %s", forecast_id, record.rating)
        return record

    async def records(self) -> list[AccuracyRecord]:
        return await self.log.read()

    async def stats(self) -> AccuracyStats | InsufficientData:
        return accuracy.accuracy_stats(await self.records())

    async def recent(self, days: int, today: date) -> AccuracyStats | InsufficientData:
        """Stats over ratings made in the last ``days`` days up to ``today``."""
        if days < 1:
            msg = f"days must be >= 1, got {days}"
            raise ValidationError(msg)
        return accuracy.accuracy_stats(accuracy.records_since(await self.records(), days, today))

    async def calibration(self) -> list[CalibrationBand]:
        return accuracy.calibration(await self.records())
