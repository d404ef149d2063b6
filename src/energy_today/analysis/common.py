"""Result types and rounding shared by the analysis modules."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal


@dataclass(frozen=True)
class InsufficientData:
    """Returned instead of a statistic when there is too little data.

    This is an expected outcome, not an error: callers check for it with
    ``isinstance`` and show "not enough data yet".
    """

    reason: str
    required: int
    available: int


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round with halves going up (0.5 -> 1, 2.5 -> 3), unlike ``round``."""
    exponent = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def percentage(part: int, whole: int) -> int:
    """``part / whole`` as a whole percentage, rounded half-up (0 if ``whole`` is 0)."""
    if whole == 0:
        return 0
    return int(round_half_up(part * 100 / whole))
