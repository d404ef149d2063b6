"""Exceptions raised by the scoring engine and tracking services.

Only input problems are modelled here. Store I/O errors are never wrapped:
they reach the caller as whatever the storage backend raised.
"""

from __future__ import annotations


class EnergyTodayError(Exception):
    """Base class for package errors."""


class ValidationError(EnergyTodayError, ValueError):
    """Malformed or out-of-range birth/date input.

    Raised before any computation proceeds; values are never coerced.
    """
