"""
Numerology: life-path, personal-year and day numbers.

All three are digit-sum reductions with the master-number exception:

    reduce(n) = n                       if n <= 9 or n in {11, 22, 33}
    reduce(n) = reduce(sum of digits)   otherwise

The exception applies at every step, so a birth date whose digits add up to
29 stops at 11 instead of continuing to 2.
"""

from __future__ import annotations

from datetime import date, datetime

from energy_today.errors import ValidationError

MASTER_NUMBERS = frozenset({11, 22, 33})

# Inputs before this year are rejected rather than guessed at
MIN_YEAR = 1800
MAX_YEAR = 9999


def digit_sum(n: int) -> int:
    """Sum of the decimal digits of a non-negative integer."""
    return sum(int(ch) for ch in str(n))


def reduce_number(n: int) -> int:
    """Reduce to a single digit, stopping early at a master number.

    Raises:
        ValidationError: If ``n`` is negative.
    """
    if n < 0:
        msg = f"Cannot reduce a negative number: {n}"
        raise ValidationError(msg)
    while n > 9 and n not in MASTER_NUMBERS:
        n = digit_sum(n)
    return n


def validate_date(value: date) -> date:
    """Check a calendar date is within the supported year range."""
    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        msg = f"Expected a date, got {type(value).__name__}"
        raise ValidationError(msg)
    if not MIN_YEAR <= value.year <= MAX_YEAR:
        msg = f"Year {value.year} outside supported range {MIN_YEAR}-{MAX_YEAR}"
        raise ValidationError(msg)
    return value


def parse_date(value: str | date) -> date:
    """Parse an ISO ``YYYY-MM-DD`` string (or pass a date through) and validate it.

    Raises:
        ValidationError: On a malformed string or an out-of-range year.
    """
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            msg = f"Malformed date: {value!r}"
            raise ValidationError(msg) from exc
    return validate_date(value)


def life_path_number(birth_date: date) -> int:
    """Life path number from every digit of ``YYYYMMDD``.

    Example: 1980-09-02 -> 1+9+8+0+0+9+0+2 = 29 -> 11 (master, kept).
    """
    birth_date = validate_date(birth_date)
    return reduce_number(digit_sum(int(birth_date.strftime("%Y%m%d"))))


def personal_year_number(birth_month: int, birth_day: int, current_year: int) -> int:
    """Personal year number for ``current_year``.

    ``reduce(reduce(month + day) + reduce(current_year))``.
    """
    try:
        # leap year so Feb 29 birthdays validate
        date(2000, birth_month, birth_day)
    except (TypeError, ValueError) as exc:
        msg = f"Invalid birth month/day: {birth_month}/{birth_day}"
        raise ValidationError(msg) from exc
    if not MIN_YEAR <= current_year <= MAX_YEAR:
        msg = f"Year {current_year} outside supported range {MIN_YEAR}-{MAX_YEAR}"
        raise ValidationError(msg)

    birth_part = reduce_number(birth_month + birth_day)
    year_part = reduce_number(current_year)
    return reduce_number(birth_part + year_part)


def day_number(day_of_month: int) -> int:
    """Day number: reduction of the day of the month (29 -> 11)."""
    if not 1 <= day_of_month <= 31:
        msg = f"Day of month out of range: {day_of_month}"
        raise ValidationError(msg)
    return reduce_number(day_of_month)


def root_number(n: int) -> int:
    """Collapse master numbers to their root digit (11 -> 2, 22 -> 4, 33 -> 6)."""
    while n > 9:
        n = digit_sum(n)
    return n
