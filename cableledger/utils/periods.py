"""Billing period parsing helpers."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime

from cableledger.core.exceptions import InvalidInputError

MONTH_NAMES: tuple[str, ...] = tuple(calendar.month_name)[1:]
_MONTH_LOOKUP: dict[str, int] = {}
for _number, _name in enumerate(MONTH_NAMES, start=1):
    _MONTH_LOOKUP[_name.lower()] = _number
    _MONTH_LOOKUP[_name[:3].lower()] = _number


@dataclass(frozen=True)
class BillingPeriod:
    month: str
    month_number: int
    year: int

    def __str__(self) -> str:
        return f"{self.month} {self.year}"


def parse_month(month: str | int | None) -> tuple[str, int]:
    """Return the canonical (name, number) for "January", "jan" or 1-12."""
    if month is None or (isinstance(month, str) and not month.strip()):
        raise InvalidInputError("Month is required.")
    if isinstance(month, int) and not isinstance(month, bool):
        month_number = month if 1 <= month <= 12 else None
    else:
        cleaned = str(month).strip().lower()
        month_number = int(cleaned) if cleaned.isdigit() and 1 <= int(cleaned) <= 12 else _MONTH_LOOKUP.get(cleaned)
    if month_number is None:
        raise InvalidInputError(f"Unrecognised month: {month!r}.")
    return MONTH_NAMES[month_number - 1], month_number


def parse_period(month: str | int | None, year: int | str | None) -> BillingPeriod:
    """Validate a (month, year) pair; the month is canonicalised to its full English name."""
    month_name, month_number = parse_month(month)
    if year is None or (isinstance(year, str) and not year.strip()):
        raise InvalidInputError("Year is required.")

    try:
        year_number = int(str(year).strip())
    except ValueError as exc:
        raise InvalidInputError(f"Year must be a 4-digit number, got {year!r}.") from exc
    if not 1000 <= year_number <= 9999:
        raise InvalidInputError(f"Year must be a 4-digit number, got {year!r}.")

    return BillingPeriod(month=month_name, month_number=month_number, year=year_number)


def period_for(moment: datetime) -> BillingPeriod:
    """Return the billing period a timestamp falls in."""
    return BillingPeriod(month=MONTH_NAMES[moment.month - 1], month_number=moment.month, year=moment.year)
