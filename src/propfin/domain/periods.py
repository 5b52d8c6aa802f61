"""Calendar arithmetic for monthly rent periods."""

from datetime import date
from typing import Iterator, NamedTuple

from dateutil.relativedelta import relativedelta

from propfin.domain.errors import ValidationError
from propfin.utils.date_parser import DateLike, to_calendar_date


class Period(NamedTuple):
    """A (year, month) billing unit. Field order makes tuples sort chronologically."""

    year: int
    month: int

    @classmethod
    def of(cls, day: date) -> "Period":
        return cls(day.year, day.month)

    def next(self) -> "Period":
        if self.month == 12:
            return Period(self.year + 1, 1)
        return Period(self.year, self.month + 1)

    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def last_accruable_period(today: date) -> Period:
    """Last fully elapsed month relative to ``today``.

    The current month is never accrued. This holds on the 1st of the month
    too: the month that just started is still in progress.
    """
    return Period.of(today.replace(day=1) - relativedelta(months=1))


def iter_periods(start: Period, end: Period) -> Iterator[Period]:
    """Yield every period from ``start`` through ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current = current.next()


def accrual_periods(allocated_at: date, today: date) -> list[Period]:
    """Periods a tenant allocated on ``allocated_at`` owes rent for as of ``today``."""
    if allocated_at > today:
        return []
    return list(iter_periods(Period.of(allocated_at), last_accruable_period(today)))


def validate_period(month: int, year: int) -> Period:
    """Return the period, or raise ValidationError for an impossible month/year."""
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month!r}")
    if not isinstance(year, int) or not 1900 <= year <= 9999:
        raise ValidationError(f"Year out of range: {year!r}")
    return Period(year, month)


def normalize_allocation_date(value: DateLike) -> date:
    """Reduce an allocation date input to its UTC calendar day.

    Raises:
        ValidationError: If the value is not a recognisable date
    """
    try:
        return to_calendar_date(value)
    except ValueError as e:
        raise ValidationError(f"Invalid allocation date: {e}")
