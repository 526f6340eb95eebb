from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator

from ..utils.time import DateLike, to_date_only
from .errors import InvalidIntervalError


@dataclass(frozen=True)
class DateInterval:
    """Half-open calendar interval ``[from_date, to_date)``."""

    from_date: date
    to_date: date

    @property
    def nights(self) -> int:
        return (self.to_date - self.from_date).days

    def shift(self, days: int) -> "DateInterval":
        delta = timedelta(days=days)
        return DateInterval(self.from_date + delta, self.to_date + delta)


def make_interval(from_value: DateLike, to_value: DateLike, *, tz: str = "UTC") -> DateInterval:
    try:
        from_date = to_date_only(from_value, tz=tz)
        to_date = to_date_only(to_value, tz=tz)
    except ValueError as exc:
        raise InvalidIntervalError("invalid date format") from exc
    if from_date >= to_date:
        raise InvalidIntervalError("from_date must be earlier than to_date")
    return DateInterval(from_date, to_date)


def overlaps(a: DateInterval, b: DateInterval) -> bool:
    # Strict on both sides: a stay ending on day N never overlaps one starting on day N.
    return a.from_date < b.to_date and a.to_date > b.from_date


def iter_dates(interval: DateInterval) -> Iterator[date]:
    """Yield every night of the stay; the checkout day is not included."""
    current = interval.from_date
    while current < interval.to_date:
        yield current
        current += timedelta(days=1)
