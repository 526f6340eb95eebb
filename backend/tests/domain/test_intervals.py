from datetime import date, datetime, timedelta, timezone

import pytest
from stays.domain.errors import InvalidIntervalError
from stays.domain.intervals import DateInterval, iter_dates, make_interval, overlaps


def _iv(a: str, b: str) -> DateInterval:
    return DateInterval(date.fromisoformat(a), date.fromisoformat(b))


def test_back_to_back_stays_do_not_overlap() -> None:
    existing = _iv("2025-09-04", "2025-09-06")
    candidate = _iv("2025-09-06", "2025-09-08")
    assert overlaps(existing, candidate) is False
    assert overlaps(candidate, existing) is False


def test_partial_and_contained_ranges_overlap() -> None:
    existing = _iv("2025-09-04", "2025-09-06")
    assert overlaps(existing, _iv("2025-09-05", "2025-09-07"))
    assert overlaps(existing, _iv("2025-09-01", "2025-09-10"))
    assert overlaps(existing, _iv("2025-09-04", "2025-09-05"))


def test_make_interval_rejects_zero_length_and_inverted() -> None:
    with pytest.raises(InvalidIntervalError):
        make_interval("2025-09-04", "2025-09-04")
    with pytest.raises(InvalidIntervalError):
        make_interval("2025-09-06", "2025-09-04")


def test_make_interval_rejects_garbage() -> None:
    with pytest.raises(InvalidIntervalError):
        make_interval("not-a-date", "2025-09-04")


def test_make_interval_drops_time_of_day() -> None:
    interval = make_interval("2025-09-04T13:34:24.736Z", "2025-09-06T13:34:24.736Z")
    assert interval == _iv("2025-09-04", "2025-09-06")


def test_make_interval_converts_aware_datetimes_to_reference_zone() -> None:
    plus_nine = timezone(timedelta(hours=9))
    # 2025-09-04 03:00 at +09:00 is still 2025-09-03 in UTC.
    start = datetime(2025, 9, 4, 3, 0, tzinfo=plus_nine)
    end = datetime(2025, 9, 6, 12, 0, tzinfo=plus_nine)
    assert make_interval(start, end) == _iv("2025-09-03", "2025-09-06")
    assert make_interval(start, end, tz="Asia/Tokyo") == _iv("2025-09-04", "2025-09-06")


def test_iter_dates_excludes_checkout_day() -> None:
    assert list(iter_dates(_iv("2025-09-04", "2025-09-06"))) == [date(2025, 9, 4), date(2025, 9, 5)]


def test_nights_and_shift() -> None:
    interval = _iv("2025-09-04", "2025-09-06")
    assert interval.nights == 2
    assert interval.shift(-3) == _iv("2025-09-01", "2025-09-03")
