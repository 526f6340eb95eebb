from datetime import date, datetime, timezone

import pytest
from stays.utils.time import to_date_only


@pytest.mark.parametrize(
    ("value", "tz", "expected"),
    [
        ("2025-09-04", "UTC", date(2025, 9, 4)),
        ("2025-09-04T23:30:00Z", "UTC", date(2025, 9, 4)),
        ("2025-09-04T23:30:00+00:00", "Asia/Tokyo", date(2025, 9, 5)),
        ("2025-09-04T10:00:00", "Asia/Tokyo", date(2025, 9, 4)),
        (datetime(2025, 9, 4, 1, 0, tzinfo=timezone.utc), "America/New_York", date(2025, 9, 3)),
        (date(2025, 9, 4), "UTC", date(2025, 9, 4)),
    ],
)
def test_to_date_only(value: object, tz: str, expected: date) -> None:
    assert to_date_only(value, tz=tz) == expected  # type: ignore[arg-type]


@pytest.mark.parametrize("value", ["", "09/04/2025", "2025-13-01", 20250904])
def test_to_date_only_rejects_garbage(value: object) -> None:
    with pytest.raises(ValueError):
        to_date_only(value)  # type: ignore[arg-type]
