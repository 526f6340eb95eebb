from datetime import date, datetime, timezone
from typing import Union
from zoneinfo import ZoneInfo

DateLike = Union[date, datetime, str]


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_date_only(value: DateLike, *, tz: str = "UTC") -> date:
    """
    Truncate a date, datetime or ISO 8601 string to a calendar day.

    Aware datetimes are first converted to `tz`; naive datetimes are taken as-is.
    Raises ValueError for anything that cannot be parsed.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(tz))
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("empty date string")
        if len(text) == 10:
            return date.fromisoformat(text)
        return to_date_only(datetime.fromisoformat(text), tz=tz)
    raise ValueError(f"unsupported date value: {value!r}")


def today_in(tz: str = "UTC") -> date:
    return datetime.now(ZoneInfo(tz)).date()
