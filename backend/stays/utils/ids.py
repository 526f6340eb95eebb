from collections.abc import Mapping
from typing import Any, Optional


def as_id(value: Any) -> Optional[int]:
    """
    Normalize a relationship reference to an integer id.

    Accepts a bare id, a numeric string, a mapping with an ``id`` key, or an
    object exposing an ``id`` attribute. Returns None for anything else.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        return int(text) if text.isdigit() else None
    if isinstance(value, Mapping):
        return as_id(value.get("id"))
    return as_id(getattr(value, "id", None))
