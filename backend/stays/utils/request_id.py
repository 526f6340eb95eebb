from __future__ import annotations

import re
import uuid
from contextvars import ContextVar
from typing import Optional

REQUEST_ID_HEADER = "X-Request-ID"

# Incoming ids are echoed into response headers and audit lines.
_ACCEPTABLE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

_current_request_id: ContextVar[Optional[str]] = ContextVar("stays_request_id", default=None)


def generate_request_id() -> str:
    return uuid.uuid4().hex


def set_request_id(request_id: Optional[str]) -> None:
    """Bind ``request_id`` to the current context; pass None to clear it."""
    _current_request_id.set(request_id)


def get_request_id() -> Optional[str]:
    return _current_request_id.get()


def bind_request_id(incoming: Optional[str]) -> str:
    """Adopt the caller's id when it looks sane, otherwise mint a new one, and bind it."""
    candidate = (incoming or "").strip()
    request_id = candidate if _ACCEPTABLE.match(candidate) else generate_request_id()
    set_request_id(request_id)
    return request_id
