import json
from datetime import date
from typing import Any, List

import pytest
from stays.models import ReservationStatus
from stays.utils import audit_log
from stays.utils.request_id import set_request_id


def test_emit_audit_log_outputs_json(monkeypatch: pytest.MonkeyPatch) -> None:
    messages: List[str] = []

    class DummyLogger:
        def info(self, message: str) -> None:
            messages.append(message)

    monkeypatch.setattr(audit_log, "_audit_logger", DummyLogger())

    set_request_id("req-123")
    audit_log.emit_audit_log(
        action="reservation.created",
        initiator="user",
        reservation_id=1,
        resource_id=2,
        package_id=None,
        user_id=4,
        from_date=date(2025, 9, 4),
        to_date=date(2025, 9, 6),
        status_from=None,
        status_to=ReservationStatus.BOOKED,
        version=1,
    )
    set_request_id(None)

    assert len(messages) == 1
    payload = json.loads(messages[0])
    assert payload["action"] == "reservation.created"
    assert payload["request_id"] == "req-123"
    assert payload["status_to"] == "booked"
    assert payload["from_date"] == "2025-09-04"
    assert "package_id" not in payload
    assert "timestamp" in payload


def test_emit_audit_log_merges_extra(monkeypatch: pytest.MonkeyPatch) -> None:
    messages: List[str] = []

    class DummyLogger:
        def info(self, message: str) -> None:
            messages.append(message)

    monkeypatch.setattr(audit_log, "_audit_logger", DummyLogger())

    audit_log.emit_audit_log(
        action="reservation.rescheduled",
        initiator="user",
        reservation_id=11,
        resource_id=2,
        package_id=5,
        user_id=4,
        extra={"rescheduled_from_id": 10},
    )
    assert json.loads(messages[0])["rescheduled_from_id"] == 10


def test_emit_audit_log_raises_on_logger_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    class DummyLogger:
        def info(self, _: Any) -> None:
            raise ValueError("fail")

    monkeypatch.setattr(audit_log, "_audit_logger", DummyLogger())

    with pytest.raises(RuntimeError):
        audit_log.emit_audit_log(
            action="reservation.cancelled",
            initiator="user",
            reservation_id=1,
            resource_id=2,
            package_id=3,
            user_id=4,
            status_from=ReservationStatus.BOOKED,
            status_to=ReservationStatus.CANCELLED,
            version=2,
        )
