import asyncio
from datetime import date
from typing import Any, cast

import pytest
from fakes import make_package
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from stays.domain.capacity import resolve_capacity
from stays.domain.errors import DependencyDegradedError
from stays.domain.intervals import DateInterval
from stays.infrastructure.repositories import SqlAlchemyPackageRepository, SqlAlchemyReservationRepository


class _Rows:
    def all(self) -> list[Any]:
        return []


class RequestSession:
    """Stands in for the request-scoped session and records every statement it runs."""

    def __init__(self) -> None:
        self.statements: list[Any] = []

    async def scalar(self, stmt: Any) -> Any:
        return await self._run(stmt)

    async def scalars(self, stmt: Any) -> _Rows:
        await self._run(stmt)
        return _Rows()

    async def _run(self, stmt: Any) -> Any:
        self.statements.append(stmt)
        return None


class LookupSession:
    def __init__(self, result: Any = None, *, delay: float = 0.0, error: Exception | None = None) -> None:
        self.result = result
        self.delay = delay
        self.error = error
        self.closed = False

    async def __aenter__(self) -> "LookupSession":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> bool:
        self.closed = True
        return False

    async def scalar(self, stmt: Any) -> Any:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.mark.asyncio
async def test_package_lookup_uses_its_own_session() -> None:
    request_session = RequestSession()
    lookup = LookupSession(make_package(5, max_concurrent_bookings=3))
    repo = SqlAlchemyPackageRepository(cast(AsyncSession, request_session), lookup_sessionmaker=lambda: lookup)

    package = await repo.get(5)

    assert package is not None
    assert package.max_concurrent_bookings == 3
    assert request_session.statements == []
    assert lookup.closed


@pytest.mark.asyncio
async def test_timed_out_lookup_leaves_request_session_usable() -> None:
    request_session = RequestSession()
    lookup = LookupSession(make_package(5, max_concurrent_bookings=3), delay=0.5)
    package_repo = SqlAlchemyPackageRepository(
        cast(AsyncSession, request_session), lookup_sessionmaker=lambda: lookup
    )

    assert await resolve_capacity(package_repo, 5, resource_id=1, timeout=0.01) == 1
    assert lookup.closed

    res_repo = SqlAlchemyReservationRepository(cast(AsyncSession, request_session))
    found = await res_repo.find_overlapping(1, DateInterval(date(2025, 9, 4), date(2025, 9, 6)))
    assert found == []
    assert len(request_session.statements) == 1


@pytest.mark.asyncio
async def test_lookup_driver_error_is_reported_as_degraded() -> None:
    lookup = LookupSession(error=OperationalError("select", {}, Exception("gone away")))
    repo = SqlAlchemyPackageRepository(cast(AsyncSession, RequestSession()), lookup_sessionmaker=lambda: lookup)
    with pytest.raises(DependencyDegradedError):
        await repo.get(5)
