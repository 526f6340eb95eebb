from __future__ import annotations

from datetime import date
from typing import Iterable, Protocol, Sequence

from ..models import Package, Reservation, ReservationStatus, Resource
from .intervals import DateInterval


class ResourceRepository(Protocol):
    async def get(self, resource_id: int) -> Resource | None: ...

    async def get_for_update(self, resource_id: int) -> Resource | None: ...

    async def resolve_id_by_slug(self, slug: str) -> int | None: ...

    async def list_by_ids(self, resource_ids: Sequence[int]) -> list[Resource]: ...


class PackageRepository(Protocol):
    async def get(self, package_id: int) -> Package | None: ...

    async def list_for_resource(self, resource_id: int) -> list[Package]: ...

    async def create(
        self,
        *,
        resource_id: int,
        name: str,
        max_concurrent_bookings: int | None,
        is_enabled: bool,
    ) -> Package: ...


class ReservationRepository(Protocol):
    async def find_overlapping(
        self,
        resource_id: int,
        interval: DateInterval,
        exclude_id: int | None = None,
    ) -> list[Reservation]: ...

    async def list_active_for_resources(
        self,
        resource_ids: Sequence[int],
        exclude_id: int | None = None,
    ) -> Iterable[Reservation]: ...

    async def create(
        self,
        *,
        resource_id: int,
        package_id: int | None,
        user_id: int,
        from_date: date,
        to_date: date,
        guests: int,
        status: ReservationStatus,
        rescheduled_from_id: int | None = None,
    ) -> Reservation: ...

    async def get_for_user(self, reservation_id: int, user_id: int) -> Reservation | None: ...

    async def get_for_user_for_update(self, reservation_id: int, user_id: int) -> Reservation | None: ...

    async def list_by_user(self, user_id: int) -> list[Reservation]: ...

    async def save(self, reservation: Reservation) -> Reservation: ...
