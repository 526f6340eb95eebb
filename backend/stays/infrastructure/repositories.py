from __future__ import annotations

from datetime import date
from typing import Callable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_sessionmaker
from ..domain.errors import DependencyDegradedError
from ..domain.intervals import DateInterval
from ..domain.repositories import PackageRepository, ReservationRepository, ResourceRepository
from ..models import Package, Reservation, ReservationStatus, Resource
from ..utils.time import utc_now_naive


class SqlAlchemyResourceRepository(ResourceRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, resource_id: int) -> Resource | None:
        result = await self.session.scalar(select(Resource).where(Resource.id == resource_id))
        return result if isinstance(result, Resource) else None

    async def get_for_update(self, resource_id: int) -> Resource | None:
        result = await self.session.scalar(select(Resource).where(Resource.id == resource_id).with_for_update())
        return result if isinstance(result, Resource) else None

    async def resolve_id_by_slug(self, slug: str) -> int | None:
        result = await self.session.scalar(select(Resource.id).where(Resource.slug == slug))
        return int(result) if result is not None else None

    async def list_by_ids(self, resource_ids: Sequence[int]) -> List[Resource]:
        if not resource_ids:
            return []
        rows = await self.session.scalars(
            select(Resource).where(Resource.id.in_(list(resource_ids))).order_by(Resource.id)
        )
        return list(rows.all())


class SqlAlchemyPackageRepository(PackageRepository):
    """
    Package store.

    ``get`` runs on its own short-lived session from ``lookup_sessionmaker`` so a
    failed or cancelled capacity lookup never touches the caller's transaction.
    Writes and listings use the request session.
    """

    def __init__(
        self,
        session: AsyncSession,
        lookup_sessionmaker: Optional[Callable[[], AsyncSession]] = None,
    ) -> None:
        self.session = session
        self._lookup_sessionmaker = lookup_sessionmaker

    async def get(self, package_id: int) -> Package | None:
        make_session = self._lookup_sessionmaker or get_sessionmaker()
        try:
            async with make_session() as lookup_session:
                result = await lookup_session.scalar(select(Package).where(Package.id == package_id))
        except SQLAlchemyError as exc:
            raise DependencyDegradedError(f"package lookup failed: {exc}") from exc
        return result if isinstance(result, Package) else None

    async def list_for_resource(self, resource_id: int) -> List[Package]:
        rows = await self.session.scalars(
            select(Package).where(Package.resource_id == resource_id).order_by(Package.id)
        )
        return list(rows.all())

    async def create(
        self,
        *,
        resource_id: int,
        name: str,
        max_concurrent_bookings: int | None,
        is_enabled: bool,
    ) -> Package:
        now = utc_now_naive()
        package = Package(
            resource_id=resource_id,
            name=name,
            max_concurrent_bookings=max_concurrent_bookings,
            is_enabled=is_enabled,
            created_at=now,
            updated_at=now,
        )
        self.session.add(package)
        await self.session.flush()
        return package


class SqlAlchemyReservationRepository(ReservationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_overlapping(
        self,
        resource_id: int,
        interval: DateInterval,
        exclude_id: int | None = None,
    ) -> List[Reservation]:
        # Strict bounds keep back-to-back stays out of the result.
        stmt = select(Reservation).where(
            Reservation.resource_id == resource_id,
            Reservation.status != ReservationStatus.CANCELLED,
            Reservation.from_date < interval.to_date,
            Reservation.to_date > interval.from_date,
        )
        if exclude_id is not None:
            stmt = stmt.where(Reservation.id != exclude_id)
        rows = await self.session.scalars(stmt.order_by(Reservation.from_date, Reservation.id))
        return list(rows.all())

    async def list_active_for_resources(
        self,
        resource_ids: Sequence[int],
        exclude_id: int | None = None,
    ) -> List[Reservation]:
        if not resource_ids:
            return []
        stmt = select(Reservation).where(
            Reservation.resource_id.in_(list(resource_ids)),
            Reservation.status != ReservationStatus.CANCELLED,
        )
        if exclude_id is not None:
            stmt = stmt.where(Reservation.id != exclude_id)
        rows = await self.session.scalars(stmt.order_by(Reservation.from_date))
        return list(rows.all())

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
    ) -> Reservation:
        now = utc_now_naive()
        reservation = Reservation(
            resource_id=resource_id,
            package_id=package_id,
            user_id=user_id,
            from_date=from_date,
            to_date=to_date,
            guests=guests,
            status=status,
            version=1,
            rescheduled_from_id=rescheduled_from_id,
            created_at=now,
            updated_at=now,
        )
        self.session.add(reservation)
        await self.session.flush()
        return reservation

    async def get_for_user(self, reservation_id: int, user_id: int) -> Optional[Reservation]:
        stmt = select(Reservation).where(Reservation.id == reservation_id, Reservation.user_id == user_id)
        result = await self.session.scalar(stmt)
        return result if isinstance(result, Reservation) else None

    async def get_for_user_for_update(self, reservation_id: int, user_id: int) -> Optional[Reservation]:
        stmt = (
            select(Reservation)
            .where(Reservation.id == reservation_id, Reservation.user_id == user_id)
            .with_for_update()
        )
        result = await self.session.scalar(stmt)
        return result if isinstance(result, Reservation) else None

    async def list_by_user(self, user_id: int) -> List[Reservation]:
        stmt = select(Reservation).where(Reservation.user_id == user_id).order_by(Reservation.from_date)
        rows = await self.session.scalars(stmt)
        return list(rows.all())

    async def save(self, reservation: Reservation) -> Reservation:
        self.session.add(reservation)
        await self.session.flush()
        return reservation
