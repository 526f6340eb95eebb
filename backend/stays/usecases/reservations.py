import logging
from typing import Any, Optional

from ..domain.capacity import resolve_capacity
from ..domain.conflicts import find_conflicts
from ..domain.errors import (
    CapacityExceededError,
    InvalidIntervalError,
    ReservationNotFoundError,
    ResourceNotFoundError,
    VersionConflictError,
)
from ..domain.intervals import make_interval
from ..domain.repositories import PackageRepository, ReservationRepository, ResourceRepository
from ..domain.services import AdmissionSnapshot, validate_admission
from ..models import Reservation, ReservationStatus
from ..utils.time import DateLike, to_date_only, utc_now_naive

logger = logging.getLogger(__name__)

# Sentinel for "field not supplied" where None is a meaningful value.
KEEP: Any = object()


async def create_reservation(
    resource_repo: ResourceRepository,
    package_repo: PackageRepository,
    res_repo: ReservationRepository,
    *,
    resource_id: int,
    user_id: int,
    from_date: DateLike,
    to_date: DateLike,
    package_id: Optional[int] = None,
    guests: int = 1,
    exclude_reservation_id: Optional[int] = None,
    rescheduled_from_id: Optional[int] = None,
    tz: str = "UTC",
    package_timeout: Optional[float] = None,
) -> Reservation:
    interval = make_interval(from_date, to_date, tz=tz)

    # Row lock on the resource serializes concurrent admissions for it.
    resource = await resource_repo.get_for_update(resource_id)
    if resource is None:
        raise ResourceNotFoundError("resource not found")

    capacity = await resolve_capacity(
        package_repo, package_id, resource_id=resource_id, timeout=package_timeout
    )
    conflicts = await find_conflicts(
        res_repo,
        resource_id,
        interval,
        package_id=package_id,
        exclude_reservation_id=exclude_reservation_id,
    )
    try:
        validate_admission(AdmissionSnapshot(capacity=capacity, conflicts=conflicts))
    except CapacityExceededError as exc:
        logger.warning(
            "admission rejected resource=%s package=%s dates=%s..%s capacity=%d conflicts=%s",
            resource_id,
            package_id,
            interval.from_date,
            interval.to_date,
            capacity,
            [c.as_dict() for c in exc.conflicts],
        )
        raise

    return await res_repo.create(
        resource_id=resource_id,
        package_id=package_id,
        user_id=user_id,
        from_date=interval.from_date,
        to_date=interval.to_date,
        guests=guests,
        status=ReservationStatus.BOOKED,
        rescheduled_from_id=rescheduled_from_id,
    )


async def update_reservation(
    resource_repo: ResourceRepository,
    package_repo: PackageRepository,
    res_repo: ReservationRepository,
    *,
    reservation_id: int,
    user_id: int,
    version: int,
    from_date: Optional[DateLike] = None,
    to_date: Optional[DateLike] = None,
    package_id: Any = KEEP,
    guests: Optional[int] = None,
    tz: str = "UTC",
    package_timeout: Optional[float] = None,
) -> tuple[Reservation, Optional[Reservation]]:
    """
    Apply changes to a reservation.

    Returns ``(current, replaced)``. When dates or package are unchanged only
    ``guests`` is updated in place and ``replaced`` is None; admission is not
    re-run for that path. Otherwise the new interval is admitted while ignoring
    the original, the original is cancelled, and the new reservation is returned
    together with the cancelled one.
    """
    reservation = await res_repo.get_for_user_for_update(reservation_id, user_id)
    if reservation is None or reservation.status == ReservationStatus.CANCELLED:
        raise ReservationNotFoundError("reservation not found")
    if reservation.version != version:
        raise VersionConflictError("version mismatch")

    try:
        new_from = to_date_only(from_date, tz=tz) if from_date is not None else reservation.from_date
        new_to = to_date_only(to_date, tz=tz) if to_date is not None else reservation.to_date
    except ValueError as exc:
        raise InvalidIntervalError("invalid date format") from exc
    new_package_id = reservation.package_id if package_id is KEEP else package_id

    if (
        new_from == reservation.from_date
        and new_to == reservation.to_date
        and new_package_id == reservation.package_id
    ):
        if guests is not None and guests != reservation.guests:
            reservation.guests = guests
            _touch(reservation)
            reservation = await res_repo.save(reservation)
        return reservation, None

    replacement = await create_reservation(
        resource_repo,
        package_repo,
        res_repo,
        resource_id=reservation.resource_id,
        user_id=user_id,
        from_date=new_from,
        to_date=new_to,
        package_id=new_package_id,
        guests=guests if guests is not None else reservation.guests,
        exclude_reservation_id=reservation.id,
        rescheduled_from_id=reservation.id,
        tz=tz,
        package_timeout=package_timeout,
    )
    reservation.status = ReservationStatus.CANCELLED
    _touch(reservation)
    replaced = await res_repo.save(reservation)
    return replacement, replaced


async def cancel_reservation(
    res_repo: ReservationRepository,
    *,
    reservation_id: int,
    user_id: int,
    version: int,
) -> tuple[Reservation, ReservationStatus]:
    reservation = await res_repo.get_for_user_for_update(reservation_id, user_id)
    if reservation is None:
        raise ReservationNotFoundError("reservation not found")
    status_from = reservation.status
    # Idempotent: already cancelled returns as-is
    if reservation.status == ReservationStatus.CANCELLED:
        return reservation, status_from
    if reservation.version != version:
        raise VersionConflictError("version mismatch")

    reservation.status = ReservationStatus.CANCELLED
    _touch(reservation)
    updated = await res_repo.save(reservation)
    return updated, status_from


async def list_user_reservations(
    res_repo: ReservationRepository,
    *,
    user_id: int,
) -> list[Reservation]:
    return await res_repo.list_by_user(user_id)


async def get_user_reservation(
    res_repo: ReservationRepository,
    *,
    reservation_id: int,
    user_id: int,
) -> Reservation | None:
    return await res_repo.get_for_user(reservation_id, user_id)


def _touch(reservation: Reservation) -> None:
    reservation.version += 1
    reservation.updated_at = utc_now_naive()
