from __future__ import annotations

from typing import Iterable, Optional

from ..models import Reservation
from ..utils.ids import as_id
from .capacity import CapacityScope, Scoped, Unscoped, counts_against
from .intervals import DateInterval, overlaps
from .repositories import ReservationRepository


def reservation_interval(reservation: Reservation) -> DateInterval:
    return DateInterval(reservation.from_date, reservation.to_date)


def filter_conflicts(
    candidates: Iterable[Reservation],
    interval: DateInterval,
    scope: CapacityScope,
    *,
    exclude_reservation_id: Optional[int] = None,
) -> list[Reservation]:
    return [
        r
        for r in candidates
        if r.id != exclude_reservation_id
        and overlaps(reservation_interval(r), interval)
        and counts_against(scope, as_id(r.package_id))
    ]


async def find_conflicts(
    res_repo: ReservationRepository,
    resource_id: int,
    interval: DateInterval,
    package_id: Optional[int] = None,
    exclude_reservation_id: Optional[int] = None,
) -> list[Reservation]:
    """Return active reservations on the resource that consume capacity for the candidate."""
    scope: CapacityScope = Unscoped() if package_id is None else Scoped(package_id=package_id)
    existing = await res_repo.find_overlapping(resource_id, interval, exclude_id=exclude_reservation_id)
    return filter_conflicts(existing, interval, scope, exclude_reservation_id=exclude_reservation_id)
