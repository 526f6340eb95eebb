from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from ..domain.capacity import CapacityScope, resolve_scope
from ..domain.conflicts import filter_conflicts, find_conflicts, reservation_interval
from ..domain.errors import PackageNotAdmissibleError, ResourceNotFoundError
from ..domain.intervals import DateInterval, iter_dates, make_interval
from ..domain.repositories import PackageRepository, ReservationRepository, ResourceRepository
from ..domain.services import AdmissionSnapshot
from ..models import Reservation, Resource
from ..utils.time import DateLike, today_in

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvailabilityResult:
    resource_id: int
    interval: DateInterval
    capacity: int
    conflicting_count: int
    suggested_dates: list[DateInterval] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.conflicting_count < self.capacity


@dataclass(frozen=True)
class MultiResourceAvailability:
    per_resource: dict[int, set[date]]
    unavailable_in_any: set[date]
    resources: list[Resource]


async def resolve_resource_id(
    resource_repo: ResourceRepository,
    *,
    resource_id: Optional[int] = None,
    slug: Optional[str] = None,
) -> int:
    """Resolve a resource given either its id or its slug; the id wins when both are given."""
    if resource_id is not None:
        if await resource_repo.get(resource_id) is None:
            raise ResourceNotFoundError("resource not found")
        return resource_id
    if slug:
        resolved = await resource_repo.resolve_id_by_slug(slug)
        if resolved is None:
            raise ResourceNotFoundError("resource not found")
        return resolved
    raise ResourceNotFoundError("resource id or slug is required")


async def check_availability(
    resource_repo: ResourceRepository,
    package_repo: PackageRepository,
    res_repo: ReservationRepository,
    *,
    from_date: DateLike,
    to_date: DateLike,
    resource_id: Optional[int] = None,
    slug: Optional[str] = None,
    package_id: Optional[int] = None,
    exclude_reservation_id: Optional[int] = None,
    tz: str = "UTC",
    package_timeout: Optional[float] = None,
    suggestion_count: int = 3,
    lookback_days: int = 30,
    lookahead_days: int = 60,
    today: Optional[date] = None,
) -> AvailabilityResult:
    """
    Advisory, read-only counterpart of the admission gate.

    Applies the same capacity and conflict rules but reports the outcome instead
    of raising. When the interval is not available, up to ``suggestion_count``
    alternative ranges of the same length near the requested start are attached.
    """
    interval = make_interval(from_date, to_date, tz=tz)
    rid = await resolve_resource_id(resource_repo, resource_id=resource_id, slug=slug)

    try:
        scope = await resolve_scope(package_repo, package_id, resource_id=rid, timeout=package_timeout)
    except PackageNotAdmissibleError as exc:
        logger.info("availability resource=%s package=%s not admissible: %s", rid, package_id, exc)
        return AvailabilityResult(
            resource_id=rid,
            interval=interval,
            capacity=0,
            conflicting_count=0,
            reason=str(exc),
        )

    conflicts = await find_conflicts(
        res_repo,
        rid,
        interval,
        package_id=package_id,
        exclude_reservation_id=exclude_reservation_id,
    )
    snapshot = AdmissionSnapshot(capacity=scope.capacity, conflicts=conflicts)
    logger.debug(
        "availability resource=%s package=%s dates=%s..%s conflicts=%d capacity=%d",
        rid,
        package_id,
        interval.from_date,
        interval.to_date,
        snapshot.conflicting_count,
        snapshot.capacity,
    )

    suggestions: list[DateInterval] = []
    if not snapshot.available and suggestion_count > 0:
        suggestions = await suggest_alternative_dates(
            res_repo,
            resource_id=rid,
            interval=interval,
            scope=scope,
            exclude_reservation_id=exclude_reservation_id,
            limit=suggestion_count,
            lookback_days=lookback_days,
            lookahead_days=lookahead_days,
            earliest=today if today is not None else today_in(tz),
        )

    return AvailabilityResult(
        resource_id=rid,
        interval=interval,
        capacity=snapshot.capacity,
        conflicting_count=snapshot.conflicting_count,
        suggested_dates=suggestions,
    )


async def suggest_alternative_dates(
    res_repo: ReservationRepository,
    *,
    resource_id: int,
    interval: DateInterval,
    scope: CapacityScope,
    exclude_reservation_id: Optional[int] = None,
    limit: int = 3,
    lookback_days: int = 30,
    lookahead_days: int = 60,
    earliest: Optional[date] = None,
) -> list[DateInterval]:
    """
    Return same-length ranges closest to the requested start that still have capacity.

    Ranges starting before ``earliest`` (usually today) are never offered.
    """
    window = DateInterval(
        interval.from_date - timedelta(days=lookback_days),
        interval.from_date + timedelta(days=max(lookahead_days, interval.nights)),
    )
    existing = await res_repo.find_overlapping(resource_id, window, exclude_id=exclude_reservation_id)

    suggestions: list[DateInterval] = []
    for offset in _offsets_by_distance(lookback_days, lookahead_days):
        candidate = interval.shift(offset)
        # Later candidates must end inside the search window.
        if offset > 0 and candidate.to_date > interval.from_date + timedelta(days=lookahead_days):
            continue
        if earliest is not None and candidate.from_date < earliest:
            continue
        conflicts = filter_conflicts(existing, candidate, scope, exclude_reservation_id=exclude_reservation_id)
        if len(conflicts) < scope.capacity:
            suggestions.append(candidate)
            if len(suggestions) >= limit:
                break
    return suggestions


def _offsets_by_distance(lookback_days: int, lookahead_days: int) -> Iterable[int]:
    for distance in range(1, max(lookback_days, lookahead_days) + 1):
        if distance <= lookback_days:
            yield -distance
        if distance <= lookahead_days:
            yield distance


def materialize_dates(reservations: Iterable[Reservation]) -> set[date]:
    blocked: set[date] = set()
    for reservation in reservations:
        blocked.update(iter_dates(reservation_interval(reservation)))
    return blocked


async def unavailable_dates(
    res_repo: ReservationRepository,
    resource_id: int,
    exclude_reservation_id: Optional[int] = None,
) -> set[date]:
    """Every night covered by an active reservation on the resource (checkout days stay free)."""
    reservations = await res_repo.list_active_for_resources([resource_id], exclude_id=exclude_reservation_id)
    return materialize_dates(reservations)


async def multi_resource_availability(
    resource_repo: ResourceRepository,
    res_repo: ReservationRepository,
    resource_ids: Sequence[int],
) -> MultiResourceAvailability:
    """
    Per-resource booked nights and their union for a set of resources.

    Every requested id must resolve; unknown ids raise ResourceNotFoundError.
    """
    ids = list(dict.fromkeys(resource_ids))
    resources = await resource_repo.list_by_ids(ids)
    missing = sorted(set(ids) - {r.id for r in resources})
    if missing:
        raise ResourceNotFoundError(f"resources not found: {', '.join(str(m) for m in missing)}")

    per_resource: dict[int, set[date]] = {rid: set() for rid in ids}
    for reservation in await res_repo.list_active_for_resources(ids):
        bucket = per_resource.get(reservation.resource_id)
        if bucket is None:
            continue
        bucket.update(iter_dates(reservation_interval(reservation)))

    unavailable_in_any: set[date] = set()
    for blocked in per_resource.values():
        unavailable_in_any |= blocked

    return MultiResourceAvailability(
        per_resource=per_resource,
        unavailable_in_any=unavailable_in_any,
        resources=resources,
    )


def available_everywhere(result: MultiResourceAvailability, interval: DateInterval) -> list[date]:
    """Dates inside the interval on which none of the queried resources is booked."""
    return [d for d in iter_dates(interval) if d not in result.unavailable_in_any]


def has_unavailable_date_between(blocked: Iterable[date], interval: DateInterval) -> bool:
    return any(interval.from_date <= d < interval.to_date for d in blocked)
