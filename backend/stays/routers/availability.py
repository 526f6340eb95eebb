from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..deps import get_current_user_id, get_session
from ..domain.errors import InvalidIntervalError, ResourceNotFoundError
from ..infrastructure.repositories import (
    SqlAlchemyPackageRepository,
    SqlAlchemyReservationRepository,
    SqlAlchemyResourceRepository,
)
from ..schemas import AvailabilityRead, MultiResourceAvailabilityRead, UnavailableDatesRead
from ..usecases import availability as availability_usecase
from ..utils.ids import as_id

router = APIRouter(prefix="", tags=["availability"])


def _parse_id_list(raw: str) -> list[int]:
    ids: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        rid = as_id(part)
        if rid is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"invalid resource id: {part}")
        ids.append(rid)
    return ids


@router.get("/availability", response_model=AvailabilityRead)
async def check_availability(
    resource_id: Optional[int] = Query(default=None, alias="resourceId"),
    slug: Optional[str] = Query(default=None),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    package_id: Optional[int] = Query(default=None, alias="packageId"),
    exclude_reservation_id: Optional[int] = Query(default=None, alias="excludeReservationId"),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> AvailabilityRead:
    if (resource_id is None and not slug) or not start_date or not end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="resourceId or slug and a date range (startDate, endDate) are required",
        )
    try:
        result = await availability_usecase.check_availability(
            SqlAlchemyResourceRepository(session),
            SqlAlchemyPackageRepository(session),
            SqlAlchemyReservationRepository(session),
            from_date=start_date,
            to_date=end_date,
            resource_id=resource_id,
            slug=slug,
            package_id=package_id,
            exclude_reservation_id=exclude_reservation_id,
            tz=settings.reference_timezone,
            package_timeout=settings.package_lookup_timeout,
            suggestion_count=settings.suggestion_count,
            lookback_days=settings.suggestion_lookback_days,
            lookahead_days=settings.suggestion_lookahead_days,
        )
    except InvalidIntervalError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except ResourceNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="resource not found")
    return AvailabilityRead.from_result(result)


@router.get("/unavailable-dates", response_model=UnavailableDatesRead)
async def list_unavailable_dates(
    resource_id: Optional[int] = Query(default=None, alias="resourceId"),
    slug: Optional[str] = Query(default=None),
    exclude_reservation_id: Optional[int] = Query(default=None, alias="excludeReservationId"),
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> UnavailableDatesRead:
    if resource_id is None and not slug:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="resourceId or slug is required")
    try:
        rid = await availability_usecase.resolve_resource_id(
            SqlAlchemyResourceRepository(session),
            resource_id=resource_id,
            slug=slug,
        )
    except ResourceNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="resource not found")
    dates = await availability_usecase.unavailable_dates(
        SqlAlchemyReservationRepository(session),
        rid,
        exclude_reservation_id=exclude_reservation_id,
    )
    return UnavailableDatesRead.from_dates(dates)


@router.get("/multi-resource-availability", response_model=MultiResourceAvailabilityRead)
async def multi_resource_availability(
    resource_ids: str = Query(default="", alias="resourceIds"),
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> MultiResourceAvailabilityRead:
    ids = _parse_id_list(resource_ids)
    if not ids:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="at least one resource id is required")
    try:
        result = await availability_usecase.multi_resource_availability(
            SqlAlchemyResourceRepository(session),
            SqlAlchemyReservationRepository(session),
            ids,
        )
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return MultiResourceAvailabilityRead.from_result(result)
