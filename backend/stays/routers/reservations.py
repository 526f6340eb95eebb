import logging
import re
from typing import List, Optional, Protocol

from fastapi import APIRouter, Depends, Header, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..deps import get_current_user_id, get_session
from ..domain.errors import (
    CapacityExceededError,
    InvalidIntervalError,
    PackageNotAdmissibleError,
    ReservationNotFoundError,
    ResourceNotFoundError,
    VersionConflictError,
)
from ..infrastructure.repositories import (
    SqlAlchemyPackageRepository,
    SqlAlchemyReservationRepository,
    SqlAlchemyResourceRepository,
)
from ..schemas import ConflictRead, ReservationCancel, ReservationCreate, ReservationRead, ReservationUpdate
from ..usecases import reservations as reservation_usecase
from ..utils.audit_log import emit_audit_log

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["reservations"])

_IF_MATCH = re.compile(r'^(?:W/)?"?(\d+)"?$')


class _Versioned(Protocol):
    version: Optional[int]


def _extract_version(if_match: Optional[str], payload: Optional[_Versioned]) -> int:
    """Take the expected version from If-Match, falling back to the request body."""
    if if_match is not None:
        match = _IF_MATCH.match(if_match.strip())
        if match is None or int(match.group(1)) < 1:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid If-Match header")
        return int(match.group(1))
    version = getattr(payload, "version", None) if payload is not None else None
    if version is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="version is required")
    if version < 1:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="version must be >= 1")
    return int(version)


def _capacity_exceeded(exc: CapacityExceededError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "message": str(exc),
            "capacity": exc.capacity,
            "conflictingReservations": [
                ConflictRead.from_summary(c).model_dump(mode="json", by_alias=True) for c in exc.conflicts
            ],
        },
    )


def _audit_or_500(**kwargs: object) -> None:
    try:
        emit_audit_log(**kwargs)  # type: ignore[arg-type]
    except RuntimeError as exc:
        logger.exception("audit log failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc


@router.post("/reservations", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: ReservationCreate,
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
) -> ReservationRead:
    resource_repo = SqlAlchemyResourceRepository(session)
    package_repo = SqlAlchemyPackageRepository(session)
    res_repo = SqlAlchemyReservationRepository(session)
    async with session.begin():
        try:
            reservation = await reservation_usecase.create_reservation(
                resource_repo,
                package_repo,
                res_repo,
                resource_id=payload.resource_id,
                user_id=user_id,
                from_date=payload.from_date,
                to_date=payload.to_date,
                package_id=payload.package_id,
                guests=payload.guests,
                tz=settings.reference_timezone,
                package_timeout=settings.package_lookup_timeout,
            )
        except InvalidIntervalError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        except ResourceNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="resource not found")
        except PackageNotAdmissibleError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        except CapacityExceededError as exc:
            raise _capacity_exceeded(exc)

        _audit_or_500(
            action="reservation.created",
            initiator="user",
            reservation_id=reservation.id,
            resource_id=reservation.resource_id,
            package_id=reservation.package_id,
            user_id=user_id,
            from_date=reservation.from_date,
            to_date=reservation.to_date,
            status_from=None,
            status_to=reservation.status,
            version=reservation.version,
        )

    return ReservationRead.from_db(reservation=reservation)


@router.get("/me/reservations", response_model=List[ReservationRead])
async def list_my_reservations(
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> list[ReservationRead]:
    res_repo = SqlAlchemyReservationRepository(session)
    rows = await reservation_usecase.list_user_reservations(res_repo, user_id=user_id)
    return [ReservationRead.from_db(reservation=r) for r in rows]


@router.get("/me/reservations/{reservation_id}", response_model=ReservationRead)
async def get_my_reservation(
    reservation_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> ReservationRead:
    res_repo = SqlAlchemyReservationRepository(session)
    reservation = await reservation_usecase.get_user_reservation(
        res_repo, reservation_id=reservation_id, user_id=user_id
    )
    if reservation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="reservation not found")
    return ReservationRead.from_db(reservation=reservation)


@router.patch("/me/reservations/{reservation_id}", response_model=ReservationRead)
async def update_my_reservation(
    payload: ReservationUpdate,
    reservation_id: int = Path(..., ge=1),
    if_match: Optional[str] = Header(default=None, alias="If-Match"),
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
) -> ReservationRead:
    version = _extract_version(if_match, payload)
    changes = {}
    if "package_id" in payload.model_fields_set:
        changes["package_id"] = payload.package_id

    resource_repo = SqlAlchemyResourceRepository(session)
    package_repo = SqlAlchemyPackageRepository(session)
    res_repo = SqlAlchemyReservationRepository(session)
    async with session.begin():
        try:
            current, replaced = await reservation_usecase.update_reservation(
                resource_repo,
                package_repo,
                res_repo,
                reservation_id=reservation_id,
                user_id=user_id,
                version=version,
                from_date=payload.from_date,
                to_date=payload.to_date,
                guests=payload.guests,
                tz=settings.reference_timezone,
                package_timeout=settings.package_lookup_timeout,
                **changes,
            )
        except ReservationNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="reservation not found")
        except VersionConflictError:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="version mismatch")
        except InvalidIntervalError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        except ResourceNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="resource not found")
        except PackageNotAdmissibleError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        except CapacityExceededError as exc:
            raise _capacity_exceeded(exc)

        if replaced is None:
            _audit_or_500(
                action="reservation.updated",
                initiator="user",
                reservation_id=current.id,
                resource_id=current.resource_id,
                package_id=current.package_id,
                user_id=user_id,
                status_from=current.status,
                status_to=current.status,
                version=current.version,
            )
        else:
            _audit_or_500(
                action="reservation.rescheduled",
                initiator="user",
                reservation_id=current.id,
                resource_id=current.resource_id,
                package_id=current.package_id,
                user_id=user_id,
                from_date=current.from_date,
                to_date=current.to_date,
                status_from=None,
                status_to=current.status,
                version=current.version,
                extra={
                    "rescheduled_from_id": replaced.id,
                    "from_date_before": replaced.from_date.isoformat(),
                    "to_date_before": replaced.to_date.isoformat(),
                },
            )

    return ReservationRead.from_db(reservation=current)


@router.post("/me/reservations/{reservation_id}/cancel", response_model=ReservationRead)
async def cancel_reservation(
    payload: Optional[ReservationCancel] = None,
    reservation_id: int = Path(..., ge=1),
    if_match: Optional[str] = Header(default=None, alias="If-Match"),
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> ReservationRead:
    version = _extract_version(if_match, payload)
    res_repo = SqlAlchemyReservationRepository(session)
    async with session.begin():
        try:
            updated, status_from = await reservation_usecase.cancel_reservation(
                res_repo,
                reservation_id=reservation_id,
                user_id=user_id,
                version=version,
            )
        except ReservationNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="reservation not found")
        except VersionConflictError:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="version mismatch")

        if status_from != updated.status:
            _audit_or_500(
                action="reservation.cancelled",
                initiator="user",
                reservation_id=updated.id,
                resource_id=updated.resource_id,
                package_id=updated.package_id,
                user_id=user_id,
                from_date=updated.from_date,
                to_date=updated.to_date,
                status_from=status_from,
                status_to=updated.status,
                version=updated.version,
            )

    return ReservationRead.from_db(reservation=updated)
