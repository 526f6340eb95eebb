from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_user_id, get_session
from ..domain.errors import ResourceNotFoundError
from ..infrastructure.repositories import SqlAlchemyPackageRepository, SqlAlchemyResourceRepository
from ..schemas import PackageCreate, PackageRead
from ..usecases import packages as package_usecase
from ..utils.audit_log import emit_audit_log

router = APIRouter(prefix="/resources", tags=["packages"], dependencies=[Depends(get_current_user_id)])


@router.post("/{resource_id}/packages", response_model=PackageRead, status_code=status.HTTP_201_CREATED)
async def create_package(
    payload: PackageCreate,
    resource_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
) -> PackageRead:
    resource_repo = SqlAlchemyResourceRepository(session)
    package_repo = SqlAlchemyPackageRepository(session)
    async with session.begin():
        try:
            package = await package_usecase.create_package(
                resource_repo,
                package_repo,
                resource_id=resource_id,
                name=payload.name,
                max_concurrent_bookings=payload.max_concurrent_bookings,
                is_enabled=payload.is_enabled,
            )
        except ResourceNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="resource not found")
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

        try:
            emit_audit_log(
                action="package.created",
                initiator="host",
                reservation_id=None,
                resource_id=package.resource_id,
                package_id=package.id,
                user_id=None,
                extra={"max_concurrent_bookings": package.max_concurrent_bookings},
            )
        except RuntimeError as exc:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc

    return PackageRead.from_db(package=package)


@router.get("/{resource_id}/packages", response_model=List[PackageRead])
async def list_packages(
    resource_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
) -> list[PackageRead]:
    try:
        packages = await package_usecase.list_packages(
            SqlAlchemyResourceRepository(session),
            SqlAlchemyPackageRepository(session),
            resource_id=resource_id,
        )
    except ResourceNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="resource not found")
    return [PackageRead.from_db(package=p) for p in packages]
