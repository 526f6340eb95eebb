from typing import Optional

from ..domain.errors import ResourceNotFoundError
from ..domain.repositories import PackageRepository, ResourceRepository
from ..models import Package


async def create_package(
    resource_repo: ResourceRepository,
    package_repo: PackageRepository,
    *,
    resource_id: int,
    name: str,
    max_concurrent_bookings: Optional[int],
    is_enabled: bool = True,
) -> Package:
    if max_concurrent_bookings is not None and max_concurrent_bookings < 1:
        raise ValueError("max_concurrent_bookings must be >= 1")
    if await resource_repo.get(resource_id) is None:
        raise ResourceNotFoundError("resource not found")
    return await package_repo.create(
        resource_id=resource_id,
        name=name,
        max_concurrent_bookings=max_concurrent_bookings,
        is_enabled=is_enabled,
    )


async def list_packages(
    resource_repo: ResourceRepository,
    package_repo: PackageRepository,
    *,
    resource_id: int,
) -> list[Package]:
    if await resource_repo.get(resource_id) is None:
        raise ResourceNotFoundError("resource not found")
    return await package_repo.list_for_resource(resource_id)
