import pytest
from fakes import FakePackageRepo, FakeResourceRepo, make_package, make_resource
from stays.domain.errors import ResourceNotFoundError
from stays.usecases import packages as uc


@pytest.mark.asyncio
async def test_create_package_persists_capacity() -> None:
    package_repo = FakePackageRepo()
    package = await uc.create_package(
        FakeResourceRepo([make_resource(1)]),
        package_repo,
        resource_id=1,
        name="Dorm bed",
        max_concurrent_bookings=6,
    )
    assert package.max_concurrent_bookings == 6
    assert package_repo.packages[package.id] is package


@pytest.mark.asyncio
async def test_create_package_rejects_non_positive_capacity() -> None:
    with pytest.raises(ValueError):
        await uc.create_package(
            FakeResourceRepo([make_resource(1)]),
            FakePackageRepo(),
            resource_id=1,
            name="Broken",
            max_concurrent_bookings=0,
        )


@pytest.mark.asyncio
async def test_list_packages_for_unknown_resource() -> None:
    with pytest.raises(ResourceNotFoundError):
        await uc.list_packages(FakeResourceRepo(), FakePackageRepo(), resource_id=1)


@pytest.mark.asyncio
async def test_list_packages_filters_by_resource() -> None:
    package_repo = FakePackageRepo([make_package(1, resource_id=1), make_package(2, resource_id=2)])
    listed = await uc.list_packages(FakeResourceRepo([make_resource(1)]), package_repo, resource_id=1)
    assert [p.id for p in listed] == [1]
