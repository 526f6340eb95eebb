from datetime import date

import pytest
from fakes import FakeReservationRepo, make_reservation
from stays.domain.conflicts import find_conflicts
from stays.domain.intervals import DateInterval
from stays.models import ReservationStatus

SEPT_4_6 = DateInterval(date(2025, 9, 4), date(2025, 9, 6))


def _repo() -> FakeReservationRepo:
    return FakeReservationRepo(
        [
            make_reservation(1, date(2025, 9, 4), date(2025, 9, 6), package_id=10),
            make_reservation(2, date(2025, 9, 5), date(2025, 9, 7), package_id=20),
            make_reservation(3, date(2025, 9, 3), date(2025, 9, 5), package_id=None),
            make_reservation(4, date(2025, 9, 6), date(2025, 9, 8), package_id=10),
            make_reservation(5, date(2025, 9, 4), date(2025, 9, 6), resource_id=2, package_id=10),
            make_reservation(
                6, date(2025, 9, 4), date(2025, 9, 6), package_id=10, status=ReservationStatus.CANCELLED
            ),
        ]
    )


@pytest.mark.asyncio
async def test_scoped_candidate_sees_same_package_and_unscoped() -> None:
    conflicts = await find_conflicts(_repo(), 1, SEPT_4_6, package_id=10)
    assert sorted(r.id for r in conflicts) == [1, 3]


@pytest.mark.asyncio
async def test_unscoped_candidate_sees_every_overlap() -> None:
    conflicts = await find_conflicts(_repo(), 1, SEPT_4_6)
    assert sorted(r.id for r in conflicts) == [1, 2, 3]


@pytest.mark.asyncio
async def test_exclusion_removes_the_reservation_itself() -> None:
    conflicts = await find_conflicts(_repo(), 1, SEPT_4_6, package_id=10, exclude_reservation_id=1)
    assert [r.id for r in conflicts] == [3]


@pytest.mark.asyncio
async def test_other_package_does_not_conflict() -> None:
    conflicts = await find_conflicts(_repo(), 1, DateInterval(date(2025, 9, 6), date(2025, 9, 7)), package_id=30)
    assert conflicts == []
