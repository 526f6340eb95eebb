from dataclasses import dataclass
from typing import Sequence

from ..models import Reservation
from ..utils.ids import as_id
from .errors import CapacityExceededError, ConflictSummary


@dataclass(frozen=True)
class AdmissionSnapshot:
    capacity: int
    conflicts: Sequence[Reservation]

    @property
    def conflicting_count(self) -> int:
        return len(self.conflicts)

    @property
    def available(self) -> bool:
        return self.conflicting_count < self.capacity


def summarize_conflicts(conflicts: Sequence[Reservation]) -> list[ConflictSummary]:
    return [
        ConflictSummary(
            reservation_id=r.id,
            from_date=r.from_date,
            to_date=r.to_date,
            package_id=as_id(r.package_id),
        )
        for r in conflicts
    ]


def validate_admission(snapshot: AdmissionSnapshot) -> int:
    """
    Pure validation: a candidate is admitted while conflicts stay below capacity.
    Returns remaining capacity after admitting. Raises CapacityExceededError otherwise.
    """
    if not snapshot.available:
        raise CapacityExceededError(
            f"found {snapshot.conflicting_count} conflicting reservation(s); "
            f"the limit for this package is {snapshot.capacity}",
            capacity=snapshot.capacity,
            conflicts=summarize_conflicts(snapshot.conflicts),
        )
    return snapshot.capacity - snapshot.conflicting_count - 1
