from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Sequence


class DomainError(Exception):
    """Base class for business-rule failures raised by the domain and usecases."""


class InvalidIntervalError(DomainError):
    pass


class ResourceNotFoundError(DomainError):
    pass


class ReservationNotFoundError(DomainError):
    pass


class VersionConflictError(DomainError):
    pass


class PackageNotAdmissibleError(DomainError):
    """The package is disabled or belongs to a different resource."""


class DependencyDegradedError(DomainError):
    """A collaborator lookup failed; callers fall back to a conservative default."""


@dataclass(frozen=True)
class ConflictSummary:
    reservation_id: int
    from_date: date
    to_date: date
    package_id: Optional[int]

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.reservation_id,
            "fromDate": self.from_date.isoformat(),
            "toDate": self.to_date.isoformat(),
            "packageId": self.package_id,
        }


class CapacityExceededError(DomainError):
    def __init__(self, message: str, *, capacity: int, conflicts: Sequence[ConflictSummary]) -> None:
        super().__init__(message)
        self.capacity = capacity
        self.conflicts = list(conflicts)
