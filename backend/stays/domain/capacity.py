from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Union

from ..models import Package
from .errors import DependencyDegradedError, PackageNotAdmissibleError
from .repositories import PackageRepository

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1


@dataclass(frozen=True)
class Scoped:
    package_id: int
    capacity: int = DEFAULT_CAPACITY


@dataclass(frozen=True)
class Unscoped:
    capacity: int = DEFAULT_CAPACITY


CapacityScope = Union[Scoped, Unscoped]


def normalize_capacity(raw: Any) -> int:
    """Return a positive integer capacity, or the default for missing/invalid values."""
    if raw is None or isinstance(raw, bool):
        return DEFAULT_CAPACITY
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_CAPACITY
    if not math.isfinite(value) or value <= 0 or not value.is_integer():
        return DEFAULT_CAPACITY
    return int(value)


def counts_against(scope: CapacityScope, existing_package_id: Optional[int]) -> bool:
    """
    Decide whether an existing overlapping reservation consumes the candidate's capacity.

    An unscoped candidate collides with everything. A scoped candidate collides with
    reservations of the same package and with unscoped reservations, which claim the
    whole resource for their dates.
    """
    if isinstance(scope, Unscoped):
        return True
    return existing_package_id is None or existing_package_id == scope.package_id


def ensure_admissible(package: Package, resource_id: Optional[int]) -> None:
    """Raise PackageNotAdmissibleError for a disabled package or one sold on another resource."""
    if resource_id is not None and package.resource_id != resource_id:
        raise PackageNotAdmissibleError(
            f"package {package.id} does not belong to resource {resource_id}"
        )
    if not package.is_enabled:
        raise PackageNotAdmissibleError(f"package {package.id} is disabled")


async def resolve_capacity(
    package_repo: PackageRepository,
    package_id: Optional[int],
    *,
    resource_id: Optional[int] = None,
    timeout: Optional[float] = None,
) -> int:
    """
    Effective capacity for a candidate on ``resource_id``.

    Lookup failures and missing packages fall back to the default. A package that
    is found but disabled, or attached to another resource, is rejected.
    """
    if package_id is None:
        return DEFAULT_CAPACITY
    try:
        package = await asyncio.wait_for(package_repo.get(package_id), timeout=timeout)
    except (DependencyDegradedError, asyncio.TimeoutError) as exc:
        logger.warning(
            "package %s lookup failed (%s); falling back to capacity %d",
            package_id,
            exc.__class__.__name__,
            DEFAULT_CAPACITY,
        )
        return DEFAULT_CAPACITY
    if package is None:
        logger.warning("package %s not found; falling back to capacity %d", package_id, DEFAULT_CAPACITY)
        return DEFAULT_CAPACITY
    ensure_admissible(package, resource_id)
    return normalize_capacity(package.max_concurrent_bookings)


async def resolve_scope(
    package_repo: PackageRepository,
    package_id: Optional[int],
    *,
    resource_id: Optional[int] = None,
    timeout: Optional[float] = None,
) -> CapacityScope:
    if package_id is None:
        return Unscoped()
    capacity = await resolve_capacity(package_repo, package_id, resource_id=resource_id, timeout=timeout)
    return Scoped(package_id=package_id, capacity=capacity)
