from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from .domain.errors import ConflictSummary
from .domain.intervals import DateInterval
from .models import Package, Reservation, ReservationStatus
from .usecases.availability import AvailabilityResult, MultiResourceAvailability


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DateRangeRead(CamelModel):
    start_date: date
    end_date: date

    @classmethod
    def from_interval(cls, interval: DateInterval) -> "DateRangeRead":
        return cls(start_date=interval.from_date, end_date=interval.to_date)


class SuggestedRange(DateRangeRead):
    duration: int


class AvailabilityMetadata(CamelModel):
    capacity: int
    conflicting_count: int
    reason: Optional[str] = None


class AvailabilityRead(CamelModel):
    available: bool
    requested_range: DateRangeRead
    metadata: AvailabilityMetadata
    suggested_dates: Optional[list[SuggestedRange]] = None

    @classmethod
    def from_result(cls, result: AvailabilityResult) -> "AvailabilityRead":
        suggestions = [
            SuggestedRange(start_date=s.from_date, end_date=s.to_date, duration=s.nights)
            for s in result.suggested_dates
        ]
        return cls(
            available=result.available,
            requested_range=DateRangeRead.from_interval(result.interval),
            metadata=AvailabilityMetadata(
                capacity=result.capacity,
                conflicting_count=result.conflicting_count,
                reason=result.reason,
            ),
            suggested_dates=suggestions or None,
        )


class UnavailableDatesRead(CamelModel):
    unavailable_dates: list[date]

    @classmethod
    def from_dates(cls, dates: set[date]) -> "UnavailableDatesRead":
        return cls(unavailable_dates=sorted(dates))


class ResourceDatesRead(CamelModel):
    id: int
    title: str
    unavailable_dates: list[date]


class MultiResourceAvailabilityRead(CamelModel):
    resources: list[ResourceDatesRead]
    unavailable_by_resource: dict[str, list[date]]
    unavailable_in_any: list[date]

    @classmethod
    def from_result(cls, result: MultiResourceAvailability) -> "MultiResourceAvailabilityRead":
        return cls(
            resources=[
                ResourceDatesRead(
                    id=r.id,
                    title=r.title,
                    unavailable_dates=sorted(result.per_resource.get(r.id, set())),
                )
                for r in result.resources
            ],
            unavailable_by_resource={
                str(rid): sorted(dates) for rid, dates in result.per_resource.items()
            },
            unavailable_in_any=sorted(result.unavailable_in_any),
        )


class ConflictRead(CamelModel):
    id: int
    from_date: date
    to_date: date
    package_id: Optional[int]

    @classmethod
    def from_summary(cls, summary: ConflictSummary) -> "ConflictRead":
        return cls(
            id=summary.reservation_id,
            from_date=summary.from_date,
            to_date=summary.to_date,
            package_id=summary.package_id,
        )


class ReservationCreate(BaseModel):
    resource_id: int
    package_id: Optional[int] = None
    from_date: str
    to_date: str
    guests: int = Field(default=1, ge=1)


class ReservationUpdate(BaseModel):
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    package_id: Optional[int] = None
    guests: Optional[int] = Field(default=None, ge=1)
    version: Optional[int] = Field(default=None, ge=1)


class ReservationCancel(BaseModel):
    version: Optional[int] = Field(default=None, ge=1)


class ReservationRead(BaseModel):
    reservation_id: int
    resource_id: int
    package_id: Optional[int]
    user_id: int
    from_date: date
    to_date: date
    guests: int
    status: ReservationStatus
    version: int
    rescheduled_from_id: Optional[int] = None

    @field_serializer("from_date", "to_date")
    def _ser_date(self, value: date) -> str:
        return value.isoformat()

    @classmethod
    def from_db(cls, *, reservation: Reservation) -> "ReservationRead":
        return cls(
            reservation_id=reservation.id,
            resource_id=reservation.resource_id,
            package_id=reservation.package_id,
            user_id=reservation.user_id,
            from_date=reservation.from_date,
            to_date=reservation.to_date,
            guests=reservation.guests,
            status=reservation.status,
            version=reservation.version,
            rescheduled_from_id=reservation.rescheduled_from_id,
        )


class PackageCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    max_concurrent_bookings: Optional[int] = Field(default=None, ge=1)
    is_enabled: bool = True


class PackageRead(BaseModel):
    package_id: int
    resource_id: int
    name: str
    max_concurrent_bookings: Optional[int]
    is_enabled: bool

    @classmethod
    def from_db(cls, *, package: Package) -> "PackageRead":
        return cls(
            package_id=package.id,
            resource_id=package.resource_id,
            name=package.name,
            max_concurrent_bookings=package.max_concurrent_bookings,
            is_enabled=package.is_enabled,
        )
