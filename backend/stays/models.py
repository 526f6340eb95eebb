from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Enum, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql.sqltypes import BigInteger, Date, DateTime, Integer, String


class Base(DeclarativeBase):
    pass


class ReservationStatus(StrEnum):
    BOOKED = "booked"
    CANCELLED = "cancelled"


class Resource(Base):
    __tablename__ = "resources"
    __table_args__ = (UniqueConstraint("slug", name="uq_resources_slug"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    packages: Mapped[list["Package"]] = relationship(back_populates="resource")
    reservations: Mapped[list["Reservation"]] = relationship(back_populates="resource")


class Package(Base):
    __tablename__ = "packages"
    __table_args__ = (Index("idx_packages_resource", "resource_id"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    resource_id: Mapped[int] = mapped_column(ForeignKey("resources.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # NULL means "not configured"; the capacity resolver treats it as 1.
    max_concurrent_bookings: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    resource: Mapped["Resource"] = relationship(back_populates="packages")


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("from_date < to_date", name="chk_res_dates"),
        CheckConstraint("guests >= 1", name="chk_res_guests"),
        Index("idx_res_resource_dates", "resource_id", "from_date", "to_date"),
        Index("idx_res_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    resource_id: Mapped[int] = mapped_column(ForeignKey("resources.id"), nullable=False)
    package_id: Mapped[Optional[int]] = mapped_column(ForeignKey("packages.id"), nullable=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    from_date: Mapped[date] = mapped_column(Date, nullable=False)
    to_date: Mapped[date] = mapped_column(Date, nullable=False)
    guests: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(
            ReservationStatus,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=ReservationStatus.BOOKED,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    rescheduled_from_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    resource: Mapped["Resource"] = relationship(back_populates="reservations")
