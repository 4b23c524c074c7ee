from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin
from .branch import AppointmentType, Branch
from .client import Client
from .enums import AppointmentStatus


class Appointment(TimestampMixin, Base):
    # occupies_slot is True while the appointment holds its slot and NULL otherwise.
    # NULLs never collide, so the constraint admits one occupant per tuple.
    __table_args__ = (
        UniqueConstraint(
            "branch_id",
            "appointment_date",
            "appointment_time",
            "occupies_slot",
            name="uq_appointment_occupied_slot",
        ),
        Index("ix_appointment_branch_date", "branch_id", "appointment_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    appointment_number: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    client_id: Mapped[int] = mapped_column(ForeignKey("client.id"), nullable=False)
    branch_id: Mapped[int] = mapped_column(ForeignKey("branch.id"), nullable=False)
    appointment_type_id: Mapped[int] = mapped_column(ForeignKey("appointment_type.id"), nullable=False)
    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)
    appointment_time: Mapped[str] = mapped_column(String(5), nullable=False)
    status_id: Mapped[int] = mapped_column(Integer, nullable=False, default=AppointmentStatus.CONFIRMED.value)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    occupies_slot: Mapped[bool | None] = mapped_column(Boolean, nullable=True, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    client: Mapped[Client] = relationship(lazy="joined")
    branch: Mapped[Branch] = relationship(lazy="joined")
    appointment_type: Mapped[AppointmentType] = relationship(lazy="joined")

    @property
    def status(self) -> AppointmentStatus:
        return AppointmentStatus(self.status_id)
