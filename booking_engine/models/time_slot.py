from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class TimeSlotConfig(TimestampMixin, Base):
    __table_args__ = (Index("ix_time_slot_config_branch_active", "branch_id", "is_active"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    branch_id: Mapped[int] = mapped_column(ForeignKey("branch.id"), nullable=False)
    appointment_type_id: Mapped[int | None] = mapped_column(ForeignKey("appointment_type.id"), nullable=True)
    time: Mapped[str] = mapped_column(String(5), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
