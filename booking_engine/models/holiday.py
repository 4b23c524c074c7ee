from __future__ import annotations

from datetime import date

from sqlalchemy import Boolean, Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin
from .enums import HolidayType


class Holiday(TimestampMixin, Base):
    __table_args__ = (Index("ix_holiday_date_active", "holiday_date", "is_active"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    holiday_date: Mapped[date] = mapped_column(Date, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    holiday_type: Mapped[str] = mapped_column(String(16), nullable=False, default=HolidayType.NATIONAL.value)
    branch_id: Mapped[int | None] = mapped_column(ForeignKey("branch.id"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def applies_to_branch(self, branch_id: int | None) -> bool:
        if self.holiday_type in (HolidayType.NATIONAL.value, HolidayType.COMPANY.value):
            return True
        return self.holiday_type == HolidayType.LOCAL.value and self.branch_id == branch_id
