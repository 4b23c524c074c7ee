from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HolidayCreate(BaseModel):
    holiday_date: date
    name: str = Field(min_length=1, max_length=128)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Holiday name cannot be empty")
        return cleaned


class LocalHolidayCreate(HolidayCreate):
    branch_id: int = Field(gt=0)


class HolidayUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=128)
    holiday_date: date | None = None


class HolidayOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    holiday_date: date
    name: str
    holiday_type: str
    branch_id: int | None = None
    is_active: bool


class HolidayCheckOut(BaseModel):
    target_date: date
    branch_id: int
    is_holiday: bool
    name: str | None = None
