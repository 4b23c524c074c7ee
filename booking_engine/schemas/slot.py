from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TimeSlotCreate(BaseModel):
    branch_id: int = Field(gt=0)
    time: str
    appointment_type_id: int | None = Field(default=None, gt=0)


class BulkSlotCreate(BaseModel):
    branch_id: int = Field(gt=0)
    appointment_type_id: int | None = Field(default=None, gt=0)
    times: list[str] = Field(min_length=1)


class TimeSlotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    branch_id: int
    appointment_type_id: int | None = None
    time: str
    is_active: bool
    created_at: datetime | None = None


class BulkSlotEntryError(BaseModel):
    time: str
    code: str
    message: str


class BulkSlotReport(BaseModel):
    created_count: int
    skipped_count: int
    total: int
    created: list[TimeSlotOut] = Field(default_factory=list)
    errors: list[BulkSlotEntryError] = Field(default_factory=list)
