from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _BookingFields(BaseModel):
    branch_id: int = Field(gt=0)
    appointment_type_id: int = Field(gt=0)
    appointment_date: date
    appointment_time: str
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("appointment_time")
    @classmethod
    def _strip_time(cls, value: str) -> str:
        return value.strip()


class ScheduleAppointmentPayload(_BookingFields):
    client_id: int = Field(gt=0)


class PublicScheduleAppointmentPayload(_BookingFields):
    client_number: str = Field(min_length=1)


class CompleteAppointmentPayload(BaseModel):
    notes: str | None = None


class CancelAppointmentPayload(BaseModel):
    reason: str | None = None


class PublicCancelAppointmentPayload(BaseModel):
    client_number: str
    reason: str

    @field_validator("client_number", "reason")
    @classmethod
    def _ensure_not_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("client_number and reason are required")
        return value.strip()


class ReminderRequest(BaseModel):
    target_date: date


class AppointmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    appointment_number: str
    client_id: int
    branch_id: int
    appointment_type_id: int
    appointment_date: date
    appointment_time: str
    status_id: int
    status: str
    notes: str | None = None
    cancellation_reason: str | None = None
    completed_date: datetime | None = None
    is_active: bool
    is_enabled: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _status_name(cls, value: object) -> object:
        return getattr(value, "name", value)


class AppointmentEnvelope(BaseModel):
    appointment: AppointmentOut
    warnings: list[str] = Field(default_factory=list)


class AvailabilityOut(BaseModel):
    branch_id: int
    target_date: date
    appointment_type_id: int | None = None
    times: list[str] = Field(default_factory=list)
    reason: str | None = None
    holiday_name: str | None = None


class ReminderReport(BaseModel):
    target_date: date
    total: int
    sent: int
    failed: int


class PartySummary(BaseModel):
    id: int
    name: str
    code: str | None = None
    description: str | None = None
    address: str | None = None
    phone: str | None = None
    city: str | None = None


class ClientSummary(BaseModel):
    client_number: str
    full_name: str


class AppointmentVerification(BaseModel):
    is_valid: bool
    appointment_number: str
    appointment_date: date
    appointment_time: str
    status: str
    status_description: str
    client: ClientSummary
    branch: PartySummary | None = None
    appointment_type: PartySummary | None = None
    created_at: datetime | None = None
    notes: str | None = None
    message: str
