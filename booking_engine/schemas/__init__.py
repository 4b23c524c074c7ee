from .appointment import (
    AppointmentEnvelope,
    AppointmentOut,
    AppointmentVerification,
    AvailabilityOut,
    CancelAppointmentPayload,
    CompleteAppointmentPayload,
    PublicCancelAppointmentPayload,
    PublicScheduleAppointmentPayload,
    ReminderReport,
    ReminderRequest,
    ScheduleAppointmentPayload,
)
from .holiday import HolidayCheckOut, HolidayCreate, HolidayOut, HolidayUpdate, LocalHolidayCreate
from .slot import BulkSlotCreate, BulkSlotEntryError, BulkSlotReport, TimeSlotCreate, TimeSlotOut

__all__ = [
    "AppointmentEnvelope",
    "AppointmentOut",
    "AppointmentVerification",
    "AvailabilityOut",
    "BulkSlotCreate",
    "BulkSlotEntryError",
    "BulkSlotReport",
    "CancelAppointmentPayload",
    "CompleteAppointmentPayload",
    "HolidayCheckOut",
    "HolidayCreate",
    "HolidayOut",
    "HolidayUpdate",
    "LocalHolidayCreate",
    "PublicCancelAppointmentPayload",
    "PublicScheduleAppointmentPayload",
    "ReminderReport",
    "ReminderRequest",
    "ScheduleAppointmentPayload",
    "TimeSlotCreate",
    "TimeSlotOut",
]
