from .appointment import Appointment
from .base import Base
from .booking_ledger import BookingLedger
from .branch import AppointmentType, Branch
from .client import Client
from .enums import ACTIVE_STATUSES, TERMINAL_STATUSES, AppointmentStatus, HolidayType
from .holiday import Holiday
from .system_setting import SystemSetting
from .time_slot import TimeSlotConfig

__all__ = [
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "Appointment",
    "AppointmentStatus",
    "AppointmentType",
    "Base",
    "BookingLedger",
    "Branch",
    "Client",
    "Holiday",
    "HolidayType",
    "SystemSetting",
    "TimeSlotConfig",
]
