from __future__ import annotations

from enum import Enum, IntEnum


class AppointmentStatus(IntEnum):
    PENDING = 1
    CONFIRMED = 2
    IN_PROGRESS = 3
    COMPLETED = 4
    CANCELLED = 5

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


TERMINAL_STATUSES = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED})
ACTIVE_STATUSES = frozenset(set(AppointmentStatus) - TERMINAL_STATUSES)

_DESCRIPTIONS = {
    AppointmentStatus.PENDING: "Appointment scheduled, awaiting confirmation",
    AppointmentStatus.CONFIRMED: "Appointment confirmed, pending attendance",
    AppointmentStatus.IN_PROGRESS: "Client is being attended",
    AppointmentStatus.COMPLETED: "Appointment completed successfully",
    AppointmentStatus.CANCELLED: "Appointment cancelled",
}


class HolidayType(str, Enum):
    NATIONAL = "NATIONAL"
    LOCAL = "LOCAL"
    COMPANY = "COMPANY"
