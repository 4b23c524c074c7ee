from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from booking_engine.core.errors import ErrorCode
from booking_engine.core.result import returns_result
from booking_engine.models import ACTIVE_STATUSES, Appointment
from booking_engine.schemas.appointment import AvailabilityOut
from booking_engine.services.holidays import HolidayCalendar
from booking_engine.services.slot_catalog import SlotCatalogService
from booking_engine.utils.time import Clock, is_sunday, sort_slot_times, today, utcnow


@dataclass(frozen=True)
class CalendarBlock:
    code: ErrorCode
    message: str
    holiday_name: str | None = None


def check_calendar(calendar: HolidayCalendar, day: date, branch_id: int, *, clock: Clock = utcnow) -> CalendarBlock | None:
    """Sunday, holiday and past-date rules shared by the read and write paths."""
    if is_sunday(day):
        return CalendarBlock(ErrorCode.SUNDAY_NOT_AVAILABLE, "Appointments cannot be scheduled on Sundays")

    holiday = calendar.get_holiday_on(day, branch_id)
    if holiday is not None:
        return CalendarBlock(
            ErrorCode.HOLIDAY_NOT_AVAILABLE,
            f"Appointments cannot be scheduled on holidays. {holiday.name}",
            holiday_name=holiday.name,
        )

    if day < today(clock):
        return CalendarBlock(ErrorCode.PAST_DATE_NOT_AVAILABLE, "Appointments cannot be scheduled in the past")
    return None


def occupied_times(session: Session, branch_id: int, day: date) -> set[str]:
    stmt = select(Appointment.appointment_time).where(
        Appointment.branch_id == branch_id,
        Appointment.appointment_date == day,
        Appointment.is_enabled.is_(True),
        Appointment.status_id.in_([status.value for status in ACTIVE_STATUSES]),
    )
    return {value for value in session.scalars(stmt) if value}


class AvailabilityResolver:
    """Read-only snapshot of bookable times; the booking transaction re-validates everything."""

    def __init__(self, session: Session, *, clock: Clock = utcnow) -> None:
        self.session = session
        self.clock = clock
        self.calendar = HolidayCalendar(session=session, clock=clock)
        self.catalog = SlotCatalogService(session=session)

    @returns_result
    def get_available_times(
        self,
        branch_id: int,
        day: date,
        appointment_type_id: int | None = None,
    ) -> AvailabilityOut:
        availability = AvailabilityOut(branch_id=branch_id, target_date=day, appointment_type_id=appointment_type_id)

        block = check_calendar(self.calendar, day, branch_id, clock=self.clock)
        if block is not None:
            availability.reason = block.code.value
            availability.holiday_name = block.holiday_name
            return availability

        configured = [slot.time for slot in self.catalog.list_slots(branch_id, appointment_type_id)]
        if not configured:
            logger.debug("No configured slots for branch={branch_id}", branch_id=branch_id)
            return availability

        taken = occupied_times(self.session, branch_id, day)
        availability.times = sort_slot_times(time for time in configured if time not in taken)
        return availability


def get_availability_resolver(session: Session, *, clock: Clock = utcnow) -> AvailabilityResolver:
    return AvailabilityResolver(session=session, clock=clock)
