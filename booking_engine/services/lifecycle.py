from __future__ import annotations

from datetime import date

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from booking_engine.core.errors import BusinessRuleError, ErrorCode, InvalidInputError, NotFoundError
from booking_engine.core.result import Result, returns_result
from booking_engine.models import ACTIVE_STATUSES, TERMINAL_STATUSES, Appointment, AppointmentStatus
from booking_engine.schemas.appointment import ReminderReport
from booking_engine.services.directory import DirectoryService
from booking_engine.services.notifications import NotificationDispatcher, get_notification_service
from booking_engine.utils.time import Clock, utcnow

__all__ = [
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "AppointmentLifecycle",
    "AppointmentStatus",
    "get_appointment_lifecycle",
]

# Which states each transition may start from
_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.PENDING}),
    AppointmentStatus.IN_PROGRESS: frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED}),
    AppointmentStatus.COMPLETED: ACTIVE_STATUSES,
    AppointmentStatus.CANCELLED: ACTIVE_STATUSES,
}


class AppointmentLifecycle:
    """The only writer of ``Appointment.status_id``.

    Each transition commits before any notification goes out; a failed notification is
    reported as a warning on the Result and never undoes the transition.
    """

    def __init__(
        self,
        session: Session,
        *,
        notifications: NotificationDispatcher | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.session = session
        self.clock = clock
        self.notifications = notifications or NotificationDispatcher(get_notification_service())
        self.directory = DirectoryService(session=session)

    @returns_result
    def confirm(self, appointment_id: int) -> Appointment:
        appointment = self._require(appointment_id)
        self._transition(appointment, AppointmentStatus.CONFIRMED)
        self._commit()
        return appointment

    @returns_result
    def check_in(self, appointment_id: int) -> Appointment:
        appointment = self._require(appointment_id)
        self._transition(appointment, AppointmentStatus.IN_PROGRESS)
        self._commit()
        return appointment

    @returns_result
    def complete(self, appointment_id: int, notes: str | None = None) -> Appointment:
        appointment = self._require(appointment_id)
        self._transition(appointment, AppointmentStatus.COMPLETED)
        appointment.completed_date = appointment.updated_at
        if notes:
            appointment.notes = notes
        self._commit()
        logger.info("Completed appointment {number}", number=appointment.appointment_number)
        return appointment

    @returns_result
    def cancel(self, appointment_id: int, reason: str | None = None) -> Result[Appointment]:
        appointment = self._require(appointment_id)
        return self._cancel(appointment, reason)

    @returns_result
    def cancel_by_client(self, appointment_id: int, *, client_number: str, reason: str) -> Result[Appointment]:
        if not client_number or not client_number.strip():
            raise InvalidInputError("Client number is required")
        if not reason or not reason.strip():
            raise InvalidInputError("Cancellation reason is required")

        client = self.directory.require_client_by_number(client_number)
        appointment = self.session.get(Appointment, appointment_id)
        if appointment is None or appointment.client_id != client.id or not appointment.is_active:
            raise NotFoundError("Appointment not found")
        return self._cancel(appointment, reason.strip())

    @returns_result
    def logical_delete(self, appointment_id: int) -> Appointment:
        appointment = self._require(appointment_id, include_inactive=True)
        if not appointment.is_active and not appointment.is_enabled:
            raise BusinessRuleError("Appointment is already deleted", code=ErrorCode.ALREADY_DELETED)
        appointment.is_active = False
        appointment.is_enabled = False
        appointment.occupies_slot = None
        appointment.updated_at = self.clock()
        self._commit()
        logger.info("Logically deleted appointment {number}", number=appointment.appointment_number)
        return appointment

    @returns_result
    def send_reminders(self, day: date) -> ReminderReport:
        stmt = (
            select(Appointment.id)
            .where(
                Appointment.appointment_date == day,
                Appointment.is_active.is_(True),
                Appointment.is_enabled.is_(True),
                Appointment.status_id.in_([status.value for status in ACTIVE_STATUSES]),
            )
            .order_by(Appointment.id)
        )
        appointment_ids = list(self.session.scalars(stmt))
        sent = sum(1 for appointment_id in appointment_ids if self.notifications.appointment_reminder(appointment_id))
        logger.info(
            "Reminders for {day}: {sent}/{total} delivered",
            day=day.isoformat(),
            sent=sent,
            total=len(appointment_ids),
        )
        return ReminderReport(
            target_date=day,
            total=len(appointment_ids),
            sent=sent,
            failed=len(appointment_ids) - sent,
        )

    def _cancel(self, appointment: Appointment, reason: str | None) -> Result[Appointment]:
        self._transition(appointment, AppointmentStatus.CANCELLED)
        appointment.cancellation_reason = reason
        self._commit()
        logger.info("Cancelled appointment {number}", number=appointment.appointment_number)

        result: Result[Appointment] = Result.success(appointment)
        if not self.notifications.appointment_cancelled(appointment.id, reason):
            result.warn("Cancellation notification could not be delivered")
        return result

    def _transition(self, appointment: Appointment, target: AppointmentStatus) -> None:
        current = appointment.status
        if current is target:
            message, code = _ALREADY_IN[target]
            raise BusinessRuleError(message, code=code)
        if current not in _TRANSITIONS[target]:
            message, code = _blocked(current, target)
            raise BusinessRuleError(message, code=code)

        appointment.status_id = target.value
        appointment.occupies_slot = True if target in ACTIVE_STATUSES and appointment.is_enabled else None
        appointment.updated_at = self.clock()

    def _require(self, appointment_id: int, *, include_inactive: bool = False) -> Appointment:
        appointment = self.session.get(Appointment, appointment_id)
        if appointment is None or (not include_inactive and not appointment.is_active):
            raise NotFoundError("Appointment not found")
        return appointment

    def _commit(self) -> None:
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise


_ALREADY_IN: dict[AppointmentStatus, tuple[str, ErrorCode]] = {
    AppointmentStatus.CONFIRMED: ("Appointment is already confirmed", ErrorCode.INVALID_TRANSITION),
    AppointmentStatus.IN_PROGRESS: ("Appointment is already in progress", ErrorCode.INVALID_TRANSITION),
    AppointmentStatus.COMPLETED: ("Appointment is already completed", ErrorCode.ALREADY_COMPLETED),
    AppointmentStatus.CANCELLED: ("Appointment is already cancelled", ErrorCode.ALREADY_CANCELLED),
}


def _blocked(current: AppointmentStatus, target: AppointmentStatus) -> tuple[str, ErrorCode]:
    if target is AppointmentStatus.COMPLETED and current is AppointmentStatus.CANCELLED:
        return "Cannot complete a cancelled appointment", ErrorCode.CANNOT_COMPLETE_CANCELLED
    if target is AppointmentStatus.CANCELLED and current is AppointmentStatus.COMPLETED:
        return "Cannot cancel a completed appointment", ErrorCode.CANNOT_CANCEL_COMPLETED
    if current is AppointmentStatus.CANCELLED:
        return "Appointment is already cancelled", ErrorCode.ALREADY_CANCELLED
    if current is AppointmentStatus.COMPLETED:
        return "Appointment is already completed", ErrorCode.ALREADY_COMPLETED
    return f"Cannot move appointment from {current.name} to {target.name}", ErrorCode.INVALID_TRANSITION


def get_appointment_lifecycle(
    session: Session,
    *,
    notifications: NotificationDispatcher | None = None,
    clock: Clock = utcnow,
) -> AppointmentLifecycle:
    return AppointmentLifecycle(session=session, notifications=notifications, clock=clock)
