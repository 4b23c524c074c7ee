from __future__ import annotations

from datetime import date

from loguru import logger
from nanoid import generate
from sqlalchemy import func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from booking_engine.core.config import AppConfig, get_settings
from booking_engine.core.errors import BusinessRuleError, ErrorCode, InternalError
from booking_engine.core.result import Result, returns_result
from booking_engine.models import Appointment, AppointmentStatus, BookingLedger
from booking_engine.services.availability import check_calendar, occupied_times
from booking_engine.services.directory import DirectoryService
from booking_engine.services.holidays import HolidayCalendar
from booking_engine.services.notifications import NotificationDispatcher, get_notification_service
from booking_engine.services.slot_catalog import SlotCatalogService
from booking_engine.services.system_settings import SystemSettingService
from booking_engine.utils.time import Clock, normalize_slot_time, utcnow

NUMBER_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
NUMBER_SUFFIX_SIZE = 12
_RETRYABLE_PGCODES = {"40001", "40P01"}


def _is_lock_contention(exc: BaseException) -> bool:
    if not isinstance(exc, DBAPIError) or isinstance(exc, IntegrityError):
        return False
    if getattr(exc.orig, "pgcode", None) in _RETRYABLE_PGCODES:
        return True
    return "database is locked" in str(exc.orig).lower()


class BookingTransactor:
    """Creates appointments. At most one non-terminal appointment may hold a (branch, date, time) slot.

    Every booking touches the branch/day ledger row first, so capacity and conflict checks
    run serialized for that day; the unique constraint on occupied slots backs that up at
    commit time.
    """

    def __init__(
        self,
        session: Session,
        *,
        settings: AppConfig | None = None,
        notifications: NotificationDispatcher | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.session = session
        self.settings = settings or get_settings()
        self.clock = clock
        self.notifications = notifications or NotificationDispatcher(get_notification_service())
        self.directory = DirectoryService(session=session)
        self.calendar = HolidayCalendar(session=session, clock=clock)
        self.catalog = SlotCatalogService(session=session)
        self.system_settings = SystemSettingService(session=session, settings=self.settings)
        # AppConfig only admits PENDING or CONFIRMED
        self.initial_status = AppointmentStatus[self.settings.default_booking_status]

    @returns_result
    def schedule_appointment(
        self,
        *,
        client_id: int,
        branch_id: int,
        appointment_type_id: int,
        appointment_date: date,
        appointment_time: str,
        notes: str | None = None,
    ) -> Result[Appointment]:
        slot_time = normalize_slot_time(appointment_time)
        self.directory.require_client(client_id)
        return self._schedule(
            client_id=client_id,
            branch_id=branch_id,
            appointment_type_id=appointment_type_id,
            day=appointment_date,
            slot_time=slot_time,
            notes=notes,
        )

    @returns_result
    def schedule_public_appointment(
        self,
        *,
        client_number: str,
        branch_id: int,
        appointment_type_id: int,
        appointment_date: date,
        appointment_time: str,
        notes: str | None = None,
    ) -> Result[Appointment]:
        slot_time = normalize_slot_time(appointment_time)
        client = self.directory.require_client_by_number(client_number)
        return self._schedule(
            client_id=client.id,
            branch_id=branch_id,
            appointment_type_id=appointment_type_id,
            day=appointment_date,
            slot_time=slot_time,
            notes=notes,
        )

    def _schedule(
        self,
        *,
        client_id: int,
        branch_id: int,
        appointment_type_id: int,
        day: date,
        slot_time: str,
        notes: str | None,
    ) -> Result[Appointment]:
        self.directory.require_branch(branch_id)
        self.directory.require_appointment_type(appointment_type_id)

        # The resolver's snapshot is never trusted at write time
        block = check_calendar(self.calendar, day, branch_id, clock=self.clock)
        if block is not None:
            raise BusinessRuleError(block.message, code=block.code)

        if self.settings.require_configured_slot:
            configured = {slot.time for slot in self.catalog.list_slots(branch_id, appointment_type_id)}
            if slot_time not in configured:
                raise BusinessRuleError(
                    f"{slot_time} is not a bookable time for this branch", code=ErrorCode.SLOT_UNAVAILABLE
                )

        self._ensure_ledger(branch_id, day)
        appointment = self._book(
            client_id=client_id,
            branch_id=branch_id,
            appointment_type_id=appointment_type_id,
            day=day,
            slot_time=slot_time,
            notes=notes,
        )
        logger.info(
            "Scheduled appointment {number} for branch={branch_id} on {day} at {time}",
            number=appointment.appointment_number,
            branch_id=branch_id,
            day=day.isoformat(),
            time=slot_time,
        )

        result: Result[Appointment] = Result.success(appointment)
        if not self.notifications.appointment_confirmed(appointment.id):
            result.warn("Confirmation notification could not be delivered")
        return result

    @retry(
        retry=retry_if_exception(_is_lock_contention),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        reraise=True,
    )
    def _book(
        self,
        *,
        client_id: int,
        branch_id: int,
        appointment_type_id: int,
        day: date,
        slot_time: str,
        notes: str | None,
    ) -> Appointment:
        try:
            self._lock_day(branch_id, day)

            capacity = self.system_settings.max_appointments_per_day(branch_id)
            booked = self._count_booked(branch_id, day)
            if booked >= capacity:
                raise BusinessRuleError(
                    f"No more appointments can be scheduled for this day. Maximum allowed: {capacity} per day.",
                    code=ErrorCode.DAILY_CAPACITY_EXCEEDED,
                )

            if slot_time in occupied_times(self.session, branch_id, day):
                raise BusinessRuleError("The selected time slot is not available", code=ErrorCode.SLOT_UNAVAILABLE)

            now = self.clock()
            appointment = Appointment(
                appointment_number=self._generate_number(),
                client_id=client_id,
                branch_id=branch_id,
                appointment_type_id=appointment_type_id,
                appointment_date=day,
                appointment_time=slot_time,
                status_id=self.initial_status.value,
                notes=notes,
                occupies_slot=True,
                is_active=True,
                is_enabled=True,
                created_at=now,
            )
            self.session.add(appointment)
            self.session.flush()
            self.session.commit()
            return appointment
        except IntegrityError as exc:
            self.session.rollback()
            if slot_time in occupied_times(self.session, branch_id, day):
                raise BusinessRuleError(
                    "The selected time slot is not available", code=ErrorCode.SLOT_UNAVAILABLE
                ) from exc
            logger.exception("Appointment insert violated a constraint for branch={branch_id}", branch_id=branch_id)
            raise InternalError() from exc
        except Exception:
            self.session.rollback()
            raise

    def _ensure_ledger(self, branch_id: int, day: date) -> None:
        stmt = select(BookingLedger.id).where(BookingLedger.branch_id == branch_id, BookingLedger.day == day)
        if self.session.scalars(stmt).first() is not None:
            return
        self.session.add(BookingLedger(branch_id=branch_id, day=day, version=0))
        try:
            self.session.commit()
        except IntegrityError:
            # Another request created it first
            self.session.rollback()

    def _lock_day(self, branch_id: int, day: date) -> None:
        stmt = (
            update(BookingLedger)
            .where(BookingLedger.branch_id == branch_id, BookingLedger.day == day)
            .values(version=BookingLedger.version + 1)
            .execution_options(synchronize_session=False)
        )
        if self.session.execute(stmt).rowcount == 0:
            logger.warning("Booking ledger missing for branch={branch_id} on {day}", branch_id=branch_id, day=day)

    def _count_booked(self, branch_id: int, day: date) -> int:
        stmt = select(func.count(Appointment.id)).where(
            Appointment.branch_id == branch_id,
            Appointment.appointment_date == day,
            Appointment.is_active.is_(True),
            Appointment.status_id != AppointmentStatus.CANCELLED.value,
        )
        return self.session.scalar(stmt) or 0

    def _generate_number(self) -> str:
        stamp = self.clock().strftime("%Y%m%d")
        suffix = generate(NUMBER_ALPHABET, NUMBER_SUFFIX_SIZE)
        return f"{self.settings.appointment_number_prefix}-{stamp}-{suffix}"


def get_booking_transactor(
    session: Session,
    *,
    notifications: NotificationDispatcher | None = None,
    clock: Clock = utcnow,
) -> BookingTransactor:
    return BookingTransactor(session=session, notifications=notifications, clock=clock)
