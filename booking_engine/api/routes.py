from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger
from sqlalchemy.orm import Session

from booking_engine.core.result import Result
from booking_engine.models import AppointmentStatus
from booking_engine.schemas import (
    AppointmentEnvelope,
    AppointmentOut,
    AppointmentVerification,
    AvailabilityOut,
    BulkSlotCreate,
    BulkSlotReport,
    CancelAppointmentPayload,
    CompleteAppointmentPayload,
    HolidayCheckOut,
    HolidayCreate,
    HolidayOut,
    HolidayUpdate,
    LocalHolidayCreate,
    PublicCancelAppointmentPayload,
    PublicScheduleAppointmentPayload,
    ReminderReport,
    ReminderRequest,
    ScheduleAppointmentPayload,
    TimeSlotCreate,
    TimeSlotOut,
)
from booking_engine.services.appointments import AppointmentQueries
from booking_engine.services.availability import AvailabilityResolver
from booking_engine.services.booking import BookingTransactor
from booking_engine.services.db import get_db
from booking_engine.services.holidays import HolidayCalendar
from booking_engine.services.lifecycle import AppointmentLifecycle
from booking_engine.services.notifications import NotificationDispatcher, get_notification_service
from booking_engine.services.slot_catalog import SlotCatalogService
from booking_engine.services.system_settings import SystemSettingService
from booking_engine.utils.time import Clock, utcnow

router = APIRouter()

_STATUS_BY_KIND = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "business_rule": status.HTTP_409_CONFLICT,
    "internal": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_clock() -> Clock:
    return utcnow


def get_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(get_notification_service())


def _unwrap(result: Result[Any]) -> Any:
    if result.ok:
        return result.value
    code = _STATUS_BY_KIND.get(result.kind or "", status.HTTP_400_BAD_REQUEST)
    logger.warning("Request rejected with {code}: {message}", code=result.error, message=result.message)
    raise HTTPException(
        status_code=code,
        detail={"code": result.error.value if result.error else None, "message": result.message},
    )


def _envelope(result: Result[Any]) -> AppointmentEnvelope:
    appointment = _unwrap(result)
    return AppointmentEnvelope(
        appointment=AppointmentOut.model_validate(appointment),
        warnings=result.warnings,
    )


def _lifecycle(session: Session, clock: Clock, dispatcher: NotificationDispatcher) -> AppointmentLifecycle:
    return AppointmentLifecycle(session=session, notifications=dispatcher, clock=clock)


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


# Availability


@router.get("/branches/{branch_id}/available-times", response_model=AvailabilityOut)
def available_times(
    branch_id: int,
    target_date: date = Query(alias="date"),
    appointment_type_id: int | None = Query(default=None),
    session: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    resolver = AvailabilityResolver(session=session, clock=clock)
    return _unwrap(resolver.get_available_times(branch_id, target_date, appointment_type_id))


# Slot catalog


@router.post("/slots", response_model=TimeSlotOut, status_code=status.HTTP_201_CREATED)
def add_slot(payload: TimeSlotCreate, session: Session = Depends(get_db)):
    catalog = SlotCatalogService(session=session)
    slot = _unwrap(
        catalog.add_slot(
            branch_id=payload.branch_id,
            time=payload.time,
            appointment_type_id=payload.appointment_type_id,
        )
    )
    return TimeSlotOut.model_validate(slot)


@router.post("/slots/bulk", response_model=BulkSlotReport)
def bulk_add_slots(payload: BulkSlotCreate, session: Session = Depends(get_db)):
    catalog = SlotCatalogService(session=session)
    return _unwrap(
        catalog.bulk_add_slots(
            branch_id=payload.branch_id,
            appointment_type_id=payload.appointment_type_id,
            times=payload.times,
        )
    )


@router.get("/branches/{branch_id}/slots", response_model=list[TimeSlotOut])
def list_slots(
    branch_id: int,
    appointment_type_id: int | None = Query(default=None),
    session: Session = Depends(get_db),
):
    catalog = SlotCatalogService(session=session)
    return [TimeSlotOut.model_validate(slot) for slot in catalog.list_slots(branch_id, appointment_type_id)]


@router.post("/slots/{slot_id}/deactivate", response_model=TimeSlotOut)
def deactivate_slot(slot_id: int, session: Session = Depends(get_db)):
    catalog = SlotCatalogService(session=session)
    return TimeSlotOut.model_validate(_unwrap(catalog.deactivate_slot(slot_id)))


@router.post("/slots/{slot_id}/activate", response_model=TimeSlotOut)
def activate_slot(slot_id: int, session: Session = Depends(get_db)):
    catalog = SlotCatalogService(session=session)
    return TimeSlotOut.model_validate(_unwrap(catalog.activate_slot(slot_id)))


# Holidays


@router.post("/holidays/national", response_model=HolidayOut, status_code=status.HTTP_201_CREATED)
def create_national_holiday(
    payload: HolidayCreate,
    session: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    calendar = HolidayCalendar(session=session, clock=clock)
    holiday = _unwrap(calendar.create_national_holiday(holiday_date=payload.holiday_date, name=payload.name))
    return HolidayOut.model_validate(holiday)


@router.post("/holidays/company", response_model=HolidayOut, status_code=status.HTTP_201_CREATED)
def create_company_holiday(
    payload: HolidayCreate,
    session: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    calendar = HolidayCalendar(session=session, clock=clock)
    holiday = _unwrap(calendar.create_company_holiday(holiday_date=payload.holiday_date, name=payload.name))
    return HolidayOut.model_validate(holiday)


@router.post("/holidays/local", response_model=HolidayOut, status_code=status.HTTP_201_CREATED)
def create_local_holiday(
    payload: LocalHolidayCreate,
    session: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    calendar = HolidayCalendar(session=session, clock=clock)
    holiday = _unwrap(
        calendar.create_local_holiday(
            holiday_date=payload.holiday_date,
            name=payload.name,
            branch_id=payload.branch_id,
        )
    )
    return HolidayOut.model_validate(holiday)


@router.get("/holidays", response_model=list[HolidayOut])
def list_holidays(
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    year: int | None = Query(default=None),
    branch_id: int | None = Query(default=None),
    session: Session = Depends(get_db),
):
    calendar = HolidayCalendar(session=session)
    if start is not None and end is not None:
        holidays = _unwrap(calendar.get_holidays_in_range(start, end, branch_id))
    elif year is not None:
        holidays = calendar.get_holidays_by_year(year, branch_id)
    else:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Provide start and end, or year")
    return [HolidayOut.model_validate(holiday) for holiday in holidays]


@router.get("/holidays/check", response_model=HolidayCheckOut)
def check_holiday(
    target_date: date = Query(alias="date"),
    branch_id: int = Query(),
    session: Session = Depends(get_db),
):
    calendar = HolidayCalendar(session=session)
    holiday = calendar.get_holiday_on(target_date, branch_id)
    return HolidayCheckOut(
        target_date=target_date,
        branch_id=branch_id,
        is_holiday=holiday is not None,
        name=holiday.name if holiday else None,
    )


@router.patch("/holidays/{holiday_id}", response_model=HolidayOut)
def update_holiday(
    holiday_id: int,
    payload: HolidayUpdate,
    session: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    calendar = HolidayCalendar(session=session, clock=clock)
    holiday = _unwrap(calendar.update_holiday(holiday_id, name=payload.name, holiday_date=payload.holiday_date))
    return HolidayOut.model_validate(holiday)


@router.post("/holidays/{holiday_id}/deactivate", response_model=HolidayOut)
def deactivate_holiday(
    holiday_id: int,
    session: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    calendar = HolidayCalendar(session=session, clock=clock)
    return HolidayOut.model_validate(_unwrap(calendar.deactivate_holiday(holiday_id)))


# Booking


@router.post("/appointments", response_model=AppointmentEnvelope, status_code=status.HTTP_201_CREATED)
def schedule_appointment(
    payload: ScheduleAppointmentPayload,
    session: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    transactor = BookingTransactor(session=session, notifications=dispatcher, clock=clock)
    return _envelope(
        transactor.schedule_appointment(
            client_id=payload.client_id,
            branch_id=payload.branch_id,
            appointment_type_id=payload.appointment_type_id,
            appointment_date=payload.appointment_date,
            appointment_time=payload.appointment_time,
            notes=payload.notes,
        )
    )


@router.post("/public/appointments", response_model=AppointmentEnvelope, status_code=status.HTTP_201_CREATED)
def schedule_public_appointment(
    payload: PublicScheduleAppointmentPayload,
    session: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    transactor = BookingTransactor(session=session, notifications=dispatcher, clock=clock)
    return _envelope(
        transactor.schedule_public_appointment(
            client_number=payload.client_number,
            branch_id=payload.branch_id,
            appointment_type_id=payload.appointment_type_id,
            appointment_date=payload.appointment_date,
            appointment_time=payload.appointment_time,
            notes=payload.notes,
        )
    )


# Lifecycle


@router.post("/appointments/{appointment_id}/confirm", response_model=AppointmentEnvelope)
def confirm_appointment(
    appointment_id: int,
    session: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    return _envelope(_lifecycle(session, clock, dispatcher).confirm(appointment_id))


@router.post("/appointments/{appointment_id}/check-in", response_model=AppointmentEnvelope)
def check_in_appointment(
    appointment_id: int,
    session: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    return _envelope(_lifecycle(session, clock, dispatcher).check_in(appointment_id))


@router.post("/appointments/{appointment_id}/complete", response_model=AppointmentEnvelope)
def complete_appointment(
    appointment_id: int,
    payload: CompleteAppointmentPayload | None = None,
    session: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    notes = payload.notes if payload else None
    return _envelope(_lifecycle(session, clock, dispatcher).complete(appointment_id, notes))


@router.post("/appointments/{appointment_id}/cancel", response_model=AppointmentEnvelope)
def cancel_appointment(
    appointment_id: int,
    payload: CancelAppointmentPayload | None = None,
    session: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    reason = payload.reason if payload else None
    return _envelope(_lifecycle(session, clock, dispatcher).cancel(appointment_id, reason))


@router.post("/public/appointments/{appointment_id}/cancel", response_model=AppointmentEnvelope)
def cancel_public_appointment(
    appointment_id: int,
    payload: PublicCancelAppointmentPayload,
    session: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    lifecycle = _lifecycle(session, clock, dispatcher)
    return _envelope(
        lifecycle.cancel_by_client(appointment_id, client_number=payload.client_number, reason=payload.reason)
    )


@router.delete("/appointments/{appointment_id}", response_model=AppointmentEnvelope)
def delete_appointment(
    appointment_id: int,
    session: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    return _envelope(_lifecycle(session, clock, dispatcher).logical_delete(appointment_id))


@router.post("/appointments/reminders", response_model=ReminderReport)
def send_reminders(
    payload: ReminderRequest,
    session: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    return _unwrap(_lifecycle(session, clock, dispatcher).send_reminders(payload.target_date))


# Queries


@router.get("/appointments", response_model=list[AppointmentOut])
def list_appointments(
    branch_id: int | None = Query(default=None),
    client_id: int | None = Query(default=None),
    status_name: str | None = Query(default=None, alias="status"),
    target_date: date | None = Query(default=None, alias="date"),
    include_inactive: bool = Query(default=False),
    session: Session = Depends(get_db),
):
    if all(value is None for value in (branch_id, client_id, status_name, target_date)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Filter by at least one of date, branch_id, client_id or status",
        )

    appointment_status = None
    if status_name is not None:
        try:
            appointment_status = AppointmentStatus[status_name.strip().upper()]
        except KeyError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown status {status_name}") from exc

    queries = AppointmentQueries(session=session)
    appointments = queries.search(
        branch_id=branch_id,
        client_id=client_id,
        status=appointment_status,
        day=target_date,
        include_inactive=include_inactive,
    )
    return [AppointmentOut.model_validate(appointment) for appointment in appointments]


@router.get("/appointments/by-number/{appointment_number}", response_model=AppointmentOut)
def get_appointment_by_number(appointment_number: str, session: Session = Depends(get_db)):
    queries = AppointmentQueries(session=session)
    return AppointmentOut.model_validate(_unwrap(queries.get_by_number(appointment_number)))


@router.get("/public/appointments/verify", response_model=AppointmentVerification)
def verify_appointment(
    appointment_number: str = Query(alias="number"),
    client_number: str = Query(),
    session: Session = Depends(get_db),
):
    queries = AppointmentQueries(session=session)
    return _unwrap(queries.verify(appointment_number, client_number))


# Settings


@router.put("/settings/{key}")
def put_setting(key: str, value: str = Query(), session: Session = Depends(get_db)) -> dict[str, str]:
    service = SystemSettingService(session=session)
    setting = service.set_value(key, value)
    return {"key": setting.key, "value": setting.value}
