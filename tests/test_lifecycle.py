from __future__ import annotations

import itertools
from datetime import date, datetime, timedelta, timezone

import pytest

from booking_engine.core.config import AppConfig
from booking_engine.core.errors import ErrorCode
from booking_engine.services.availability import AvailabilityResolver
from booking_engine.services.booking import BookingTransactor
from booking_engine.services.lifecycle import AppointmentLifecycle, AppointmentStatus
from booking_engine.services.slot_catalog import SlotCatalogService

from .conftest import FIXED_NOW, MONDAY

LATER = datetime(2025, 3, 10, 9, 45, tzinfo=timezone.utc)


def _advancing_clock():
    # each reading is one minute after the previous one
    ticks = itertools.count()
    return lambda: LATER + timedelta(minutes=next(ticks))


@pytest.fixture
def lifecycle(session, dispatcher) -> AppointmentLifecycle:
    return AppointmentLifecycle(session=session, notifications=dispatcher, clock=_advancing_clock())


@pytest.fixture
def pending(session, seed, dispatcher):
    transactor = BookingTransactor(
        session=session,
        settings=AppConfig(default_booking_status="PENDING"),
        notifications=dispatcher,
        clock=lambda: FIXED_NOW,
    )
    return transactor.schedule_appointment(
        client_id=seed.client.id,
        branch_id=seed.branch.id,
        appointment_type_id=seed.appointment_type.id,
        appointment_date=MONDAY,
        appointment_time="09:00",
    ).value


def test_status_codes_are_stable() -> None:
    assert [status.value for status in AppointmentStatus] == [1, 2, 3, 4, 5]
    assert AppointmentStatus.COMPLETED.is_terminal
    assert AppointmentStatus.CANCELLED.is_terminal
    assert not AppointmentStatus.IN_PROGRESS.is_terminal


def test_confirm_pending_appointment(lifecycle, pending) -> None:
    result = lifecycle.confirm(pending.id)

    assert result.ok
    assert result.value.status is AppointmentStatus.CONFIRMED
    assert result.value.updated_at == LATER


def test_confirm_twice_is_rejected(lifecycle, pending) -> None:
    lifecycle.confirm(pending.id)

    assert lifecycle.confirm(pending.id).error is ErrorCode.INVALID_TRANSITION


def test_check_in_then_complete(lifecycle, pending) -> None:
    assert lifecycle.check_in(pending.id).value.status is AppointmentStatus.IN_PROGRESS

    result = lifecycle.complete(pending.id, "Atendido en ventanilla 2")

    assert result.ok
    appointment = result.value
    assert appointment.status is AppointmentStatus.COMPLETED
    assert appointment.completed_date == LATER + timedelta(minutes=1)
    assert appointment.completed_date == appointment.updated_at
    assert appointment.notes == "Atendido en ventanilla 2"


def test_complete_keeps_notes_when_none_given(lifecycle, book) -> None:
    appointment = book(notes="Primera vez").value

    assert lifecycle.complete(appointment.id).value.notes == "Primera vez"


def test_completed_appointment_cannot_be_cancelled(lifecycle, book) -> None:
    appointment = book().value
    lifecycle.complete(appointment.id)
    stamp = appointment.updated_at

    result = lifecycle.cancel(appointment.id, "tarde")

    assert result.error is ErrorCode.CANNOT_CANCEL_COMPLETED
    assert result.kind == "business_rule"
    assert appointment.status is AppointmentStatus.COMPLETED
    assert appointment.updated_at == stamp
    assert appointment.cancellation_reason is None


def test_cancelled_appointment_cannot_be_completed(lifecycle, book) -> None:
    appointment = book().value
    lifecycle.cancel(appointment.id, "Viaje")
    stamp = appointment.updated_at

    assert lifecycle.complete(appointment.id).error is ErrorCode.CANNOT_COMPLETE_CANCELLED
    assert lifecycle.cancel(appointment.id).error is ErrorCode.ALREADY_CANCELLED
    assert lifecycle.confirm(appointment.id).error is ErrorCode.ALREADY_CANCELLED
    assert appointment.cancellation_reason == "Viaje"
    assert appointment.updated_at == stamp == LATER


def test_complete_twice_is_rejected(lifecycle, book) -> None:
    appointment = book().value
    lifecycle.complete(appointment.id, "Primera")
    stamp = appointment.updated_at

    assert lifecycle.complete(appointment.id, "Segunda").error is ErrorCode.ALREADY_COMPLETED
    assert lifecycle.check_in(appointment.id).error is ErrorCode.ALREADY_COMPLETED
    assert appointment.updated_at == stamp == LATER
    assert appointment.completed_date == LATER
    assert appointment.notes == "Primera"


def test_cancel_notifies_and_reports_undelivered_notice(lifecycle, book, notifier) -> None:
    appointment = book().value
    notifier.fail = True

    result = lifecycle.cancel(appointment.id, "Enfermedad")

    assert result.ok
    assert result.warnings == ["Cancellation notification could not be delivered"]
    assert ("cancellation", appointment.id) in notifier.sent


def test_unknown_appointment(lifecycle, seed) -> None:
    assert lifecycle.confirm(404).error is ErrorCode.NOT_FOUND
    assert lifecycle.cancel(404).kind == "not_found"


def test_cancel_by_client_checks_ownership(lifecycle, book, seed) -> None:
    appointment = book().value

    stranger = lifecycle.cancel_by_client(appointment.id, client_number=seed.other_client.client_number, reason="x")
    assert stranger.error is ErrorCode.NOT_FOUND

    result = lifecycle.cancel_by_client(appointment.id, client_number=seed.client.client_number, reason=" Viaje ")
    assert result.ok
    assert result.value.status is AppointmentStatus.CANCELLED
    assert result.value.cancellation_reason == "Viaje"


def test_cancel_by_client_requires_reason_and_number(lifecycle, book, seed) -> None:
    appointment = book().value

    no_reason = lifecycle.cancel_by_client(appointment.id, client_number=seed.client.client_number, reason="  ")
    no_number = lifecycle.cancel_by_client(appointment.id, client_number="", reason="Viaje")

    assert no_reason.error is ErrorCode.INVALID_INPUT
    assert no_number.error is ErrorCode.INVALID_INPUT


def test_cancel_by_client_with_unknown_number(lifecycle, book) -> None:
    appointment = book().value

    result = lifecycle.cancel_by_client(appointment.id, client_number="0000", reason="Viaje")

    assert result.error is ErrorCode.CLIENT_NOT_FOUND


def test_logical_delete_hides_and_frees_the_slot(lifecycle, book, session, seed) -> None:
    SlotCatalogService(session=session).add_slot(branch_id=seed.branch.id, time="09:00")
    appointment = book().value

    result = lifecycle.logical_delete(appointment.id)

    assert result.ok
    assert not appointment.is_active and not appointment.is_enabled
    resolver = AvailabilityResolver(session=session, clock=lambda: FIXED_NOW)
    assert resolver.get_available_times(seed.branch.id, MONDAY).value.times == ["09:00"]
    assert lifecycle.confirm(appointment.id).error is ErrorCode.NOT_FOUND
    assert lifecycle.logical_delete(appointment.id).error is ErrorCode.ALREADY_DELETED


def test_send_reminders_targets_non_terminal_appointments(lifecycle, book, notifier) -> None:
    first = book("09:00").value
    second = book("09:30").value
    cancelled = book("10:00").value
    lifecycle.cancel(cancelled.id)
    book("09:00", appointment_date=date(2025, 3, 11))
    notifier.sent.clear()

    result = lifecycle.send_reminders(MONDAY)

    assert result.ok
    assert (result.value.total, result.value.sent, result.value.failed) == (2, 2, 0)
    assert notifier.sent == [("reminder", first.id), ("reminder", second.id)]


def test_send_reminders_counts_failures(lifecycle, book, notifier) -> None:
    book("09:00")
    notifier.fail = True

    report = lifecycle.send_reminders(MONDAY).value

    assert (report.total, report.sent, report.failed) == (1, 0, 1)
