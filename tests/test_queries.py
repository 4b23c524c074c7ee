from __future__ import annotations

from datetime import date

import pytest

from booking_engine.core.errors import ErrorCode
from booking_engine.services.appointments import AppointmentQueries
from booking_engine.services.lifecycle import AppointmentLifecycle, AppointmentStatus

from .conftest import MONDAY, fixed_clock


@pytest.fixture
def queries(session) -> AppointmentQueries:
    return AppointmentQueries(session=session)


def test_list_by_date_is_ordered_by_time(queries, book) -> None:
    book("10:00")
    book("8:30")
    book("09:00", appointment_date=date(2025, 3, 11))

    assert [a.appointment_time for a in queries.list_by_date(MONDAY)] == ["08:30", "10:00"]


def test_list_by_branch_and_client(queries, book, seed) -> None:
    book("09:00")
    book("09:30", client_id=seed.other_client.id)
    book("09:00", branch_id=seed.other_branch.id)

    assert len(queries.list_by_branch(seed.branch.id)) == 2
    assert len(queries.list_by_client(seed.client.id)) == 2
    assert len(queries.list_by_date(MONDAY, branch_id=seed.other_branch.id)) == 1


def test_deleted_appointments_are_hidden_unless_requested(queries, book, session, dispatcher, seed) -> None:
    appointment = book().value
    AppointmentLifecycle(session=session, notifications=dispatcher, clock=fixed_clock).logical_delete(appointment.id)

    assert queries.list_by_branch(seed.branch.id) == []
    assert len(queries.list_by_branch(seed.branch.id, include_inactive=True)) == 1


def test_list_by_status(queries, book, session, dispatcher) -> None:
    kept = book("09:00").value
    cancelled = book("09:30").value
    AppointmentLifecycle(session=session, notifications=dispatcher, clock=fixed_clock).cancel(cancelled.id)

    assert [a.id for a in queries.list_by_status(AppointmentStatus.CONFIRMED)] == [kept.id]
    assert [a.id for a in queries.list_by_status(AppointmentStatus.CANCELLED)] == [cancelled.id]


def test_search_applies_every_filter(queries, book, seed) -> None:
    own = book("09:00").value
    book("09:30", client_id=seed.other_client.id)
    book("09:00", branch_id=seed.other_branch.id)
    book("10:00", appointment_date=date(2025, 3, 11))

    by_branch_and_client = queries.search(branch_id=seed.branch.id, client_id=seed.client.id)
    assert [(a.appointment_date, a.appointment_time) for a in by_branch_and_client] == [
        (MONDAY, "09:00"),
        (date(2025, 3, 11), "10:00"),
    ]
    assert [a.id for a in queries.search(branch_id=seed.branch.id, client_id=seed.client.id, day=MONDAY)] == [own.id]
    assert queries.search(client_id=seed.other_client.id, day=date(2025, 3, 11)) == []
    assert queries.search(client_id=seed.client.id, status=AppointmentStatus.CANCELLED) == []


def test_get_by_number(queries, book) -> None:
    appointment = book().value

    assert queries.get_by_number(appointment.appointment_number).value.id == appointment.id
    assert queries.get_by_number("APT-00000000-NOPE").error is ErrorCode.NOT_FOUND


def test_verify_returns_summary_for_owner(queries, book, seed) -> None:
    appointment = book().value

    result = queries.verify(appointment.appointment_number, seed.client.client_number)

    assert result.ok
    verification = result.value
    assert verification.is_valid
    assert verification.status == "CONFIRMED"
    assert verification.client.full_name == "Ana Perez"
    assert verification.branch.name == "Sede Norte"
    assert verification.appointment_type.code == "GEN"


def test_verify_reports_cancelled_appointment_as_not_valid(queries, book, seed, session, dispatcher) -> None:
    appointment = book().value
    AppointmentLifecycle(session=session, notifications=dispatcher, clock=fixed_clock).cancel(appointment.id)

    verification = queries.verify(appointment.appointment_number, seed.client.client_number).value

    assert not verification.is_valid
    assert verification.status == "CANCELLED"


def test_verify_rejects_other_client_and_blank_input(queries, book, seed) -> None:
    appointment = book().value

    assert queries.verify(appointment.appointment_number, seed.other_client.client_number).error is ErrorCode.NOT_FOUND
    assert queries.verify("", seed.client.client_number).error is ErrorCode.INVALID_INPUT
    assert queries.verify(appointment.appointment_number, " ").error is ErrorCode.INVALID_INPUT
