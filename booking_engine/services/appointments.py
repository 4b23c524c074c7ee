from __future__ import annotations

from datetime import date

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from booking_engine.core.errors import InvalidInputError, NotFoundError
from booking_engine.core.result import returns_result
from booking_engine.models import Appointment, AppointmentStatus
from booking_engine.schemas.appointment import AppointmentVerification, ClientSummary, PartySummary
from booking_engine.services.directory import DirectoryService


class AppointmentQueries:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.directory = DirectoryService(session=session)

    def list_by_branch(self, branch_id: int, *, include_inactive: bool = False) -> list[Appointment]:
        return self._list(select(Appointment).where(Appointment.branch_id == branch_id), include_inactive)

    def list_by_client(self, client_id: int, *, include_inactive: bool = False) -> list[Appointment]:
        return self._list(select(Appointment).where(Appointment.client_id == client_id), include_inactive)

    def list_by_status(self, status: AppointmentStatus, *, include_inactive: bool = False) -> list[Appointment]:
        return self._list(select(Appointment).where(Appointment.status_id == status.value), include_inactive)

    def list_by_date(
        self,
        day: date,
        *,
        branch_id: int | None = None,
        include_inactive: bool = False,
    ) -> list[Appointment]:
        stmt = select(Appointment).where(Appointment.appointment_date == day)
        if branch_id is not None:
            stmt = stmt.where(Appointment.branch_id == branch_id)
        return self._list(stmt, include_inactive)

    def search(
        self,
        *,
        branch_id: int | None = None,
        client_id: int | None = None,
        status: AppointmentStatus | None = None,
        day: date | None = None,
        include_inactive: bool = False,
    ) -> list[Appointment]:
        """Appointments matching every given filter."""
        stmt = select(Appointment)
        if branch_id is not None:
            stmt = stmt.where(Appointment.branch_id == branch_id)
        if client_id is not None:
            stmt = stmt.where(Appointment.client_id == client_id)
        if status is not None:
            stmt = stmt.where(Appointment.status_id == status.value)
        if day is not None:
            stmt = stmt.where(Appointment.appointment_date == day)
        return self._list(stmt, include_inactive)

    @returns_result
    def get_by_number(self, appointment_number: str) -> Appointment:
        appointment = self._find_by_number(appointment_number)
        if appointment is None:
            raise NotFoundError("Appointment not found")
        return appointment

    @returns_result
    def verify(self, appointment_number: str, client_number: str) -> AppointmentVerification:
        """Verification view behind the appointment QR code."""
        if not appointment_number or not appointment_number.strip():
            raise InvalidInputError("Appointment number is required")
        if not client_number or not client_number.strip():
            raise InvalidInputError("Client number is required")

        appointment = self._find_by_number(appointment_number)
        if appointment is None:
            raise NotFoundError("Appointment not found")

        client = self.directory.get_client_by_id(appointment.client_id)
        if client is None or client.client_number != client_number.strip():
            raise NotFoundError("Appointment is not valid for this client")

        status = appointment.status
        is_valid = appointment.is_enabled and status is not AppointmentStatus.CANCELLED
        branch = appointment.branch
        appointment_type = appointment.appointment_type
        return AppointmentVerification(
            is_valid=is_valid,
            appointment_number=appointment.appointment_number,
            appointment_date=appointment.appointment_date,
            appointment_time=appointment.appointment_time,
            status=status.name,
            status_description=status.description,
            client=ClientSummary(client_number=client.client_number, full_name=client.full_name),
            branch=PartySummary(
                id=branch.id,
                name=branch.name,
                code=branch.code,
                address=branch.address,
                phone=branch.phone,
                city=branch.city,
            )
            if branch
            else None,
            appointment_type=PartySummary(
                id=appointment_type.id,
                name=appointment_type.name,
                code=appointment_type.code,
                description=appointment_type.description,
            )
            if appointment_type
            else None,
            created_at=appointment.created_at,
            notes=appointment.notes,
            message="Appointment verified" if is_valid else "Appointment found but it is not active",
        )

    def _find_by_number(self, appointment_number: str) -> Appointment | None:
        stmt = select(Appointment).where(Appointment.appointment_number == appointment_number.strip())
        return self.session.scalars(stmt).first()

    def _list(self, stmt: Select, include_inactive: bool) -> list[Appointment]:
        if not include_inactive:
            stmt = stmt.where(Appointment.is_active.is_(True))
        # appointment_time is stored zero-padded, so string order is time-of-day order
        stmt = stmt.order_by(Appointment.appointment_date, Appointment.appointment_time, Appointment.id)
        return list(self.session.scalars(stmt))


def get_appointment_queries(session: Session) -> AppointmentQueries:
    return AppointmentQueries(session=session)
