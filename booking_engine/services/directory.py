from __future__ import annotations

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from booking_engine.core.errors import ErrorCode, NotFoundError
from booking_engine.models import AppointmentType, Branch, Client


class DirectoryService:
    """Read access to the clients, branches and appointment types owned by other modules."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_client_by_id(self, client_id: int) -> Client | None:
        return self.session.get(Client, client_id)

    def get_client_by_number(self, client_number: str) -> Client | None:
        if not client_number:
            return None
        logger.debug("Finding client by number={client_number}", client_number=client_number)
        stmt = select(Client).where(Client.client_number == client_number.strip())
        return self.session.scalars(stmt).first()

    def require_client(self, client_id: int) -> Client:
        client = self.get_client_by_id(client_id)
        if not client or not client.is_active:
            raise NotFoundError(f"Client with ID {client_id} not found", code=ErrorCode.CLIENT_NOT_FOUND)
        return client

    def require_client_by_number(self, client_number: str) -> Client:
        client = self.get_client_by_number(client_number)
        if not client or not client.is_active:
            raise NotFoundError("Client not found", code=ErrorCode.CLIENT_NOT_FOUND)
        return client

    def require_branch(self, branch_id: int) -> Branch:
        branch = self.session.get(Branch, branch_id)
        if not branch or not branch.is_active:
            raise NotFoundError(f"Branch with ID {branch_id} not found", code=ErrorCode.BRANCH_NOT_FOUND)
        return branch

    def require_appointment_type(self, appointment_type_id: int) -> AppointmentType:
        appointment_type = self.session.get(AppointmentType, appointment_type_id)
        if not appointment_type or not appointment_type.is_active:
            raise NotFoundError(
                f"Appointment type with ID {appointment_type_id} not found",
                code=ErrorCode.APPOINTMENT_TYPE_NOT_FOUND,
            )
        return appointment_type


def get_directory_service(session: Session) -> DirectoryService:
    return DirectoryService(session=session)
