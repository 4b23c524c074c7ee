from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from booking_engine.core.config import AppConfig
from booking_engine.models import AppointmentType, Branch, Client
from booking_engine.services.booking import BookingTransactor
from booking_engine.services.db import build_engine, build_session_factory, init_db
from booking_engine.services.notifications import NotificationDispatcher

# Saturday; every "future" scenario below books on Monday 2025-03-10.
FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
MONDAY = date(2025, 3, 10)
SUNDAY = date(2025, 3, 9)
YESTERDAY = date(2025, 2, 28)


def fixed_clock() -> datetime:
    return FIXED_NOW


@dataclass
class RecordingNotifier:
    fail: bool = False
    sent: list[tuple[str, int]] = field(default_factory=list)

    def send_appointment_confirmation(self, appointment_id: int) -> bool:
        self.sent.append(("confirmation", appointment_id))
        return not self.fail

    def send_appointment_reminder(self, appointment_id: int) -> bool:
        self.sent.append(("reminder", appointment_id))
        return not self.fail

    def send_appointment_cancellation(self, appointment_id: int, reason: str) -> bool:
        self.sent.append(("cancellation", appointment_id))
        return not self.fail


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'appointments.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def session(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def settings() -> AppConfig:
    return AppConfig(max_appointments_per_day=50, default_booking_status="CONFIRMED", notification_webhook_url=None)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def dispatcher(notifier: RecordingNotifier) -> NotificationDispatcher:
    return NotificationDispatcher(notifier)


@pytest.fixture
def seed(session):
    north = Branch(code="NORTE", name="Sede Norte", address="Calle 10 #5-20", city="Neiva", phone="6088710000")
    south = Branch(code="SUR", name="Sede Sur", city="Neiva")
    general = AppointmentType(code="GEN", name="Atencion general", description="General service desk")
    billing = AppointmentType(code="FAC", name="Facturacion")
    client = Client(client_number="1075000001", full_name="Ana Perez", email="ana@example.com")
    other_client = Client(client_number="1075000002", full_name="Luis Gomez")
    session.add_all([north, south, general, billing, client, other_client])
    session.commit()
    return SimpleNamespace(
        branch=north,
        other_branch=south,
        appointment_type=general,
        other_type=billing,
        client=client,
        other_client=other_client,
    )


@pytest.fixture
def transactor(session, settings, dispatcher) -> BookingTransactor:
    return BookingTransactor(session=session, settings=settings, notifications=dispatcher, clock=fixed_clock)


@pytest.fixture
def book(transactor, seed):
    """Book for the seeded client at the seeded branch; keyword overrides pass through."""

    def _book(appointment_time: str = "09:00", appointment_date: date = MONDAY, **overrides):
        params = {
            "client_id": seed.client.id,
            "branch_id": seed.branch.id,
            "appointment_type_id": seed.appointment_type.id,
            "appointment_date": appointment_date,
            "appointment_time": appointment_time,
        }
        params.update(overrides)
        return transactor.schedule_appointment(**params)

    return _book
