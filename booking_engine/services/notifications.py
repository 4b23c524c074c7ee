from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Protocol

import httpx
from loguru import logger

from booking_engine.core.config import AppConfig, get_settings


class NotificationService(Protocol):
    def send_appointment_confirmation(self, appointment_id: int) -> bool: ...

    def send_appointment_reminder(self, appointment_id: int) -> bool: ...

    def send_appointment_cancellation(self, appointment_id: int, reason: str) -> bool: ...


class LogNotificationService:
    """Default gateway when no delivery channel is configured: records the event and reports success."""

    def send_appointment_confirmation(self, appointment_id: int) -> bool:
        logger.info("Confirmation notification for appointment {appointment_id}", appointment_id=appointment_id)
        return True

    def send_appointment_reminder(self, appointment_id: int) -> bool:
        logger.info("Reminder notification for appointment {appointment_id}", appointment_id=appointment_id)
        return True

    def send_appointment_cancellation(self, appointment_id: int, reason: str) -> bool:
        logger.info(
            "Cancellation notification for appointment {appointment_id}: {reason}",
            appointment_id=appointment_id,
            reason=reason,
        )
        return True


class WebhookNotificationService:
    """Posts appointment events to the external email/WhatsApp gateway."""

    def __init__(self, url: str, *, timeout: float = 10.0, client: httpx.Client | None = None) -> None:
        self.url = url
        self.timeout = timeout
        self.client = client or httpx.Client(timeout=timeout)

    def send_appointment_confirmation(self, appointment_id: int) -> bool:
        return self._post("appointment_confirmation", appointment_id)

    def send_appointment_reminder(self, appointment_id: int) -> bool:
        return self._post("appointment_reminder", appointment_id)

    def send_appointment_cancellation(self, appointment_id: int, reason: str) -> bool:
        return self._post("appointment_cancellation", appointment_id, reason=reason)

    def _post(self, event: str, appointment_id: int, **data: Any) -> bool:
        payload = {
            "event": event,
            "appointment_id": appointment_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "data": data,
        }
        response = self.client.post(self.url, json=payload)
        if response.is_success:
            return True
        logger.warning(
            "Notification gateway answered {status} for {event}",
            status=response.status_code,
            event=event,
        )
        return False


class NotificationDispatcher:
    """Single best-effort delivery attempt, made after the state change has committed.

    Failures are logged and reported as ``False``; they never propagate.
    """

    def __init__(self, service: NotificationService) -> None:
        self.service = service

    def appointment_confirmed(self, appointment_id: int) -> bool:
        return self._attempt("confirmation", appointment_id, self.service.send_appointment_confirmation, appointment_id)

    def appointment_reminder(self, appointment_id: int) -> bool:
        return self._attempt("reminder", appointment_id, self.service.send_appointment_reminder, appointment_id)

    def appointment_cancelled(self, appointment_id: int, reason: str | None) -> bool:
        return self._attempt(
            "cancellation",
            appointment_id,
            self.service.send_appointment_cancellation,
            appointment_id,
            reason or "Not specified",
        )

    def _attempt(self, kind: str, appointment_id: int, send, *args: Any) -> bool:  # noqa: ANN001
        try:
            delivered = bool(send(*args))
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Failed to send {kind} notification for appointment {appointment_id}: {error}",
                kind=kind,
                appointment_id=appointment_id,
                error=exc,
            )
            return False
        if not delivered:
            logger.warning(
                "{kind} notification for appointment {appointment_id} was not delivered",
                kind=kind.capitalize(),
                appointment_id=appointment_id,
            )
        return delivered


def build_notification_service(settings: AppConfig) -> NotificationService:
    if settings.notification_webhook_url:
        return WebhookNotificationService(
            settings.notification_webhook_url,
            timeout=settings.notification_timeout_sec,
        )
    return LogNotificationService()


@lru_cache
def get_notification_service() -> NotificationService:
    return build_notification_service(get_settings())
