from __future__ import annotations

import json
from unittest.mock import MagicMock

import httpx

from booking_engine.core.config import AppConfig
from booking_engine.services.notifications import (
    LogNotificationService,
    NotificationDispatcher,
    WebhookNotificationService,
    build_notification_service,
)


def _webhook(status_code: int, captured: list[dict]) -> WebhookNotificationService:
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(json.loads(request.content))
        return httpx.Response(status_code)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    return WebhookNotificationService("https://notify.test/hooks", client=client)


def test_webhook_posts_event_payload() -> None:
    captured: list[dict] = []
    service = _webhook(202, captured)

    assert service.send_appointment_cancellation(7, "Viaje")

    assert captured[0]["event"] == "appointment_cancellation"
    assert captured[0]["appointment_id"] == 7
    assert captured[0]["data"] == {"reason": "Viaje"}


def test_webhook_error_status_is_not_delivered() -> None:
    assert not _webhook(500, []).send_appointment_confirmation(7)


def test_dispatcher_swallows_gateway_exceptions() -> None:
    service = MagicMock()
    service.send_appointment_reminder.side_effect = httpx.ConnectError("refused")

    assert NotificationDispatcher(service).appointment_reminder(3) is False


def test_dispatcher_fills_missing_cancellation_reason() -> None:
    service = MagicMock()
    service.send_appointment_cancellation.return_value = True

    assert NotificationDispatcher(service).appointment_cancelled(3, None)
    service.send_appointment_cancellation.assert_called_once_with(3, "Not specified")


def test_gateway_selection_follows_settings() -> None:
    assert isinstance(build_notification_service(AppConfig(notification_webhook_url=None)), LogNotificationService)
    webhook = build_notification_service(AppConfig(notification_webhook_url="https://notify.test/hooks"))
    assert isinstance(webhook, WebhookNotificationService)
