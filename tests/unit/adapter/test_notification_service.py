"""Unit tests for notification service implementations"""

import json
import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from src.adapter.services.notification_service import (
    CompositeNotificationService,
    LoggingNotificationService,
    SendGridNotificationService,
    WebhookNotificationService,
    create_notification_service,
)


@pytest.mark.asyncio
class TestSendGridNotificationService:
    async def test_returns_message_id_header(self):
        seen = {}

        def handler(request):
            seen["payload"] = json.loads(request.content)
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(202, headers={"X-Message-Id": "sg_1"})

        service = SendGridNotificationService(
            "SG.key", "billing@example.com", "Field Ledger", transport=httpx.MockTransport(handler)
        )

        message_id = await service.send_email("dana@example.com", "Invoice INV-00001", "Total: 108.00")

        assert message_id == "sg_1"
        assert seen["auth"] == "Bearer SG.key"
        assert seen["payload"]["personalizations"][0]["to"][0]["email"] == "dana@example.com"
        assert seen["payload"]["from"] == {"email": "billing@example.com", "name": "Field Ledger"}
        assert seen["payload"]["content"][0]["value"] == "Total: 108.00"

    async def test_rejection_returns_none(self):
        service = SendGridNotificationService(
            "SG.key", "billing@example.com", transport=httpx.MockTransport(lambda request: httpx.Response(401))
        )

        assert await service.send_email("dana@example.com", "s", "b") is None


@pytest.mark.asyncio
class TestWebhookNotificationService:
    async def test_posts_payload(self):
        seen = {}

        def handler(request):
            seen["payload"] = json.loads(request.content)
            return httpx.Response(200)

        service = WebhookNotificationService("https://hooks.test/email", transport=httpx.MockTransport(handler))

        message_id = await service.send_email("dana@example.com", "Reminder", "Balance 58.00")

        assert message_id == seen["payload"]["message_id"]
        assert seen["payload"]["to"] == "dana@example.com"

    async def test_server_error_returns_none(self):
        service = WebhookNotificationService(
            "https://hooks.test/email", transport=httpx.MockTransport(lambda request: httpx.Response(500))
        )

        assert await service.send_email("dana@example.com", "s", "b") is None


@pytest.mark.asyncio
class TestCompositeNotificationService:
    async def test_first_message_id_wins(self):
        failing = MagicMock()
        failing.send_email = AsyncMock(return_value=None)
        working = MagicMock()
        working.send_email = AsyncMock(return_value="msg_2")
        other = MagicMock()
        other.send_email = AsyncMock(return_value="msg_3")

        service = CompositeNotificationService([failing, working, other])

        assert await service.send_email("dana@example.com", "s", "b") == "msg_2"
        other.send_email.assert_awaited_once()

    async def test_raising_service_is_skipped(self):
        broken = MagicMock()
        broken.send_email = AsyncMock(side_effect=RuntimeError("boom"))

        service = CompositeNotificationService([broken, LoggingNotificationService()])

        assert (await service.send_email("dana@example.com", "s", "b")).startswith("log-")


class TestCreateNotificationService:
    def test_logging_when_nothing_configured(self):
        assert isinstance(create_notification_service(), LoggingNotificationService)

    def test_sendgrid_only(self):
        service = create_notification_service(sendgrid_api_key="SG.key", from_email="billing@example.com")
        assert isinstance(service, SendGridNotificationService)

    def test_both_configured(self):
        service = create_notification_service(
            sendgrid_api_key="SG.key", from_email="billing@example.com", webhook_url="https://hooks.test/email"
        )
        assert isinstance(service, CompositeNotificationService)
        assert len(service.services) == 2
