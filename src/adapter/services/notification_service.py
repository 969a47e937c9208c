"""Notification Service Implementations

Concrete email dispatchers. Every implementation returns a message id when
the message was accepted and None when it was not; none of them raise.
"""

import logging
import uuid
from typing import List, Optional
import httpx
from src.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"


class LoggingNotificationService(NotificationService):
    """
    Notification service that logs emails instead of sending them

    Useful for development and testing, or as a fallback.
    """

    async def send_email(self, to: str, subject: str, body: str) -> Optional[str]:
        message_id = f"log-{uuid.uuid4()}"
        logger.info(f"[EMAIL] To: {to}, Subject: {subject}, Message-Id: {message_id}")
        logger.debug(f"[EMAIL] Body:\n{body}")
        return message_id


class SendGridNotificationService(NotificationService):
    """
    Sends plain-text email through the SendGrid v3 mail API

    SendGrid answers 202 Accepted with the message id in the X-Message-Id header.
    """

    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: Optional[str] = None,
        timeout: float = 10.0,
        api_url: str = SENDGRID_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            api_key: SendGrid API key
            from_email: Sender address
            from_name: Sender display name
            timeout: Request timeout in seconds
            api_url: Mail send endpoint
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.timeout = timeout
        self.api_url = api_url
        self.transport = transport

    async def send_email(self, to: str, subject: str, body: str) -> Optional[str]:
        sender = {"email": self.from_email}
        if self.from_name:
            sender["name"] = self.from_name

        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": sender,
            "subject": subject,
            "content": [{"type": "text/plain", "value": body}],
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to send email to {to} via SendGrid: {e}")
            return None

        message_id = response.headers.get("X-Message-Id") or f"sendgrid-{uuid.uuid4()}"
        logger.info(f"Email sent to {to} via SendGrid: {message_id}")
        return message_id


class WebhookNotificationService(NotificationService):
    """
    Notification service that hands emails to an HTTP webhook

    Sends JSON payload to configured webhook URL.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.transport = transport

    async def send_email(self, to: str, subject: str, body: str) -> Optional[str]:
        message_id = str(uuid.uuid4())
        payload = {
            "type": "email",
            "message_id": message_id,
            "to": to,
            "subject": subject,
            "body": body,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.info(f"Webhook notification {message_id} sent to {self.webhook_url}")
                return message_id
        except httpx.HTTPError as e:
            logger.error(f"Failed to send webhook notification to {self.webhook_url}: {e}")
            return None


class CompositeNotificationService(NotificationService):
    """
    Notification service that delegates to multiple services

    Every service is tried; the first message id returned wins.
    """

    def __init__(self, services: List[NotificationService]):
        self.services = services

    async def send_email(self, to: str, subject: str, body: str) -> Optional[str]:
        delivered = None
        for service in self.services:
            try:
                message_id = await service.send_email(to, subject, body)
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
                continue
            if message_id and delivered is None:
                delivered = message_id
        return delivered


def create_notification_service(
    sendgrid_api_key: Optional[str] = None,
    from_email: Optional[str] = None,
    from_name: Optional[str] = None,
    webhook_url: Optional[str] = None,
) -> NotificationService:
    """
    Factory function to create appropriate notification service

    SendGrid when an API key and sender are configured, a webhook when a URL
    is configured, both through a composite when both are. With neither,
    emails are only logged.
    """
    services: List[NotificationService] = []

    if sendgrid_api_key and from_email:
        services.append(SendGridNotificationService(sendgrid_api_key, from_email, from_name))

    if webhook_url:
        services.append(WebhookNotificationService(webhook_url))

    if not services:
        return LoggingNotificationService()

    if len(services) == 1:
        return services[0]

    return CompositeNotificationService(services)
