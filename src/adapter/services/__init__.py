from .unit_of_work import SqlAlchemyUnitOfWork
from .notification_service import (
    LoggingNotificationService,
    SendGridNotificationService,
    WebhookNotificationService,
    CompositeNotificationService,
    create_notification_service,
)
from .stripe_payment_processor import StripePaymentProcessor

__all__ = [
    "SqlAlchemyUnitOfWork",
    "LoggingNotificationService",
    "SendGridNotificationService",
    "WebhookNotificationService",
    "CompositeNotificationService",
    "create_notification_service",
    "StripePaymentProcessor",
]
