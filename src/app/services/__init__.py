from .unit_of_work import UnitOfWork
from .notification_service import NotificationService
from .payment_processor import (
    PaymentProcessor,
    PaymentProcessorError,
    PaymentProcessorTimeout,
    ChargeResult,
    ChargeStatus,
    RefundResult,
)
from .sequence_generator import SequenceGenerator
from .payment_allocator import PaymentAllocator

__all__ = [
    "UnitOfWork",
    "NotificationService",
    "PaymentProcessor",
    "PaymentProcessorError",
    "PaymentProcessorTimeout",
    "ChargeResult",
    "ChargeStatus",
    "RefundResult",
    "SequenceGenerator",
    "PaymentAllocator",
]
