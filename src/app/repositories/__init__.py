from .invoice_repository import InvoiceRepository
from .invoice_line_item_repository import InvoiceLineItemRepository
from .payment_repository import PaymentRepository
from .refund_repository import RefundRepository
from .sequence_repository import SequenceRepository
from .client_repository import ClientRepository
from .job_repository import JobRepository

__all__ = [
    "InvoiceRepository",
    "InvoiceLineItemRepository",
    "PaymentRepository",
    "RefundRepository",
    "SequenceRepository",
    "ClientRepository",
    "JobRepository",
]
