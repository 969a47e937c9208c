from .invoice_repository import SqlAlchemyInvoiceRepository
from .invoice_line_item_repository import SqlAlchemyInvoiceLineItemRepository
from .payment_repository import SqlAlchemyPaymentRepository
from .refund_repository import SqlAlchemyRefundRepository
from .sequence_repository import SqlAlchemySequenceRepository
from .client_repository import SqlAlchemyClientRepository
from .job_repository import SqlAlchemyJobRepository

__all__ = [
    "SqlAlchemyInvoiceRepository",
    "SqlAlchemyInvoiceLineItemRepository",
    "SqlAlchemyPaymentRepository",
    "SqlAlchemyRefundRepository",
    "SqlAlchemySequenceRepository",
    "SqlAlchemyClientRepository",
    "SqlAlchemyJobRepository",
]
