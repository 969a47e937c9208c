from .base import BaseModel, generate_uuid, round_money
from .client import Client
from .job import Job
from .invoice import Invoice, InvoiceStatus
from .invoice_line_item import InvoiceLineItem
from .payment import Payment, PaymentMethod, PaymentStatus
from .refund import Refund, RefundStatus
from .sequence import DocumentSequence, SequenceType
from .totals import LineItemTotals, calculate_totals

__all__ = [
    "BaseModel",
    "generate_uuid",
    "round_money",
    "Client",
    "Job",
    "Invoice",
    "InvoiceStatus",
    "InvoiceLineItem",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "Refund",
    "RefundStatus",
    "DocumentSequence",
    "SequenceType",
    "LineItemTotals",
    "calculate_totals",
]
