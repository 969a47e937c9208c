"""Invoice ledger use cases"""
from .create_invoice import CreateInvoice
from .update_invoice import UpdateInvoice
from .send_invoice import SendInvoice
from .mark_invoice_viewed import MarkInvoiceViewed
from .void_invoice import VoidInvoice
from .delete_invoice import DeleteInvoice
from .get_invoice import GetInvoice
from .list_invoices import ListInvoices
from .sweep_overdue import SweepOverdueInvoices
from .dispatch_reminders import DispatchReminders
from .dtos import (
    LineItemDTO,
    CreateInvoiceCommandDTO,
    UpdateInvoiceCommandDTO,
    InvoiceReferenceDTO,
    ListInvoicesQueryDTO,
    InvoiceLineItemResponseDTO,
    InvoiceResponseDTO,
    InvoiceListResponseDTO,
    SweepOverdueCommandDTO,
    OverdueSweepResultDTO,
    DispatchRemindersCommandDTO,
    ReminderDispatchResultDTO,
)

__all__ = [
    "CreateInvoice",
    "UpdateInvoice",
    "SendInvoice",
    "MarkInvoiceViewed",
    "VoidInvoice",
    "DeleteInvoice",
    "GetInvoice",
    "ListInvoices",
    "SweepOverdueInvoices",
    "DispatchReminders",
    "LineItemDTO",
    "CreateInvoiceCommandDTO",
    "UpdateInvoiceCommandDTO",
    "InvoiceReferenceDTO",
    "ListInvoicesQueryDTO",
    "InvoiceLineItemResponseDTO",
    "InvoiceResponseDTO",
    "InvoiceListResponseDTO",
    "SweepOverdueCommandDTO",
    "OverdueSweepResultDTO",
    "DispatchRemindersCommandDTO",
    "ReminderDispatchResultDTO",
]
