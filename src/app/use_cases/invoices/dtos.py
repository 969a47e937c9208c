"""Data Transfer Objects for Invoice Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.invoice_line_item import InvoiceLineItem


class LineItemDTO(BaseModel):
    """One billable row supplied when creating or editing an invoice"""

    name: str = Field(..., min_length=1, max_length=255)

    description: Optional[str] = Field(default=None)

    item_type: str = Field(default="service", description="service, material, labor, ...")

    quantity: Decimal = Field(..., gt=0, description="Quantity (must be > 0)")

    unit_price: Decimal = Field(..., ge=0, description="Price per unit (must be >= 0)")

    is_taxable: bool = Field(default=True)


class CreateInvoiceCommandDTO(BaseModel):
    """
    Command DTO for creating an invoice

    Used as input to CreateInvoice use case.
    """

    account_id: str = Field(..., description="Tenant identifier")

    client_id: str = Field(..., description="Billed client (must belong to the account)")

    job_id: Optional[str] = Field(default=None, description="Optional job (must belong to the account)")

    title: str = Field(..., min_length=1, max_length=255)

    description: Optional[str] = Field(default=None)

    line_items: List[LineItemDTO] = Field(default_factory=list)

    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=1, description="Flat tax rate, 0.08 = 8%")

    discount_amount: Decimal = Field(default=Decimal("0"), ge=0)

    invoice_date: Optional[date] = Field(default=None, description="Defaults to today")

    due_date: Optional[date] = Field(default=None, description="Defaults to invoice_date + payment_terms")

    payment_terms: int = Field(default=30, ge=0, description="Days until due")

    currency: str = Field(default="USD", min_length=3, max_length=3)

    notes: Optional[str] = Field(default=None)

    terms: Optional[str] = Field(default=None)

    created_by: Optional[str] = Field(default=None, description="Acting user id")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "account_id": "acc_123",
                "client_id": "cli_456",
                "title": "Water heater replacement",
                "line_items": [
                    {"name": "Labor", "quantity": "2", "unit_price": "50.00"},
                ],
                "tax_rate": "0.08",
            }
        }
    )


class UpdateInvoiceCommandDTO(BaseModel):
    """
    Command DTO for editing an invoice

    Only supplied fields change. Supplying line_items replaces the whole set.
    """

    account_id: str = Field(..., description="Tenant identifier")

    invoice_id: str = Field(..., description="Invoice to edit")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)

    description: Optional[str] = Field(default=None)

    line_items: Optional[List[LineItemDTO]] = Field(default=None)

    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=1)

    discount_amount: Optional[Decimal] = Field(default=None, ge=0)

    due_date: Optional[date] = Field(default=None)

    payment_terms: Optional[int] = Field(default=None, ge=0)

    notes: Optional[str] = Field(default=None)

    terms: Optional[str] = Field(default=None)

    @property
    def changes_financials(self) -> bool:
        return (
            self.line_items is not None
            or self.tax_rate is not None
            or self.discount_amount is not None
        )


class InvoiceReferenceDTO(BaseModel):
    """Identifies one invoice inside an account (send, view, void, delete, get)"""

    account_id: str = Field(..., description="Tenant identifier")

    invoice_id: str = Field(..., description="Invoice ID")

    include_deleted: bool = Field(default=False, description="Only honoured by GetInvoice")


class ListInvoicesQueryDTO(BaseModel):
    account_id: str = Field(..., description="Tenant identifier")

    status: Optional[InvoiceStatus] = Field(default=None)

    client_id: Optional[str] = Field(default=None)

    overdue_only: bool = Field(default=False, description="Unpaid, non-void invoices past their due date")

    include_deleted: bool = Field(default=False)

    limit: int = Field(default=50, ge=1, le=200)

    offset: int = Field(default=0, ge=0)


class InvoiceLineItemResponseDTO(BaseModel):
    line_item_id: str
    sort_order: int
    item_type: str
    name: str
    description: Optional[str] = None
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    is_taxable: bool

    @classmethod
    def from_entity(cls, item: InvoiceLineItem) -> "InvoiceLineItemResponseDTO":
        return cls(
            line_item_id=item.id,
            sort_order=item.sort_order,
            item_type=item.item_type,
            name=item.name,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=item.total_price,
            is_taxable=item.is_taxable,
        )


class InvoiceResponseDTO(BaseModel):
    """
    Response DTO for invoice operations

    Returned by every invoice use case.
    """

    invoice_id: str = Field(..., description="Invoice UUID")

    account_id: str = Field(..., description="Tenant identifier")

    client_id: str

    job_id: Optional[str] = None

    invoice_number: str = Field(..., description="Per-account number (INV-00001)")

    title: str

    description: Optional[str] = None

    status: str = Field(..., description="draft, sent, overdue, partial, paid, void")

    subtotal: Decimal

    tax_rate: Decimal

    tax_amount: Decimal

    discount_amount: Decimal

    total: Decimal

    amount_paid: Decimal

    balance_due: Decimal

    is_overpaid: bool = False

    currency: str

    invoice_date: date

    due_date: date

    paid_date: Optional[date] = None

    payment_terms: int

    notes: Optional[str] = None

    terms: Optional[str] = None

    sent_at: Optional[datetime] = None

    viewed_at: Optional[datetime] = None

    last_reminder_sent_at: Optional[datetime] = None

    reminder_count: int = 0

    is_deleted: bool = False

    deleted_at: Optional[datetime] = None

    created_at: datetime

    updated_at: datetime

    line_items: List[InvoiceLineItemResponseDTO] = Field(default_factory=list)

    @classmethod
    def from_entity(
        cls, invoice: Invoice, line_items: Optional[List[InvoiceLineItem]] = None
    ) -> "InvoiceResponseDTO":
        return cls(
            invoice_id=invoice.id,
            account_id=invoice.account_id,
            client_id=invoice.client_id,
            job_id=invoice.job_id,
            invoice_number=invoice.invoice_number,
            title=invoice.title,
            description=invoice.description,
            status=InvoiceStatus(invoice.status).value,
            subtotal=invoice.subtotal,
            tax_rate=invoice.tax_rate,
            tax_amount=invoice.tax_amount,
            discount_amount=invoice.discount_amount,
            total=invoice.total,
            amount_paid=invoice.amount_paid,
            balance_due=invoice.balance_due,
            is_overpaid=invoice.is_overpaid,
            currency=invoice.currency,
            invoice_date=invoice.invoice_date,
            due_date=invoice.due_date,
            paid_date=invoice.paid_date,
            payment_terms=invoice.payment_terms,
            notes=invoice.notes,
            terms=invoice.terms,
            sent_at=invoice.sent_at,
            viewed_at=invoice.viewed_at,
            last_reminder_sent_at=invoice.last_reminder_sent_at,
            reminder_count=invoice.reminder_count,
            is_deleted=invoice.is_deleted,
            deleted_at=invoice.deleted_at,
            created_at=invoice.created_at,
            updated_at=invoice.updated_at,
            line_items=[InvoiceLineItemResponseDTO.from_entity(item) for item in (line_items or [])],
        )


class InvoiceListResponseDTO(BaseModel):
    """One page of invoices plus the total number matching the filters"""

    items: List[InvoiceResponseDTO]
    total: int
    limit: int
    offset: int


class SweepOverdueCommandDTO(BaseModel):
    today: Optional[date] = Field(default=None, description="Reference date, defaults to today (UTC)")

    account_id: Optional[str] = Field(default=None, description="Restrict to one account")


class OverdueSweepResultDTO(BaseModel):
    as_of: date
    marked_overdue: int
    invoice_ids: List[str] = Field(default_factory=list)


class DispatchRemindersCommandDTO(BaseModel):
    today: Optional[date] = Field(default=None, description="Reference date, defaults to today (UTC)")

    account_id: Optional[str] = Field(default=None, description="Restrict to one account")

    interval_days: int = Field(default=7, ge=1, description="Minimum days between two reminders")

    lead_days: int = Field(default=3, ge=0, description="Remind sent invoices due within this many days")


class ReminderDispatchResultDTO(BaseModel):
    as_of: date
    candidates: int = Field(..., description="Invoices matching the reminder window")
    sent: int = Field(..., description="Reminders the dispatcher confirmed")
    skipped: int = Field(..., description="Reminded too recently or no client email")
    failed: int = Field(..., description="Dispatcher returned no message id")
    invoice_ids: List[str] = Field(default_factory=list, description="Invoices stamped as reminded")
