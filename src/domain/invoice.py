"""Invoice Domain Entity

Owns an invoice's financial state and its status state machine.
"""

from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Numeric, String, Date, Text, UniqueConstraint
from src.domain.base import BaseModel, generate_uuid, round_money


class InvoiceStatus(str, Enum):
    """Invoice status types"""
    DRAFT = "draft"
    SENT = "sent"
    OVERDUE = "overdue"
    PARTIAL = "partial"
    PAID = "paid"
    VOID = "void"


TERMINAL_STATUSES = frozenset({InvoiceStatus.PAID, InvoiceStatus.VOID})
EDITABLE_STATUSES = frozenset({
    InvoiceStatus.DRAFT,
    InvoiceStatus.SENT,
    InvoiceStatus.PARTIAL,
    InvoiceStatus.OVERDUE,
})
PAYABLE_STATUSES = EDITABLE_STATUSES


class Invoice(BaseModel, table=True):
    """
    Invoice - Amount owed by a client for work in one account

    Domain Rules:
    - invoice_number is unique per account and never changes once assigned
    - total = subtotal + tax_amount - discount_amount (each rounded first)
    - balance_due = total - amount_paid; negative means overpaid (flagged)
    - Status transitions: draft -> sent -> overdue/partial/paid, any open -> void
    - paid and void are terminal; line items and totals are frozen there
    - Soft delete only (is_deleted + deleted_at), and only while amount_paid == 0
    """

    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint('account_id', 'invoice_number', name='uq_invoices_account_number'),
        Index('ix_invoices_account_id', 'account_id'),
        Index('ix_invoices_status', 'status'),
        Index('ix_invoices_due_date', 'due_date'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True, max_length=36)

    account_id: str = Field(max_length=36, description="Tenant that owns the invoice")

    client_id: str = Field(max_length=36, description="Billed client")

    job_id: Optional[str] = Field(default=None, max_length=36, description="Optional job reference")

    invoice_number: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Per-account document number (e.g., INV-00007)"
    )

    title: str = Field(sa_column=Column(String(255), nullable=False))

    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    status: InvoiceStatus = Field(default=InvoiceStatus.DRAFT)

    subtotal: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(12, 2), nullable=False),
    )

    tax_rate: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(5, 4), nullable=False),
        description="Flat tax rate as a fraction between 0 and 1"
    )

    tax_amount: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(12, 2), nullable=False),
    )

    discount_amount: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(12, 2), nullable=False),
    )

    total: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(12, 2), nullable=False),
    )

    amount_paid: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(12, 2), nullable=False),
        description="Completed/settled payments minus completed refunds"
    )

    balance_due: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(12, 2), nullable=False),
    )

    currency: str = Field(default="USD", sa_column=Column(String(3), nullable=False))

    invoice_date: date = Field(sa_column=Column(Date, nullable=False))

    due_date: date = Field(sa_column=Column(Date, nullable=False))

    paid_date: Optional[date] = Field(default=None, sa_column=Column(Date, nullable=True))

    payment_terms: int = Field(default=30, description="Days between invoice date and due date")

    notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    terms: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    sent_at: Optional[datetime] = Field(default=None)

    viewed_at: Optional[datetime] = Field(default=None)

    last_reminder_sent_at: Optional[datetime] = Field(default=None)

    reminder_count: int = Field(default=0)

    is_deleted: bool = Field(default=False)

    deleted_at: Optional[datetime] = Field(default=None)

    created_by: Optional[str] = Field(default=None, max_length=36)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_editable(self) -> bool:
        return self.status in EDITABLE_STATUSES and not self.is_deleted

    @property
    def is_overpaid(self) -> bool:
        return self.balance_due < 0

    def refresh_balance(self) -> None:
        """balance_due = total - amount_paid. Overpayment stays visible as a negative balance."""
        self.balance_due = round_money(self.total) - round_money(self.amount_paid)

    def apply_payment_status(self, today: Optional[date] = None) -> None:
        """
        Derive status from the paid amount

        balance_due <= 0 -> paid (stamps paid_date)
        amount_paid > 0  -> partial
        otherwise        -> unchanged
        """
        if self.balance_due <= 0:
            if self.status != InvoiceStatus.PAID:
                self.paid_date = today or datetime.utcnow().date()
            self.status = InvoiceStatus.PAID
        elif self.amount_paid > 0:
            self.status = InvoiceStatus.PARTIAL
