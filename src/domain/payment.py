"""Payment Domain Entity

A sum of money received (or being received) against an invoice.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Numeric, String, Text, UniqueConstraint
from src.domain.base import BaseModel, generate_uuid


class PaymentMethod(str, Enum):
    CASH = "cash"
    CHECK = "check"
    CARD = "card"
    BANK = "bank"
    OTHER = "other"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    SETTLED = "settled"
    FAILED = "failed"


# Only these count toward an invoice's amount_paid
COLLECTED_STATUSES = frozenset({PaymentStatus.COMPLETED, PaymentStatus.SETTLED})
UNRESOLVED_STATUSES = frozenset({PaymentStatus.PENDING, PaymentStatus.PROCESSING})


class Payment(BaseModel, table=True):
    """
    Payment - Money applied to one invoice

    Domain Rules:
    - payment_number is unique per account
    - amount and payment_method never change after creation
    - only status and settled_date mutate
    - pending/processing payments do not count toward amount_paid
    """

    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint('account_id', 'payment_number', name='uq_payments_account_number'),
        Index('ix_payments_account_id', 'account_id'),
        Index('ix_payments_invoice_id', 'invoice_id'),
        Index('ix_payments_status', 'status'),
        Index('ix_payments_processor_payment_id', 'processor_payment_id'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True, max_length=36)

    account_id: str = Field(max_length=36)

    client_id: str = Field(max_length=36)

    invoice_id: Optional[str] = Field(default=None, max_length=36)

    payment_number: str = Field(sa_column=Column(String(50), nullable=False))

    amount: Decimal = Field(sa_column=Column(Numeric(12, 2), nullable=False))

    currency: str = Field(default="USD", sa_column=Column(String(3), nullable=False))

    payment_method: PaymentMethod

    payment_processor: Optional[str] = Field(default=None, sa_column=Column(String(50), nullable=True))

    status: PaymentStatus = Field(default=PaymentStatus.PENDING)

    processor_payment_id: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))

    processor_charge_id: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))

    card_last4: Optional[str] = Field(default=None, sa_column=Column(String(4), nullable=True))

    card_brand: Optional[str] = Field(default=None, sa_column=Column(String(50), nullable=True))

    payment_date: datetime = Field(default_factory=datetime.utcnow)

    settled_date: Optional[datetime] = Field(default=None)

    notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    created_by: Optional[str] = Field(default=None, max_length=36)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_collected(self) -> bool:
        return self.status in COLLECTED_STATUSES
