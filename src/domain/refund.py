"""Refund Domain Entity"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Numeric, String, Text
from src.domain.base import BaseModel, generate_uuid


class RefundStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Refund(BaseModel, table=True):
    """
    Refund - Money returned against one payment

    Domain Rules:
    - sum of completed refunds on a payment never exceeds the payment amount
    - only completed refunds reduce the invoice's amount_paid
    - failed means the processor rejected the refund after accepting the request
    """

    __tablename__ = "refunds"
    __table_args__ = (
        Index('ix_refunds_payment_id', 'payment_id'),
        Index('ix_refunds_status', 'status'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True, max_length=36)

    payment_id: str = Field(
        sa_column=Column(String(36), ForeignKey("payments.id"), nullable=False),
    )

    amount: Decimal = Field(sa_column=Column(Numeric(12, 2), nullable=False))

    reason: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    status: RefundStatus = Field(default=RefundStatus.PENDING)

    processor_refund_id: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))

    refunded_at: Optional[datetime] = Field(default=None)

    created_by: Optional[str] = Field(default=None, max_length=36)

    created_at: datetime = Field(default_factory=datetime.utcnow)
