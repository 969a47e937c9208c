"""Invoice Line Item Domain Entity

Tracks individual line items within an invoice.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Numeric, String, Text
from src.domain.base import BaseModel, generate_uuid


class InvoiceLineItem(BaseModel, table=True):
    """
    Invoice Line Item - One billable row of an invoice

    Domain Rules:
    - Each line item belongs to exactly one invoice
    - total_price = quantity * unit_price
    - sort_order preserves presentation order
    - Replaced as a whole batch when the invoice is edited
    """

    __tablename__ = "invoice_line_items"
    __table_args__ = (
        Index('ix_invoice_line_items_invoice_id', 'invoice_id'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True, max_length=36)

    invoice_id: str = Field(
        sa_column=Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
    )

    sort_order: int = Field(default=0)

    item_type: str = Field(default="service", sa_column=Column(String(50), nullable=False))

    name: str = Field(sa_column=Column(String(255), nullable=False))

    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    quantity: Decimal = Field(
        sa_column=Column(Numeric(12, 4), nullable=False),
        description="Quantity (hours, units, visits)"
    )

    unit_price: Decimal = Field(
        sa_column=Column(Numeric(12, 2), nullable=False),
    )

    total_price: Decimal = Field(
        sa_column=Column(Numeric(12, 2), nullable=False),
        description="quantity * unit_price"
    )

    is_taxable: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
