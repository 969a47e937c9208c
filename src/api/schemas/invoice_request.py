"""Request schemas for Invoice API

Pydantic models for validating incoming HTTP requests. The account and the
acting user come from headers, never from the body.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field


class LineItemRequestSchema(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    item_type: str = Field(default="service")
    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    is_taxable: bool = True


class CreateInvoiceRequestSchema(BaseModel):
    """
    Request schema for creating an invoice

    Used for POST /invoices endpoint.
    """

    client_id: str = Field(..., min_length=1)
    job_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    line_items: List[LineItemRequestSchema] = Field(default_factory=list)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=1)
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0)
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    payment_terms: int = Field(default=30, ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    notes: Optional[str] = None
    terms: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "client_id": "5d0c6f3e-7a51-4f1e-9d1b-3f2a8f0e4c11",
                "title": "Water heater replacement",
                "line_items": [
                    {"name": "Labor", "quantity": "2", "unit_price": "50.00"},
                ],
                "tax_rate": "0.08",
            }
        }
    )


class UpdateInvoiceRequestSchema(BaseModel):
    """
    Request schema for editing an invoice

    Used for PATCH /invoices/{invoice_id}. Omitted fields are left alone.
    """

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    line_items: Optional[List[LineItemRequestSchema]] = None
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=1)
    discount_amount: Optional[Decimal] = Field(default=None, ge=0)
    due_date: Optional[date] = None
    payment_terms: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    terms: Optional[str] = None
