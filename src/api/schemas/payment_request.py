"""Request schemas for Payment API"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from src.domain.payment import PaymentMethod


class _AmountSchema(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Amount in currency units (must be > 0)")

    @field_validator('amount')
    @classmethod
    def validate_precision(cls, v):
        """Money has at most two decimal places"""
        if v != v.quantize(Decimal("0.01")):
            raise ValueError("Amount cannot have more than two decimal places")
        return v


class RecordPaymentRequestSchema(_AmountSchema):
    """
    Request schema for recording a manual payment

    Used for POST /payments endpoint.
    """

    invoice_id: str = Field(..., min_length=1)
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_date: Optional[datetime] = None
    notes: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "invoice_id": "0b8f8d4e-3f3a-4c55-a3c2-2f9b5c1d7e10",
                "amount": "50.00",
                "payment_method": "check",
                "notes": "Check #1042",
            }
        }
    )


class CardPaymentRequestSchema(_AmountSchema):
    """Used for POST /payments/card"""

    invoice_id: str = Field(..., min_length=1)
    payment_method_token: str = Field(..., min_length=1)
    save_card: bool = False
    notes: Optional[str] = None


class BankPaymentRequestSchema(_AmountSchema):
    """Used for POST /payments/bank"""

    invoice_id: str = Field(..., min_length=1)
    bank_account_token: str = Field(..., min_length=1)
    notes: Optional[str] = None


class RefundRequestSchema(BaseModel):
    """Used for POST /payments/{payment_id}/refund; amount defaults to the refundable amount"""

    amount: Optional[Decimal] = Field(default=None, gt=0)
    reason: Optional[str] = None
