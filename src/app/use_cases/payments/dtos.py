"""Data Transfer Objects for Payment and Refund Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from src.app.use_cases.invoices.dtos import InvoiceResponseDTO
from src.domain.payment import Payment, PaymentMethod, PaymentStatus
from src.domain.refund import Refund, RefundStatus


class RecordManualPaymentCommandDTO(BaseModel):
    """
    Command DTO for recording money received outside the processor

    Used as input to RecordManualPayment use case.
    """

    account_id: str = Field(..., description="Tenant identifier")

    invoice_id: str = Field(..., description="Invoice the payment applies to")

    amount: Decimal = Field(..., gt=0, description="Amount received (must be > 0)")

    payment_method: PaymentMethod = Field(default=PaymentMethod.CASH, description="cash, check, card, bank, other")

    payment_date: Optional[datetime] = Field(default=None, description="Defaults to now (UTC)")

    notes: Optional[str] = Field(default=None)

    created_by: Optional[str] = Field(default=None, description="Acting user id")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "account_id": "acc_123",
                "invoice_id": "inv_456",
                "amount": "50.00",
                "payment_method": "check",
                "notes": "Check #1042",
            }
        }
    )


class ProcessCardPaymentCommandDTO(BaseModel):
    """Command DTO for charging a card through the processor"""

    account_id: str = Field(..., description="Tenant identifier")

    invoice_id: str = Field(..., description="Invoice the payment applies to")

    amount: Decimal = Field(..., gt=0)

    payment_method_token: str = Field(..., description="Processor card token (e.g., pm_...)")

    save_card: bool = Field(default=False, description="Attach the card to the client's processor customer")

    notes: Optional[str] = Field(default=None)

    created_by: Optional[str] = Field(default=None)


class ProcessBankPaymentCommandDTO(BaseModel):
    """Command DTO for debiting a bank account through the processor"""

    account_id: str = Field(..., description="Tenant identifier")

    invoice_id: str = Field(..., description="Invoice the payment applies to")

    amount: Decimal = Field(..., gt=0)

    bank_account_token: str = Field(..., description="Processor bank account token")

    notes: Optional[str] = Field(default=None)

    created_by: Optional[str] = Field(default=None)


class PaymentReferenceDTO(BaseModel):
    """Identifies one payment; account_id None is reserved for workers"""

    account_id: Optional[str] = Field(default=None, description="Tenant identifier")

    payment_id: str = Field(..., description="Payment ID")


class ListPaymentsQueryDTO(BaseModel):
    account_id: str = Field(..., description="Tenant identifier")

    invoice_id: Optional[str] = Field(default=None)

    status: Optional[PaymentStatus] = Field(default=None)

    limit: int = Field(default=50, ge=1, le=200)

    offset: int = Field(default=0, ge=0)


class RefundPaymentCommandDTO(BaseModel):
    """
    Command DTO for refunding a payment

    amount defaults to everything still refundable on the payment.
    """

    account_id: str = Field(..., description="Tenant identifier")

    payment_id: str = Field(..., description="Payment to refund")

    amount: Optional[Decimal] = Field(default=None, gt=0, description="Defaults to the refundable amount")

    reason: Optional[str] = Field(default=None)

    created_by: Optional[str] = Field(default=None)


class RefundReferenceDTO(BaseModel):
    refund_id: str = Field(..., description="Refund ID")


class PaymentResponseDTO(BaseModel):
    """Response DTO for a payment"""

    payment_id: str

    account_id: str

    client_id: str

    invoice_id: Optional[str] = None

    payment_number: str = Field(..., description="Per-account number (PAY-00001)")

    amount: Decimal

    currency: str

    payment_method: str

    payment_processor: Optional[str] = None

    status: str = Field(..., description="pending, processing, completed, settled, failed")

    processor_payment_id: Optional[str] = None

    processor_charge_id: Optional[str] = None

    card_last4: Optional[str] = None

    card_brand: Optional[str] = None

    payment_date: datetime

    settled_date: Optional[datetime] = None

    notes: Optional[str] = None

    created_at: datetime

    updated_at: datetime

    @classmethod
    def from_entity(cls, payment: Payment) -> "PaymentResponseDTO":
        return cls(
            payment_id=payment.id,
            account_id=payment.account_id,
            client_id=payment.client_id,
            invoice_id=payment.invoice_id,
            payment_number=payment.payment_number,
            amount=payment.amount,
            currency=payment.currency,
            payment_method=PaymentMethod(payment.payment_method).value,
            payment_processor=payment.payment_processor,
            status=PaymentStatus(payment.status).value,
            processor_payment_id=payment.processor_payment_id,
            processor_charge_id=payment.processor_charge_id,
            card_last4=payment.card_last4,
            card_brand=payment.card_brand,
            payment_date=payment.payment_date,
            settled_date=payment.settled_date,
            notes=payment.notes,
            created_at=payment.created_at,
            updated_at=payment.updated_at,
        )


class PaymentAllocationResponseDTO(BaseModel):
    """A payment together with the invoice state it produced"""

    payment: PaymentResponseDTO
    invoice: Optional[InvoiceResponseDTO] = None


class PaymentListResponseDTO(BaseModel):
    items: List[PaymentResponseDTO]
    total: int
    limit: int
    offset: int


class RefundResponseDTO(BaseModel):
    """Response DTO for a refund, with the invoice state after it was applied"""

    refund_id: str

    payment_id: str

    amount: Decimal

    reason: Optional[str] = None

    status: str = Field(..., description="pending, completed, failed")

    processor_refund_id: Optional[str] = None

    refunded_at: Optional[datetime] = None

    created_at: datetime

    invoice: Optional[InvoiceResponseDTO] = None

    @classmethod
    def from_entity(cls, refund: Refund, invoice: Optional[InvoiceResponseDTO] = None) -> "RefundResponseDTO":
        return cls(
            refund_id=refund.id,
            payment_id=refund.payment_id,
            amount=refund.amount,
            reason=refund.reason,
            status=RefundStatus(refund.status).value,
            processor_refund_id=refund.processor_refund_id,
            refunded_at=refund.refunded_at,
            created_at=refund.created_at,
            invoice=invoice,
        )
