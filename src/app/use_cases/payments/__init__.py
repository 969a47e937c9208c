"""Payment and refund use cases"""
from .record_manual_payment import RecordManualPayment
from .process_card_payment import ProcessCardPayment
from .process_bank_payment import ProcessBankPayment
from .reconcile_payment import ReconcilePayment
from .get_payment import GetPayment
from .list_payments import ListPayments
from .refund_payment import RefundPayment
from .reconcile_refund import ReconcileRefund
from .dtos import (
    RecordManualPaymentCommandDTO,
    ProcessCardPaymentCommandDTO,
    ProcessBankPaymentCommandDTO,
    PaymentReferenceDTO,
    ListPaymentsQueryDTO,
    RefundPaymentCommandDTO,
    RefundReferenceDTO,
    PaymentResponseDTO,
    PaymentAllocationResponseDTO,
    PaymentListResponseDTO,
    RefundResponseDTO,
)

__all__ = [
    "RecordManualPayment",
    "ProcessCardPayment",
    "ProcessBankPayment",
    "ReconcilePayment",
    "GetPayment",
    "ListPayments",
    "RefundPayment",
    "ReconcileRefund",
    "RecordManualPaymentCommandDTO",
    "ProcessCardPaymentCommandDTO",
    "ProcessBankPaymentCommandDTO",
    "PaymentReferenceDTO",
    "ListPaymentsQueryDTO",
    "RefundPaymentCommandDTO",
    "RefundReferenceDTO",
    "PaymentResponseDTO",
    "PaymentAllocationResponseDTO",
    "PaymentListResponseDTO",
    "RefundResponseDTO",
]
