"""Payment API Routes

FastAPI routes for manual, card and bank payments, refunds and
reconciliation.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.payment_request import (
    RecordPaymentRequestSchema,
    CardPaymentRequestSchema,
    BankPaymentRequestSchema,
    RefundRequestSchema,
)
from src.app.use_cases.payments import (
    RecordManualPayment,
    ProcessCardPayment,
    ProcessBankPayment,
    ReconcilePayment,
    GetPayment,
    ListPayments,
    RefundPayment,
    RecordManualPaymentCommandDTO,
    ProcessCardPaymentCommandDTO,
    ProcessBankPaymentCommandDTO,
    PaymentReferenceDTO,
    ListPaymentsQueryDTO,
    RefundPaymentCommandDTO,
    PaymentResponseDTO,
    PaymentAllocationResponseDTO,
    PaymentListResponseDTO,
    RefundResponseDTO,
)
from src.app.services.payment_allocator import PaymentAllocator
from src.app.services.payment_processor import PaymentProcessor
from src.app.services.sequence_generator import SequenceGenerator
from src.adapter.repositories import (
    SqlAlchemyInvoiceRepository,
    SqlAlchemyPaymentRepository,
    SqlAlchemyRefundRepository,
    SqlAlchemyClientRepository,
    SqlAlchemySequenceRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.domain.payment import PaymentStatus
from src.depends import get_session, get_account_id, get_user_id, get_payment_processor
from src.api.error import ClientError
from config import ApplicationConfig

router = APIRouter(prefix="/payments", tags=["Payments"])

PAYMENT_ERRORS = {
    404: {"description": "Invoice not found"},
    409: {"description": "Invoice is paid or void"},
    422: {
        "description": "Amount is zero or exceeds the balance due",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "PAYMENT_EXCEEDS_BALANCE",
                        "message": "Payment amount (120.00) exceeds balance due (108.00)",
                    }
                }
            }
        },
    },
}


def _allocator(session: AsyncSession) -> PaymentAllocator:
    return PaymentAllocator(
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyPaymentRepository(session),
        SqlAlchemyRefundRepository(session),
    )


def _sequence_generator(session: AsyncSession) -> SequenceGenerator:
    return SequenceGenerator(SqlAlchemySequenceRepository(session), ApplicationConfig.SEQUENCE_MAX_ATTEMPTS)


@router.post(
    "",
    response_model=PaymentAllocationResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses=PAYMENT_ERRORS,
)
async def record_payment(
    request: RecordPaymentRequestSchema,
    account_id: str = Depends(get_account_id),
    user_id: Optional[str] = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    """
    Record a payment received outside the processor (cash, check, ...).

    The payment is completed immediately and the invoice's paid amount,
    balance and status are recomputed. Overpayments are rejected.

    **Returns:**
    - 201: Payment recorded, with the updated invoice
    - 404: Invoice not found
    - 409: Invoice is paid or void
    - 422: Amount exceeds the balance due
    """
    use_case = RecordManualPayment(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyPaymentRepository(session),
        _sequence_generator(session),
        _allocator(session),
    )
    command = RecordManualPaymentCommandDTO(account_id=account_id, created_by=user_id, **request.model_dump())

    result = await use_case.execute(command)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post(
    "/card",
    response_model=PaymentAllocationResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={**PAYMENT_ERRORS, 502: {"description": "Card declined or processor unavailable"}},
)
async def process_card_payment(
    request: CardPaymentRequestSchema,
    account_id: str = Depends(get_account_id),
    user_id: Optional[str] = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
    processor: PaymentProcessor = Depends(get_payment_processor),
):
    """Charge a card. A timeout answers 502 PROCESSOR_TIMEOUT and leaves the payment processing."""
    use_case = ProcessCardPayment(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyPaymentRepository(session),
        SqlAlchemyClientRepository(session),
        _sequence_generator(session),
        _allocator(session),
        processor,
    )
    command = ProcessCardPaymentCommandDTO(account_id=account_id, created_by=user_id, **request.model_dump())

    result = await use_case.execute(command)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post(
    "/bank",
    response_model=PaymentAllocationResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={**PAYMENT_ERRORS, 502: {"description": "Debit rejected or processor unavailable"}},
)
async def process_bank_payment(
    request: BankPaymentRequestSchema,
    account_id: str = Depends(get_account_id),
    user_id: Optional[str] = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
    processor: PaymentProcessor = Depends(get_payment_processor),
):
    """Debit a bank account. The payment stays processing until the debit clears."""
    use_case = ProcessBankPayment(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyPaymentRepository(session),
        SqlAlchemyClientRepository(session),
        _sequence_generator(session),
        _allocator(session),
        processor,
    )
    command = ProcessBankPaymentCommandDTO(account_id=account_id, created_by=user_id, **request.model_dump())

    result = await use_case.execute(command)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("", response_model=PaymentListResponseDTO)
async def list_payments(
    invoice_id: Optional[str] = None,
    status_filter: Optional[PaymentStatus] = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    account_id: str = Depends(get_account_id),
    session: AsyncSession = Depends(get_session),
):
    use_case = ListPayments(SqlAlchemyPaymentRepository(session))
    result = await use_case.execute(
        ListPaymentsQueryDTO(
            account_id=account_id,
            invoice_id=invoice_id,
            status=status_filter,
            limit=limit,
            offset=offset,
        )
    )
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("/{payment_id}", response_model=PaymentResponseDTO, responses={404: {"description": "Payment not found"}})
async def get_payment(
    payment_id: str,
    account_id: str = Depends(get_account_id),
    session: AsyncSession = Depends(get_session),
):
    use_case = GetPayment(SqlAlchemyPaymentRepository(session))
    result = await use_case.execute(PaymentReferenceDTO(account_id=account_id, payment_id=payment_id))
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post(
    "/{payment_id}/refund",
    response_model=RefundResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Payment not found"},
        409: {"description": "Payment not refundable or already fully refunded"},
        422: {"description": "Amount exceeds the refundable amount"},
        502: {"description": "Refund rejected or processor unavailable"},
    },
)
async def refund_payment(
    payment_id: str,
    request: RefundRequestSchema,
    account_id: str = Depends(get_account_id),
    user_id: Optional[str] = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
    processor: PaymentProcessor = Depends(get_payment_processor),
):
    """
    Refund part or all of a completed payment.

    Without `amount` everything still refundable is refunded. A completed
    refund lowers the invoice's paid amount; a paid invoice goes back to
    partial when money is owed again.
    """
    use_case = RefundPayment(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyPaymentRepository(session),
        SqlAlchemyRefundRepository(session),
        _allocator(session),
        processor,
    )
    command = RefundPaymentCommandDTO(
        account_id=account_id,
        payment_id=payment_id,
        amount=request.amount,
        reason=request.reason,
        created_by=user_id,
    )

    result = await use_case.execute(command)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post("/{payment_id}/reconcile", response_model=PaymentAllocationResponseDTO)
async def reconcile_payment(
    payment_id: str,
    account_id: str = Depends(get_account_id),
    session: AsyncSession = Depends(get_session),
    processor: PaymentProcessor = Depends(get_payment_processor),
):
    """Ask the processor for the current state of a pending or processing payment."""
    use_case = ReconcilePayment(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyPaymentRepository(session),
        _allocator(session),
        processor,
    )
    result = await use_case.execute(PaymentReferenceDTO(account_id=account_id, payment_id=payment_id))
    if result.is_err():
        raise ClientError(result.error)
    return result.value
