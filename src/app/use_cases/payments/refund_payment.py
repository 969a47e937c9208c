"""RefundPayment Use Case

Refunds part or all of a collected payment and reverses its effect on the invoice.
"""

import logging
from datetime import datetime
from libs.result import Result, Return
from src.app.errors import (
    ExternalProcessorError,
    InvalidStateError,
    LedgerError,
    ValidationFailureError,
    unexpected_error,
)
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.payment_allocator import PaymentAllocator
from src.app.services.payment_processor import (
    ChargeStatus,
    PaymentProcessor,
    PaymentProcessorError,
    PaymentProcessorTimeout,
)
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.refund_repository import RefundRepository
from src.app.use_cases.invoices.common import load_invoice
from src.app.use_cases.invoices.dtos import InvoiceResponseDTO
from src.domain.base import round_money
from src.domain.payment import Payment, COLLECTED_STATUSES
from src.domain.refund import Refund, RefundStatus
from .common import load_payment
from .dtos import RefundPaymentCommandDTO, RefundResponseDTO

logger = logging.getLogger(__name__)


class RefundPayment:
    """
    Use Case: Refund a payment

    Business Rules:
    1. Only completed or settled payments can be refunded
    2. refundable = payment amount - pending and completed refunds; nothing
       left -> invalid state
    3. amount defaults to refundable and must satisfy 0 < amount <= refundable
    4. Payment and invoice rows are locked (SELECT FOR UPDATE)
    5. Processor-backed payments are refunded at the processor; manual
       payments complete immediately
    6. A completed refund lowers amount_paid and raises balance_due by the
       same amount; paid falls back to partial when money is owed again
    7. A processor timeout stores the refund as pending and reports the error

    Flow:
    1. Lock payment and compute refundable amount
    2. Validate requested amount
    3. Lock invoice
    4. Refund at the processor (processor-backed payments only)
    5. Insert refund and apply it to the invoice when completed
    6. Commit transaction
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        payment_repo: PaymentRepository,
        refund_repo: RefundRepository,
        allocator: PaymentAllocator,
        processor: PaymentProcessor,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo
        self.refund_repo = refund_repo
        self.allocator = allocator
        self.processor = processor

    async def execute(self, command: RefundPaymentCommandDTO) -> Result[RefundResponseDTO]:
        try:
            # Step 1: Lock payment
            payment = await load_payment(
                self.payment_repo, command.account_id, command.payment_id, for_update=True
            )

            if payment.status not in COLLECTED_STATUSES:
                raise InvalidStateError(
                    code="PAYMENT_NOT_REFUNDABLE",
                    message="Can only refund completed or settled payments",
                    reason=f"payment {payment.payment_number} is {payment.status.value}",
                )

            refunded = await self.refund_repo.sum_outstanding_for_payment(payment.id)
            refundable = round_money(payment.amount - refunded)
            if refundable <= 0:
                raise InvalidStateError(
                    code="PAYMENT_FULLY_REFUNDED",
                    message="Payment has already been fully refunded",
                    reason=f"payment {payment.payment_number}",
                )

            # Step 2: Requested amount
            amount = round_money(command.amount) if command.amount is not None else refundable
            if amount <= 0 or amount > refundable:
                raise ValidationFailureError(
                    code="REFUND_EXCEEDS_REFUNDABLE",
                    message=f"Refund amount ({amount}) exceeds refundable amount ({refundable})",
                    reason=f"payment {payment.payment_number}",
                )

            # Step 3: Lock invoice
            invoice = None
            if payment.invoice_id:
                invoice = await load_invoice(
                    self.invoice_repo,
                    payment.account_id,
                    payment.invoice_id,
                    for_update=True,
                    include_deleted=True,
                )

            refund = Refund(
                payment_id=payment.id,
                amount=amount,
                reason=command.reason,
                status=RefundStatus.PENDING,
                created_by=command.created_by,
            )

            # Step 4: Processor refund
            timed_out = None
            if self._is_processor_backed(payment):
                try:
                    result = await self.processor.create_refund(
                        charge_ref=payment.processor_charge_id or payment.processor_payment_id,
                        amount=amount,
                        reason=command.reason,
                        metadata={
                            "account_id": payment.account_id,
                            "payment_id": payment.id,
                            "payment_number": payment.payment_number,
                            "refund_id": refund.id,
                        },
                    )
                except PaymentProcessorTimeout as e:
                    timed_out = e
                except PaymentProcessorError as e:
                    raise ExternalProcessorError(
                        code="REFUND_DECLINED",
                        message="The refund was rejected by the processor",
                        reason=e.message,
                    )
                else:
                    if result.status in (ChargeStatus.FAILED, ChargeStatus.CANCELED):
                        raise ExternalProcessorError(
                            code="REFUND_DECLINED",
                            message="The refund was rejected by the processor",
                            reason=f"refund {result.id} status {result.status}",
                        )
                    refund.processor_refund_id = result.id
                    if result.status == ChargeStatus.SUCCEEDED:
                        refund.status = RefundStatus.COMPLETED
            else:
                refund.status = RefundStatus.COMPLETED

            # Step 5: Insert and apply
            if refund.status == RefundStatus.COMPLETED:
                refund.refunded_at = datetime.utcnow()
            created_refund = await self.refund_repo.create(refund)

            if created_refund.status == RefundStatus.COMPLETED and invoice is not None:
                invoice = await self.allocator.apply_refund(invoice, amount)

            # Step 6: Commit transaction
            await self.uow.commit()

            if timed_out is not None:
                logger.error(
                    f"Processor timed out refunding payment {payment.payment_number}; "
                    f"refund {created_refund.id} left pending"
                )
                return Return.err(
                    ExternalProcessorError(
                        code="PROCESSOR_TIMEOUT",
                        message="The payment processor did not answer in time; the refund is pending",
                        reason=timed_out.message,
                    ).to_error()
                )

            logger.info(
                f"Refund processed: {amount} for payment {payment.payment_number} "
                f"status={created_refund.status.value}"
            )

            return Return.ok(
                RefundResponseDTO.from_entity(
                    created_refund,
                    InvoiceResponseDTO.from_entity(invoice) if invoice is not None else None,
                )
            )

        except LedgerError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to refund payment {command.payment_id}: {e}")
            return Return.err(unexpected_error("REFUND_PAYMENT_FAILED", "Failed to refund payment", e))

    @staticmethod
    def _is_processor_backed(payment: Payment) -> bool:
        return bool(
            payment.payment_processor
            and (payment.processor_charge_id or payment.processor_payment_id)
        )
