"""ReconcileRefund Use Case"""

import logging
from datetime import datetime
from libs.result import Result, Return
from src.app.errors import (
    ExternalProcessorError,
    InvalidStateError,
    LedgerError,
    NotFoundError,
    unexpected_error,
)
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.payment_allocator import PaymentAllocator
from src.app.services.payment_processor import ChargeStatus, PaymentProcessor, PaymentProcessorError
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.refund_repository import RefundRepository
from src.app.use_cases.invoices.common import load_invoice
from src.app.use_cases.invoices.dtos import InvoiceResponseDTO
from src.domain.base import round_money
from src.domain.refund import RefundStatus
from .common import load_payment
from .dtos import RefundReferenceDTO, RefundResponseDTO

logger = logging.getLogger(__name__)


class ReconcileRefund:
    """
    Use Case: Settle a pending refund with the processor

    succeeded -> completed (refunded_at stamped, invoice delta applied);
    failed/canceled -> failed (invoice untouched); anything else leaves it
    pending. Refunds that are no longer pending are returned unchanged.
    A refund whose create call timed out carries no processor id; it is
    looked up by its own id and marked failed when the processor never
    recorded it. Completion is refused when the completed refunds would
    exceed the payment amount. Lock order: refund, payment, invoice.
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

    async def execute(self, command: RefundReferenceDTO) -> Result[RefundResponseDTO]:
        try:
            refund = await self.refund_repo.get_by_id(command.refund_id, for_update=True)
            if not refund:
                raise NotFoundError(code="REFUND_NOT_FOUND", message=f"Refund {command.refund_id} not found")

            if refund.status != RefundStatus.PENDING:
                await self.uow.rollback()
                return Return.ok(RefundResponseDTO.from_entity(refund))

            payment = await load_payment(self.payment_repo, None, refund.payment_id, for_update=True)

            try:
                if refund.processor_refund_id:
                    result = await self.processor.retrieve_refund(refund.processor_refund_id)
                else:
                    result = await self.processor.find_refund_by_reference(
                        payment.processor_charge_id or payment.processor_payment_id, refund.id
                    )
            except PaymentProcessorError as e:
                raise ExternalProcessorError(
                    code="PROCESSOR_UNAVAILABLE",
                    message="Could not fetch the refund status from the processor",
                    reason=e.message,
                )

            if result is None:
                # The create call timed out before the processor recorded anything
                refund.status = RefundStatus.FAILED
                refund = await self.refund_repo.update(refund)
                await self.uow.commit()
                logger.warning(f"Refund {refund.id} was never created at the processor")
                return Return.ok(RefundResponseDTO.from_entity(refund))

            refund.processor_refund_id = result.id

            if result.status in (ChargeStatus.FAILED, ChargeStatus.CANCELED):
                refund.status = RefundStatus.FAILED
                refund = await self.refund_repo.update(refund)
                await self.uow.commit()
                logger.warning(f"Refund {refund.id} failed at the processor ({result.status})")
                return Return.ok(RefundResponseDTO.from_entity(refund))

            if result.status != ChargeStatus.SUCCEEDED:
                refund = await self.refund_repo.update(refund)
                await self.uow.commit()
                logger.info(f"Refund {refund.id} still {result.status} at the processor")
                return Return.ok(RefundResponseDTO.from_entity(refund))

            completed = await self.refund_repo.sum_completed_for_payment(payment.id)
            if round_money(completed + refund.amount) > payment.amount:
                raise InvalidStateError(
                    code="REFUND_EXCEEDS_PAYMENT",
                    message="Completing this refund would return more than was collected",
                    reason=f"refund {refund.id} on payment {payment.payment_number} needs manual review",
                )

            refund.status = RefundStatus.COMPLETED
            refund.refunded_at = datetime.utcnow()
            refund = await self.refund_repo.update(refund)

            invoice_dto = None
            if payment.invoice_id:
                invoice = await load_invoice(
                    self.invoice_repo,
                    payment.account_id,
                    payment.invoice_id,
                    for_update=True,
                    include_deleted=True,
                )
                invoice = await self.allocator.apply_refund(invoice, refund.amount)
                invoice_dto = InvoiceResponseDTO.from_entity(invoice)

            await self.uow.commit()

            logger.info(f"Refund reconciled: {refund.amount} for payment {payment.payment_number}")

            return Return.ok(RefundResponseDTO.from_entity(refund, invoice_dto))

        except LedgerError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to reconcile refund {command.refund_id}: {e}")
            return Return.err(unexpected_error("RECONCILE_REFUND_FAILED", "Failed to reconcile refund", e))
