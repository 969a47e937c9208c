"""ReconcilePayment Use Case

Settles a payment the processor left unresolved (bank debit in flight,
charge that timed out).
"""

import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return
from src.app.errors import ExternalProcessorError, LedgerError, unexpected_error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.payment_allocator import PaymentAllocator
from src.app.services.payment_processor import (
    ChargeResult,
    ChargeStatus,
    PaymentProcessor,
    PaymentProcessorError,
)
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.use_cases.invoices.common import load_invoice
from src.app.use_cases.invoices.dtos import InvoiceResponseDTO
from src.domain.payment import Payment, PaymentStatus, UNRESOLVED_STATUSES
from .common import load_payment
from .dtos import PaymentReferenceDTO, PaymentAllocationResponseDTO, PaymentResponseDTO

logger = logging.getLogger(__name__)


class ReconcilePayment:
    """
    Use Case: Reconcile one pending/processing payment with the processor

    Business Rules:
    1. Resolved payments (completed, settled, failed) are returned unchanged
    2. The charge is looked up by processor id, or by the local payment id
       when the charge id was never received (timeout)
    3. succeeded -> completed; canceled/failed -> failed; otherwise unchanged
    4. A charge the processor has no record of is marked failed
    5. The invoice is recomputed from the full payment set under a row lock

    Flow:
    1. Lock payment
    2. Fetch charge status
    3. Map status
    4. Lock invoice and recompute
    5. Commit transaction
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        payment_repo: PaymentRepository,
        allocator: PaymentAllocator,
        processor: PaymentProcessor,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo
        self.allocator = allocator
        self.processor = processor

    async def execute(self, command: PaymentReferenceDTO) -> Result[PaymentAllocationResponseDTO]:
        try:
            # Step 1: Lock payment
            payment = await load_payment(
                self.payment_repo, command.account_id, command.payment_id, for_update=True
            )

            if payment.status not in UNRESOLVED_STATUSES:
                await self.uow.rollback()
                return Return.ok(PaymentAllocationResponseDTO(payment=PaymentResponseDTO.from_entity(payment)))

            # Step 2: Charge status
            try:
                if payment.processor_payment_id:
                    charge = await self.processor.retrieve_charge(payment.processor_payment_id)
                else:
                    charge = await self.processor.find_charge_by_reference(payment.id)
            except PaymentProcessorError as e:
                raise ExternalProcessorError(
                    code="PROCESSOR_UNAVAILABLE",
                    message="Could not fetch the charge status from the processor",
                    reason=e.message,
                )

            # Step 3: Map status
            previous = payment.status
            payment.status = self._map_status(payment, charge)
            if charge is not None:
                payment.processor_payment_id = payment.processor_payment_id or charge.id
                payment.processor_charge_id = payment.processor_charge_id or charge.charge_ref
                payment.card_last4 = payment.card_last4 or charge.card_last4
                payment.card_brand = payment.card_brand or charge.card_brand

            if payment.status == previous:
                await self.uow.rollback()
                logger.info(f"Payment {payment.payment_number} still {previous.value}")
                return Return.ok(PaymentAllocationResponseDTO(payment=PaymentResponseDTO.from_entity(payment)))

            now = datetime.utcnow()
            if payment.status == PaymentStatus.COMPLETED:
                payment.settled_date = now
            payment.updated_at = now
            payment = await self.payment_repo.update(payment)

            # Step 4: Recompute invoice
            invoice_dto = None
            if payment.invoice_id:
                invoice = await load_invoice(
                    self.invoice_repo,
                    payment.account_id,
                    payment.invoice_id,
                    for_update=True,
                    include_deleted=True,
                )
                invoice = await self.allocator.recompute(invoice)
                invoice_dto = InvoiceResponseDTO.from_entity(invoice)

            # Step 5: Commit transaction
            await self.uow.commit()

            logger.info(
                f"Payment reconciled: {payment.payment_number} "
                f"{previous.value} -> {payment.status.value}"
            )

            return Return.ok(
                PaymentAllocationResponseDTO(
                    payment=PaymentResponseDTO.from_entity(payment),
                    invoice=invoice_dto,
                )
            )

        except LedgerError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to reconcile payment {command.payment_id}: {e}")
            return Return.err(unexpected_error("RECONCILE_PAYMENT_FAILED", "Failed to reconcile payment", e))

    @staticmethod
    def _map_status(payment: Payment, charge: Optional[ChargeResult]) -> PaymentStatus:
        if charge is None:
            logger.warning(f"Processor has no charge for payment {payment.payment_number}; marking failed")
            return PaymentStatus.FAILED
        if charge.status == ChargeStatus.SUCCEEDED:
            return PaymentStatus.COMPLETED
        if charge.status in (ChargeStatus.CANCELED, ChargeStatus.FAILED):
            return PaymentStatus.FAILED
        return payment.status
