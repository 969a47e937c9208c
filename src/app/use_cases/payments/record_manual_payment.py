"""RecordManualPayment Use Case

Records cash, check and other offline payments against an invoice.
"""

import logging
from datetime import datetime
from libs.result import Result, Return
from src.app.errors import LedgerError, unexpected_error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.sequence_generator import SequenceGenerator
from src.app.services.payment_allocator import PaymentAllocator
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.use_cases.invoices.dtos import InvoiceResponseDTO
from src.domain.base import round_money
from src.domain.payment import Payment, PaymentStatus
from src.domain.sequence import SequenceType
from .common import load_payable_invoice
from .dtos import RecordManualPaymentCommandDTO, PaymentAllocationResponseDTO, PaymentResponseDTO

logger = logging.getLogger(__name__)


class RecordManualPayment:
    """
    Use Case: Record a manual payment

    Business Rules:
    1. Invoice must exist in the account, not be deleted, paid or void
    2. 0 < amount <= balance_due; overpayment is rejected, never capped
    3. Manual payments are completed immediately
    4. amount_paid is recomputed from the full payment set
    5. Invoice row is locked for the whole allocation (SELECT FOR UPDATE)

    Flow:
    1. Lock invoice and validate amount
    2. Allocate payment number
    3. Insert payment (completed)
    4. Recompute invoice balance and status
    5. Commit transaction
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        payment_repo: PaymentRepository,
        sequence_generator: SequenceGenerator,
        allocator: PaymentAllocator,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo
        self.sequence_generator = sequence_generator
        self.allocator = allocator

    async def execute(self, command: RecordManualPaymentCommandDTO) -> Result[PaymentAllocationResponseDTO]:
        try:
            # Step 1: Lock and validate
            invoice = await load_payable_invoice(
                self.invoice_repo, command.account_id, command.invoice_id, command.amount
            )

            # Step 2: Payment number
            payment_number = await self.sequence_generator.next_number(
                command.account_id, SequenceType.PAYMENT
            )

            # Step 3: Insert payment
            now = datetime.utcnow()
            payment = Payment(
                account_id=command.account_id,
                client_id=invoice.client_id,
                invoice_id=invoice.id,
                payment_number=payment_number,
                amount=round_money(command.amount),
                currency=invoice.currency,
                payment_method=command.payment_method,
                status=PaymentStatus.COMPLETED,
                payment_date=command.payment_date or now,
                notes=command.notes,
                created_by=command.created_by,
            )
            created_payment = await self.payment_repo.create(payment)

            # Step 4: Recompute invoice
            invoice = await self.allocator.recompute(invoice)

            # Step 5: Commit transaction
            await self.uow.commit()

            logger.info(
                f"Payment recorded: {created_payment.payment_number} "
                f"amount={created_payment.amount} for invoice {invoice.invoice_number}"
            )

            return Return.ok(
                PaymentAllocationResponseDTO(
                    payment=PaymentResponseDTO.from_entity(created_payment),
                    invoice=InvoiceResponseDTO.from_entity(invoice),
                )
            )

        except LedgerError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to record payment on invoice {command.invoice_id}: {e}")
            return Return.err(unexpected_error("RECORD_PAYMENT_FAILED", "Failed to record payment", e))
