"""VoidInvoice Use Case"""

import logging
from datetime import datetime
from libs.result import Result, Return
from src.app.errors import LedgerError, InvalidStateError, unexpected_error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_line_item_repository import InvoiceLineItemRepository
from src.domain.invoice import InvoiceStatus
from .common import load_invoice
from .dtos import InvoiceReferenceDTO, InvoiceResponseDTO

logger = logging.getLogger(__name__)


class VoidInvoice:
    """
    Use Case: Void an invoice

    Business Rules:
    1. paid invoices cannot be voided
    2. Invoices holding money (amount_paid > 0) cannot be voided; refund first
    3. void is terminal
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        line_item_repo: InvoiceLineItemRepository,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.line_item_repo = line_item_repo

    async def execute(self, command: InvoiceReferenceDTO) -> Result[InvoiceResponseDTO]:
        try:
            invoice = await load_invoice(
                self.invoice_repo, command.account_id, command.invoice_id, for_update=True
            )

            if invoice.status == InvoiceStatus.VOID:
                raise InvalidStateError(
                    code="INVOICE_ALREADY_VOID",
                    message=f"Invoice {invoice.invoice_number} is already void",
                )
            if invoice.status == InvoiceStatus.PAID:
                raise InvalidStateError(
                    code="INVOICE_PAID",
                    message="Cannot void a paid invoice. Refund the payments first.",
                    reason=f"invoice_number={invoice.invoice_number}",
                )
            if invoice.amount_paid > 0:
                raise InvalidStateError(
                    code="INVOICE_HAS_PAYMENTS",
                    message="Cannot void an invoice with payments. Refund the payments first.",
                    reason=f"amount_paid={invoice.amount_paid}",
                )

            invoice.status = InvoiceStatus.VOID
            invoice.updated_at = datetime.utcnow()
            updated_invoice = await self.invoice_repo.update(invoice)
            line_items = await self.line_item_repo.get_by_invoice_id(invoice.id)

            await self.uow.commit()

            logger.info(f"Invoice voided: {updated_invoice.invoice_number}")

            return Return.ok(InvoiceResponseDTO.from_entity(updated_invoice, line_items))

        except LedgerError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to void invoice {command.invoice_id}: {e}")
            return Return.err(unexpected_error("VOID_INVOICE_FAILED", "Failed to void invoice", e))
