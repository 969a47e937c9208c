"""DeleteInvoice Use Case

Soft delete: the row stays, flagged and timestamped, and disappears from reads.
"""

import logging
from datetime import datetime
from libs.result import Result, Return
from src.app.errors import LedgerError, InvalidStateError, unexpected_error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import InvoiceStatus
from .common import load_invoice
from .dtos import InvoiceReferenceDTO, InvoiceResponseDTO

logger = logging.getLogger(__name__)


class DeleteInvoice:
    """
    Use Case: Tombstone an invoice

    Business Rules:
    1. paid invoices cannot be deleted
    2. Invoices with money received cannot be deleted
    3. invoice_number stays allocated; it is never reused
    """

    def __init__(self, uow: UnitOfWork, invoice_repo: InvoiceRepository):
        self.uow = uow
        self.invoice_repo = invoice_repo

    async def execute(self, command: InvoiceReferenceDTO) -> Result[InvoiceResponseDTO]:
        try:
            invoice = await load_invoice(
                self.invoice_repo, command.account_id, command.invoice_id, for_update=True
            )

            if invoice.status == InvoiceStatus.PAID:
                raise InvalidStateError(
                    code="INVOICE_PAID",
                    message="Cannot delete a paid invoice",
                    reason=f"invoice_number={invoice.invoice_number}",
                )
            if invoice.amount_paid > 0:
                raise InvalidStateError(
                    code="INVOICE_HAS_PAYMENTS",
                    message="Cannot delete an invoice with payments",
                    reason=f"amount_paid={invoice.amount_paid}",
                )

            now = datetime.utcnow()
            invoice.is_deleted = True
            invoice.deleted_at = now
            invoice.updated_at = now
            deleted_invoice = await self.invoice_repo.update(invoice)

            await self.uow.commit()

            logger.info(f"Invoice deleted: {deleted_invoice.invoice_number}")

            return Return.ok(InvoiceResponseDTO.from_entity(deleted_invoice))

        except LedgerError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to delete invoice {command.invoice_id}: {e}")
            return Return.err(unexpected_error("DELETE_INVOICE_FAILED", "Failed to delete invoice", e))
