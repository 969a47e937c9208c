"""MarkInvoiceViewed Use Case"""

import logging
from datetime import datetime
from libs.result import Result, Return
from src.app.errors import LedgerError, unexpected_error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_line_item_repository import InvoiceLineItemRepository
from .common import load_invoice
from .dtos import InvoiceReferenceDTO, InvoiceResponseDTO

logger = logging.getLogger(__name__)


class MarkInvoiceViewed:
    """
    Use Case: Record that the client opened the invoice

    Only the first view is recorded. Status never changes.
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

            if invoice.viewed_at is None:
                invoice.viewed_at = datetime.utcnow()
                invoice = await self.invoice_repo.update(invoice)
                await self.uow.commit()
                logger.info(f"Invoice viewed: {invoice.invoice_number}")

            line_items = await self.line_item_repo.get_by_invoice_id(invoice.id)
            return Return.ok(InvoiceResponseDTO.from_entity(invoice, line_items))

        except LedgerError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to mark invoice {command.invoice_id} viewed: {e}")
            return Return.err(
                unexpected_error("MARK_INVOICE_VIEWED_FAILED", "Failed to mark invoice viewed", e)
            )
