"""GetInvoice Use Case"""

from libs.result import Result, Return
from src.app.errors import LedgerError
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_line_item_repository import InvoiceLineItemRepository
from .common import load_invoice
from .dtos import InvoiceReferenceDTO, InvoiceResponseDTO


class GetInvoice:
    """Use case: fetch one invoice of an account with its line items"""

    def __init__(self, invoice_repo: InvoiceRepository, line_item_repo: InvoiceLineItemRepository):
        self.invoice_repo = invoice_repo
        self.line_item_repo = line_item_repo

    async def execute(self, query: InvoiceReferenceDTO) -> Result[InvoiceResponseDTO]:
        try:
            invoice = await load_invoice(
                self.invoice_repo,
                query.account_id,
                query.invoice_id,
                include_deleted=query.include_deleted,
            )
        except LedgerError as e:
            return Return.err(e.to_error())

        line_items = await self.line_item_repo.get_by_invoice_id(invoice.id)
        return Return.ok(InvoiceResponseDTO.from_entity(invoice, line_items))
