"""
List Invoices Use Case

Paginated invoice listing for an account, newest first.
"""
from datetime import datetime
from libs.result import Result, Return
from src.app.repositories.invoice_repository import InvoiceRepository
from .dtos import ListInvoicesQueryDTO, InvoiceListResponseDTO, InvoiceResponseDTO


class ListInvoices:
    """
    Use case: List invoices

    Filters by status and client; overdue_only keeps unpaid, non-void
    invoices whose due date has passed. Tombstoned invoices are excluded
    unless include_deleted is set. Line items are not loaded here.
    """

    def __init__(self, invoice_repo: InvoiceRepository):
        self.invoice_repo = invoice_repo

    async def execute(self, query: ListInvoicesQueryDTO) -> Result[InvoiceListResponseDTO]:
        overdue_as_of = datetime.utcnow().date() if query.overdue_only else None

        filters = dict(
            account_id=query.account_id,
            status=query.status,
            client_id=query.client_id,
            overdue_as_of=overdue_as_of,
            include_deleted=query.include_deleted,
        )

        invoices = await self.invoice_repo.list(limit=query.limit, offset=query.offset, **filters)
        total = await self.invoice_repo.count(**filters)

        return Return.ok(
            InvoiceListResponseDTO(
                items=[InvoiceResponseDTO.from_entity(invoice) for invoice in invoices],
                total=total,
                limit=query.limit,
                offset=query.offset,
            )
        )
