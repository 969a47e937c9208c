"""SweepOverdueInvoices Use Case

Moves sent invoices past their due date to overdue.
"""

import logging
from datetime import datetime
from libs.result import Result, Return
from src.app.errors import unexpected_error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from .dtos import SweepOverdueCommandDTO, OverdueSweepResultDTO

logger = logging.getLogger(__name__)


class SweepOverdueInvoices:
    """
    Use Case: Overdue sweep

    Business Rules:
    1. Only non-deleted invoices in status sent with due_date < today change
    2. partial invoices stay partial even when past due
    3. Idempotent: a second run on the same day changes nothing
    """

    def __init__(self, uow: UnitOfWork, invoice_repo: InvoiceRepository):
        self.uow = uow
        self.invoice_repo = invoice_repo

    async def execute(self, command: SweepOverdueCommandDTO) -> Result[OverdueSweepResultDTO]:
        today = command.today or datetime.utcnow().date()

        try:
            invoice_ids = await self.invoice_repo.mark_overdue(today, account_id=command.account_id)
            await self.uow.commit()

            if invoice_ids:
                logger.info(f"Updated {len(invoice_ids)} invoices to overdue status (as of {today})")

            return Return.ok(
                OverdueSweepResultDTO(
                    as_of=today,
                    marked_overdue=len(invoice_ids),
                    invoice_ids=invoice_ids,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Overdue sweep failed: {e}")
            return Return.err(unexpected_error("OVERDUE_SWEEP_FAILED", "Failed to sweep overdue invoices", e))
