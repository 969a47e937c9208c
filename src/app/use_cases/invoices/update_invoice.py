"""UpdateInvoice Use Case

Edits an open invoice and re-derives its totals, balance and status.
"""

import logging
from datetime import datetime, timedelta
from libs.result import Result, Return
from src.app.errors import LedgerError, InvalidStateError, ValidationFailureError, unexpected_error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_line_item_repository import InvoiceLineItemRepository
from .common import load_invoice, build_line_items, compute_totals, apply_totals
from .dtos import UpdateInvoiceCommandDTO, InvoiceResponseDTO

logger = logging.getLogger(__name__)


class UpdateInvoice:
    """
    Use Case: Edit an invoice

    Business Rules:
    1. paid and void invoices are frozen
    2. Supplied line items replace the stored set as a whole
    3. A tax or discount change without line items recomputes from the stored items
    4. balance_due = total - amount_paid; with money already received the
       payment status rule is re-applied (a smaller total can make it paid)
    5. invoice_number never changes

    Flow:
    1. Load invoice with lock (SELECT FOR UPDATE)
    2. Reject paid/void
    3. Patch descriptive fields
    4. Recompute financials if line items, tax or discount changed
    5. Persist and commit
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

    async def execute(self, command: UpdateInvoiceCommandDTO) -> Result[InvoiceResponseDTO]:
        try:
            # Step 1: Load with lock
            invoice = await load_invoice(
                self.invoice_repo, command.account_id, command.invoice_id, for_update=True
            )

            # Step 2: Frozen states
            if invoice.is_terminal:
                raise InvalidStateError(
                    code="INVOICE_NOT_EDITABLE",
                    message=f"Cannot edit a {invoice.status.value} invoice",
                    reason=f"invoice_number={invoice.invoice_number}",
                )

            # Step 3: Descriptive fields
            if command.title is not None:
                invoice.title = command.title
            if command.description is not None:
                invoice.description = command.description
            if command.notes is not None:
                invoice.notes = command.notes
            if command.terms is not None:
                invoice.terms = command.terms
            if command.payment_terms is not None:
                invoice.payment_terms = command.payment_terms
                if command.due_date is None:
                    invoice.due_date = invoice.invoice_date + timedelta(days=command.payment_terms)
            if command.due_date is not None:
                invoice.due_date = command.due_date
            if invoice.due_date < invoice.invoice_date:
                raise ValidationFailureError(
                    code="INVALID_DUE_DATE",
                    message="Due date cannot be before the invoice date",
                    reason=f"invoice_date={invoice.invoice_date}, due_date={invoice.due_date}",
                )

            # Step 4: Financials
            saved_items = None
            if command.changes_financials:
                if command.line_items is not None:
                    line_items = build_line_items(command.line_items)
                else:
                    line_items = await self.line_item_repo.get_by_invoice_id(invoice.id)

                tax_rate = command.tax_rate if command.tax_rate is not None else invoice.tax_rate
                discount = (
                    command.discount_amount
                    if command.discount_amount is not None
                    else invoice.discount_amount
                )

                totals = compute_totals(line_items, tax_rate, discount)
                apply_totals(invoice, totals, tax_rate)

                if command.line_items is not None:
                    saved_items = await self.line_item_repo.replace_for_invoice(invoice.id, line_items)

                invoice.refresh_balance()
                if invoice.amount_paid > 0:
                    invoice.apply_payment_status()

                if invoice.is_overpaid:
                    logger.warning(
                        f"Invoice {invoice.invoice_number} is overpaid after edit: "
                        f"total={invoice.total}, amount_paid={invoice.amount_paid}"
                    )

            # Step 5: Persist and commit
            invoice.updated_at = datetime.utcnow()
            updated_invoice = await self.invoice_repo.update(invoice)
            if saved_items is None:
                saved_items = await self.line_item_repo.get_by_invoice_id(invoice.id)

            await self.uow.commit()

            logger.info(
                f"Invoice updated: {updated_invoice.invoice_number} "
                f"total={updated_invoice.total} balance_due={updated_invoice.balance_due}"
            )

            return Return.ok(InvoiceResponseDTO.from_entity(updated_invoice, saved_items))

        except LedgerError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to update invoice {command.invoice_id}: {e}")
            return Return.err(unexpected_error("UPDATE_INVOICE_FAILED", "Failed to update invoice", e))
