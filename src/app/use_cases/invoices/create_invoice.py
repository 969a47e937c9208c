"""CreateInvoice Use Case

Creates a draft invoice from line items with an allocated invoice number.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from libs.result import Result, Return
from src.app.errors import LedgerError, NotFoundError, ValidationFailureError, unexpected_error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.sequence_generator import SequenceGenerator
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_line_item_repository import InvoiceLineItemRepository
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.job_repository import JobRepository
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.sequence import SequenceType
from .common import build_line_items, compute_totals, apply_totals
from .dtos import CreateInvoiceCommandDTO, InvoiceResponseDTO

logger = logging.getLogger(__name__)


class CreateInvoice:
    """
    Use Case: Create a draft invoice

    Business Rules:
    1. Client (and job, when given) must belong to the account
    2. Invoice number comes from the account's invoice sequence (INV-00001)
    3. Totals are computed from line items; discount may not exceed subtotal + tax
    4. Invoice starts as draft with amount_paid = 0 and balance_due = total
    5. due_date defaults to invoice_date + payment_terms days

    Flow:
    1. Validate client and job
    2. Build line items and compute totals
    3. Allocate invoice number
    4. Persist invoice and line items
    5. Commit transaction
    6. Return response
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        line_item_repo: InvoiceLineItemRepository,
        client_repo: ClientRepository,
        job_repo: JobRepository,
        sequence_generator: SequenceGenerator,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.line_item_repo = line_item_repo
        self.client_repo = client_repo
        self.job_repo = job_repo
        self.sequence_generator = sequence_generator

    async def execute(self, command: CreateInvoiceCommandDTO) -> Result[InvoiceResponseDTO]:
        try:
            # Step 1: Validate collaborators inside the account
            client = await self.client_repo.get_by_id(command.account_id, command.client_id)
            if not client:
                raise NotFoundError(
                    code="CLIENT_NOT_FOUND",
                    message=f"Client {command.client_id} not found",
                    reason=f"No client with that id in account {command.account_id}",
                )

            if command.job_id:
                job = await self.job_repo.get_by_id(command.account_id, command.job_id)
                if not job:
                    raise NotFoundError(
                        code="JOB_NOT_FOUND",
                        message=f"Job {command.job_id} not found",
                        reason=f"No job with that id in account {command.account_id}",
                    )

            invoice_date = command.invoice_date or datetime.utcnow().date()
            due_date = command.due_date or invoice_date + timedelta(days=command.payment_terms)
            if due_date < invoice_date:
                raise ValidationFailureError(
                    code="INVALID_DUE_DATE",
                    message="Due date cannot be before the invoice date",
                    reason=f"invoice_date={invoice_date}, due_date={due_date}",
                )

            # Step 2: Line items and totals
            line_items = build_line_items(command.line_items)
            totals = compute_totals(line_items, command.tax_rate, command.discount_amount)

            # Step 3: Allocate invoice number
            invoice_number = await self.sequence_generator.next_number(
                command.account_id, SequenceType.INVOICE
            )

            # Step 4: Persist invoice and line items
            invoice = Invoice(
                account_id=command.account_id,
                client_id=command.client_id,
                job_id=command.job_id,
                invoice_number=invoice_number,
                title=command.title,
                description=command.description,
                status=InvoiceStatus.DRAFT,
                currency=command.currency.upper(),
                invoice_date=invoice_date,
                due_date=due_date,
                payment_terms=command.payment_terms,
                notes=command.notes,
                terms=command.terms,
                created_by=command.created_by,
            )
            apply_totals(invoice, totals, command.tax_rate)
            invoice.amount_paid = Decimal("0.00")
            invoice.refresh_balance()

            created_invoice = await self.invoice_repo.create(invoice)
            saved_items = await self.line_item_repo.replace_for_invoice(created_invoice.id, line_items)

            # Step 5: Commit transaction
            await self.uow.commit()

            logger.info(
                f"Invoice created: {created_invoice.invoice_number} "
                f"account={command.account_id} total={created_invoice.total}"
            )

            # Step 6: Build response
            return Return.ok(InvoiceResponseDTO.from_entity(created_invoice, saved_items))

        except LedgerError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to create invoice for account {command.account_id}: {e}")
            return Return.err(unexpected_error("CREATE_INVOICE_FAILED", "Failed to create invoice", e))
