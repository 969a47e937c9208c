"""SendInvoice Use Case

Marks an invoice as sent and emails it to the client.
"""

import logging
from datetime import datetime
from libs.result import Result, Return
from src.app.errors import LedgerError, InvalidStateError, unexpected_error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import NotificationService
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_line_item_repository import InvoiceLineItemRepository
from src.app.repositories.client_repository import ClientRepository
from src.domain.client import Client
from src.domain.invoice import Invoice, InvoiceStatus
from .common import load_invoice
from .dtos import InvoiceReferenceDTO, InvoiceResponseDTO

logger = logging.getLogger(__name__)


class SendInvoice:
    """
    Use Case: Send an invoice to its client

    Business Rules:
    1. void and paid invoices cannot be sent
    2. draft becomes sent; resending a sent/partial/overdue invoice only
       refreshes sent_at
    3. The email is best effort: a delivery failure is logged and never
       undoes the status change

    Flow:
    1. Load invoice with lock
    2. Validate status
    3. Stamp sent_at, move draft to sent
    4. Commit transaction
    5. Email the client
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        line_item_repo: InvoiceLineItemRepository,
        client_repo: ClientRepository,
        notification_service: NotificationService,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.line_item_repo = line_item_repo
        self.client_repo = client_repo
        self.notification_service = notification_service

    async def execute(self, command: InvoiceReferenceDTO) -> Result[InvoiceResponseDTO]:
        try:
            # Step 1: Load with lock
            invoice = await load_invoice(
                self.invoice_repo, command.account_id, command.invoice_id, for_update=True
            )

            # Step 2: Validate status
            if invoice.status in (InvoiceStatus.VOID, InvoiceStatus.PAID):
                raise InvalidStateError(
                    code="INVOICE_NOT_SENDABLE",
                    message=f"Cannot send a {invoice.status.value} invoice",
                    reason=f"invoice_number={invoice.invoice_number}",
                )

            # Step 3: Stamp and transition
            now = datetime.utcnow()
            invoice.sent_at = now
            if invoice.status == InvoiceStatus.DRAFT:
                invoice.status = InvoiceStatus.SENT
            invoice.updated_at = now

            updated_invoice = await self.invoice_repo.update(invoice)
            line_items = await self.line_item_repo.get_by_invoice_id(invoice.id)
            client = await self.client_repo.get_by_id(command.account_id, invoice.client_id)

            # Step 4: Commit transaction
            await self.uow.commit()

            logger.info(f"Invoice sent: {updated_invoice.invoice_number}")

        except LedgerError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to send invoice {command.invoice_id}: {e}")
            return Return.err(unexpected_error("SEND_INVOICE_FAILED", "Failed to send invoice", e))

        # Step 5: Best-effort email
        await self._email_client(updated_invoice, client)

        return Return.ok(InvoiceResponseDTO.from_entity(updated_invoice, line_items))

    async def _email_client(self, invoice: Invoice, client: Client) -> None:
        if not client or not client.email:
            logger.warning(f"Invoice {invoice.invoice_number} sent without email: client has no address")
            return

        subject = f"Invoice {invoice.invoice_number} from your service provider"
        body = (
            f"Hello {client.display_name},\n\n"
            f"Invoice {invoice.invoice_number} ({invoice.title}) is ready.\n"
            f"Total: {invoice.total} {invoice.currency}\n"
            f"Balance due: {invoice.balance_due} {invoice.currency}\n"
            f"Due date: {invoice.due_date.isoformat()}\n"
        )

        message_id = await self.notification_service.send_email(client.email, subject, body)
        if message_id is None:
            logger.warning(f"Invoice email for {invoice.invoice_number} was not delivered to {client.email}")
        else:
            logger.info(f"Invoice email for {invoice.invoice_number} delivered: message_id={message_id}")
