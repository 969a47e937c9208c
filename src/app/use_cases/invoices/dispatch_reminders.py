"""DispatchReminders Use Case

Emails payment reminders for invoices that are due soon or overdue.
"""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import NamedTuple, Optional
from libs.result import Result, Return
from src.app.errors import unexpected_error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import NotificationService
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.client_repository import ClientRepository
from src.domain.client import Client
from src.domain.invoice import Invoice, InvoiceStatus
from .dtos import DispatchRemindersCommandDTO, ReminderDispatchResultDTO

logger = logging.getLogger(__name__)


class ReminderCandidate(NamedTuple):
    """Invoice fields a reminder needs, detached from the session"""

    id: str
    account_id: str
    client_id: str
    invoice_number: str
    title: str
    status: InvoiceStatus
    due_date: date
    balance_due: Decimal
    currency: str
    last_reminder_sent_at: Optional[datetime]

    @classmethod
    def from_entity(cls, invoice: Invoice) -> "ReminderCandidate":
        return cls(
            id=invoice.id,
            account_id=invoice.account_id,
            client_id=invoice.client_id,
            invoice_number=invoice.invoice_number,
            title=invoice.title,
            status=invoice.status,
            due_date=invoice.due_date,
            balance_due=invoice.balance_due,
            currency=invoice.currency,
            last_reminder_sent_at=invoice.last_reminder_sent_at,
        )


class DispatchReminders:
    """
    Use Case: Payment reminders

    Business Rules:
    1. Candidates: sent invoices due within lead_days, and every overdue invoice
    2. An invoice reminded less than interval_days ago is skipped
    3. The reminder stamp (last_reminder_sent_at, reminder_count) is written
       only when the dispatcher returns a message id, so an undelivered
       reminder is retried on the next run
    4. Each stamp commits on its own; one failing invoice does not undo the others

    Flow:
    1. Load candidates
    2. For each candidate:
       a. Skip if reminded recently or the client has no email
       b. Send reminder
       c. Stamp and commit if delivered
    3. Return counts
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        client_repo: ClientRepository,
        notification_service: NotificationService,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.client_repo = client_repo
        self.notification_service = notification_service

    async def execute(self, command: DispatchRemindersCommandDTO) -> Result[ReminderDispatchResultDTO]:
        today = command.today or datetime.utcnow().date()
        now = datetime.utcnow()
        interval = timedelta(days=command.interval_days)

        try:
            # Step 1: Candidates
            invoices = await self.invoice_repo.get_reminder_candidates(
                today + timedelta(days=command.lead_days), account_id=command.account_id
            )
            candidates = [ReminderCandidate.from_entity(invoice) for invoice in invoices]
        except Exception as e:
            logger.error(f"Reminder dispatch failed loading candidates: {e}")
            return Return.err(unexpected_error("DISPATCH_REMINDERS_FAILED", "Failed to dispatch reminders", e))

        sent_ids = []
        skipped = 0
        failed = 0

        # Step 2: Remind each candidate
        for invoice in candidates:
            if invoice.last_reminder_sent_at and now - invoice.last_reminder_sent_at < interval:
                skipped += 1
                continue

            try:
                client = await self.client_repo.get_by_id(invoice.account_id, invoice.client_id)
                if not client or not client.email:
                    logger.warning(f"No reminder for invoice {invoice.invoice_number}: client has no email")
                    skipped += 1
                    continue

                message_id = await self.notification_service.send_email(
                    client.email, *self._render(invoice, client)
                )
                if message_id is None:
                    logger.warning(f"Reminder for invoice {invoice.invoice_number} was not delivered")
                    failed += 1
                    continue

                await self.invoice_repo.record_reminder(invoice.id, now)
                await self.uow.commit()

                sent_ids.append(invoice.id)
                logger.info(f"Reminder sent for invoice: {invoice.invoice_number} (message_id={message_id})")

            except Exception as e:
                await self.uow.rollback()
                failed += 1
                logger.error(f"Reminder for invoice {invoice.invoice_number} failed: {e}")

        # Step 3: Counts
        return Return.ok(
            ReminderDispatchResultDTO(
                as_of=today,
                candidates=len(candidates),
                sent=len(sent_ids),
                skipped=skipped,
                failed=failed,
                invoice_ids=sent_ids,
            )
        )

    @staticmethod
    def _render(invoice: ReminderCandidate, client: Client):
        if invoice.status == InvoiceStatus.OVERDUE:
            subject = f"Overdue: invoice {invoice.invoice_number}"
        else:
            subject = f"Reminder: invoice {invoice.invoice_number} is due {invoice.due_date.isoformat()}"
        body = (
            f"Hello {client.display_name},\n\n"
            f"This is a reminder that invoice {invoice.invoice_number} ({invoice.title}) "
            f"has a balance of {invoice.balance_due} {invoice.currency}.\n"
            f"Due date: {invoice.due_date.isoformat()}\n"
        )
        return subject, body
