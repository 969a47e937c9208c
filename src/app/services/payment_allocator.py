"""Payment Allocator

Writes an invoice's paid amount, balance and payment-driven status.
Shared by manual/card/bank payments, payment reconciliation and refunds.
"""

import logging
from decimal import Decimal
from typing import Optional
from datetime import date
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.refund_repository import RefundRepository
from src.domain.base import round_money
from src.domain.invoice import Invoice, InvoiceStatus

logger = logging.getLogger(__name__)


class PaymentAllocator:
    """
    Service: apply the payment set of an invoice to its balance

    recompute() rebuilds amount_paid from every collected payment minus
    completed refunds, so calling it twice (or after a retry) gives the same
    answer. apply_refund() is the one incremental path and must run while
    the invoice row is locked.
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        payment_repo: PaymentRepository,
        refund_repo: RefundRepository,
    ):
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo
        self.refund_repo = refund_repo

    async def recompute(self, invoice: Invoice, today: Optional[date] = None) -> Invoice:
        collected = await self.payment_repo.sum_collected_for_invoice(invoice.id)
        refunded = await self.refund_repo.sum_completed_for_invoice(invoice.id)

        invoice.amount_paid = round_money(collected - refunded)
        invoice.refresh_balance()

        if invoice.status != InvoiceStatus.VOID:
            invoice.apply_payment_status(today)

        if invoice.is_overpaid:
            logger.warning(
                f"Invoice {invoice.invoice_number} is overpaid: "
                f"total={invoice.total}, amount_paid={invoice.amount_paid}, "
                f"balance_due={invoice.balance_due}"
            )

        updated = await self.invoice_repo.update(invoice)

        logger.info(
            f"Invoice balances updated: {invoice.invoice_number} "
            f"amount_paid={invoice.amount_paid} balance_due={invoice.balance_due} "
            f"status={invoice.status.value}"
        )
        return updated

    async def apply_refund(self, invoice: Invoice, amount: Decimal) -> Invoice:
        amount = round_money(amount)

        invoice.amount_paid = round_money(invoice.amount_paid) - amount
        if invoice.amount_paid < 0:
            # a correctly limited refund never gets here
            logger.warning(
                f"Refund of {amount} on invoice {invoice.invoice_number} "
                f"drove amount_paid negative, clamping to 0"
            )
            invoice.amount_paid = Decimal("0.00")
        invoice.refresh_balance()

        if invoice.status == InvoiceStatus.PAID and invoice.balance_due > 0:
            invoice.status = InvoiceStatus.PARTIAL
            invoice.paid_date = None

        updated = await self.invoice_repo.update(invoice)

        logger.info(
            f"Refund of {amount} applied to invoice {invoice.invoice_number}: "
            f"amount_paid={invoice.amount_paid} balance_due={invoice.balance_due} "
            f"status={invoice.status.value}"
        )
        return updated
