"""Helpers shared by the payment use cases"""

from decimal import Decimal
from src.app.errors import InvalidStateError, NotFoundError, ValidationFailureError
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.use_cases.invoices.common import load_invoice
from src.domain.base import round_money
from src.domain.invoice import Invoice, InvoiceStatus, PAYABLE_STATUSES
from src.domain.payment import Payment


async def load_payable_invoice(
    invoice_repo: InvoiceRepository, account_id: str, invoice_id: str, amount: Decimal
) -> Invoice:
    """
    Lock the invoice and check a new payment fits on it

    Raises:
        NotFoundError: no such (non-deleted) invoice in the account
        InvalidStateError: invoice is paid or void
        ValidationFailureError: amount <= 0 or larger than balance_due
    """
    invoice = await load_invoice(invoice_repo, account_id, invoice_id, for_update=True)

    if invoice.status not in PAYABLE_STATUSES:
        raise InvalidStateError(
            code="INVOICE_NOT_PAYABLE",
            message=f"Cannot record a payment on a {InvoiceStatus(invoice.status).value} invoice",
            reason=f"invoice_number={invoice.invoice_number}",
        )

    amount = round_money(amount)
    if amount <= 0:
        raise ValidationFailureError(
            code="INVALID_AMOUNT",
            message="Payment amount must be greater than zero",
        )
    if amount > invoice.balance_due:
        raise ValidationFailureError(
            code="PAYMENT_EXCEEDS_BALANCE",
            message=f"Payment amount ({amount}) exceeds balance due ({invoice.balance_due})",
            reason=f"invoice_number={invoice.invoice_number}",
        )

    return invoice


async def load_payment(
    payment_repo: PaymentRepository, account_id, payment_id: str, for_update: bool = False
) -> Payment:
    payment = await payment_repo.get_by_id(account_id, payment_id, for_update=for_update)
    if not payment:
        raise NotFoundError(
            code="PAYMENT_NOT_FOUND",
            message=f"Payment {payment_id} not found",
        )
    return payment
