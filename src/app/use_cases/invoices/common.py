"""Helpers shared by the invoice use cases"""

from decimal import Decimal
from typing import List, Sequence
from src.app.errors import NotFoundError, ValidationFailureError
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import Invoice
from src.domain.invoice_line_item import InvoiceLineItem
from src.domain.totals import LineItemTotals, calculate_totals, line_total
from .dtos import LineItemDTO


async def load_invoice(
    invoice_repo: InvoiceRepository,
    account_id: str,
    invoice_id: str,
    for_update: bool = False,
    include_deleted: bool = False,
) -> Invoice:
    invoice = await invoice_repo.get_by_id(
        account_id, invoice_id, for_update=for_update, include_deleted=include_deleted
    )
    if not invoice:
        raise NotFoundError(
            code="INVOICE_NOT_FOUND",
            message=f"Invoice {invoice_id} not found",
            reason=f"No invoice with that id in account {account_id}",
        )
    return invoice


def build_line_items(items: Sequence[LineItemDTO]) -> List[InvoiceLineItem]:
    """Line items are not bound to an invoice yet; the repository sets invoice_id and sort_order"""
    return [
        InvoiceLineItem(
            sort_order=index,
            item_type=item.item_type,
            name=item.name,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=line_total(item.quantity, item.unit_price),
            is_taxable=item.is_taxable,
        )
        for index, item in enumerate(items)
    ]


def compute_totals(
    line_items: Sequence[InvoiceLineItem], tax_rate: Decimal, discount_amount: Decimal
) -> LineItemTotals:
    """calculate_totals plus the discount ceiling check"""
    totals = calculate_totals(line_items, tax_rate, discount_amount)

    if totals.discount_amount > totals.subtotal + totals.tax_amount:
        raise ValidationFailureError(
            code="DISCOUNT_EXCEEDS_TOTAL",
            message="Discount cannot be larger than subtotal plus tax",
            reason=(
                f"discount={totals.discount_amount}, "
                f"subtotal={totals.subtotal}, tax={totals.tax_amount}"
            ),
        )
    return totals


def apply_totals(invoice: Invoice, totals: LineItemTotals, tax_rate: Decimal) -> None:
    invoice.subtotal = totals.subtotal
    invoice.tax_rate = tax_rate
    invoice.tax_amount = totals.tax_amount
    invoice.discount_amount = totals.discount_amount
    invoice.total = totals.total
