"""Line item totals

Pure computation of invoice totals from line items. No I/O, no state: the
same inputs always produce the same outputs.
"""

from decimal import Decimal
from typing import Any, Iterable
from pydantic import BaseModel
from src.domain.base import round_money

ZERO = Decimal("0")


class LineItemTotals(BaseModel):
    subtotal: Decimal
    taxable_subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total: Decimal


def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def line_total(quantity: Any, unit_price: Any) -> Decimal:
    return round_money(_as_decimal(quantity) * _as_decimal(unit_price))


def calculate_totals(
    line_items: Iterable[Any],
    tax_rate: Any = ZERO,
    discount_amount: Any = ZERO,
) -> LineItemTotals:
    """
    Compute subtotal, taxable subtotal, tax and grand total

    Items only need ``quantity`` and ``unit_price`` attributes; a missing or
    None ``is_taxable`` counts as taxable. Each output is rounded half-up to
    cents on its own and total is summed from the rounded parts, so
    total == subtotal + tax_amount - discount_amount always holds exactly.

    Input is trusted: negative discounts are rejected by callers.
    """
    subtotal = ZERO
    taxable_subtotal = ZERO

    for item in line_items:
        amount = _as_decimal(item.quantity) * _as_decimal(item.unit_price)
        subtotal += amount
        if getattr(item, "is_taxable", True) is not False:
            taxable_subtotal += amount

    rounded_subtotal = round_money(subtotal)
    rounded_tax = round_money(taxable_subtotal * _as_decimal(tax_rate))
    rounded_discount = round_money(_as_decimal(discount_amount))

    return LineItemTotals(
        subtotal=rounded_subtotal,
        taxable_subtotal=round_money(taxable_subtotal),
        tax_amount=rounded_tax,
        discount_amount=rounded_discount,
        total=rounded_subtotal + rounded_tax - rounded_discount,
    )
