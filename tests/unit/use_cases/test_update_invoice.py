"""Unit tests for UpdateInvoice use case"""

import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.invoices import UpdateInvoice, UpdateInvoiceCommandDTO, LineItemDTO
from src.domain.invoice import InvoiceStatus
from src.domain.invoice_line_item import InvoiceLineItem


@pytest.fixture
def stored_items():
    return [
        InvoiceLineItem(
            id="li_1",
            invoice_id="inv_1",
            sort_order=0,
            name="Labor",
            quantity=Decimal("2"),
            unit_price=Decimal("50.00"),
            total_price=Decimal("100.00"),
            is_taxable=True,
        )
    ]


@pytest.fixture
def invoice_repo():
    repo = MagicMock()
    repo.update = AsyncMock(side_effect=lambda invoice: invoice)
    return repo


@pytest.fixture
def line_item_repo(stored_items):
    repo = MagicMock()
    repo.get_by_invoice_id = AsyncMock(return_value=stored_items)
    repo.replace_for_invoice = AsyncMock(side_effect=lambda invoice_id, items: items)
    return repo


@pytest.fixture
def use_case(mock_uow, invoice_repo, line_item_repo):
    return UpdateInvoice(uow=mock_uow, invoice_repo=invoice_repo, line_item_repo=line_item_repo)


def command(**overrides):
    return UpdateInvoiceCommandDTO(account_id="acc_1", invoice_id="inv_1", **overrides)


@pytest.mark.asyncio
class TestUpdateInvoice:
    async def test_replacing_line_items_recomputes_totals(
        self, use_case, invoice_repo, line_item_repo, make_invoice
    ):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())

        result = await use_case.execute(
            command(line_items=[LineItemDTO(name="Part", quantity=Decimal("1"), unit_price=Decimal("200.00"))])
        )

        assert result.is_ok()
        assert result.value.subtotal == Decimal("200.00")
        assert result.value.tax_amount == Decimal("16.00")
        assert result.value.total == Decimal("216.00")
        assert result.value.balance_due == Decimal("216.00")
        line_item_repo.replace_for_invoice.assert_awaited_once()

    async def test_tax_change_uses_stored_line_items(self, use_case, invoice_repo, line_item_repo, make_invoice):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())

        result = await use_case.execute(command(tax_rate=Decimal("0.10")))

        assert result.value.tax_amount == Decimal("10.00")
        assert result.value.total == Decimal("110.00")
        line_item_repo.replace_for_invoice.assert_not_awaited()

    async def test_lower_total_keeps_paid_amount(self, use_case, invoice_repo, make_invoice):
        invoice_repo.get_by_id = AsyncMock(
            return_value=make_invoice(
                status=InvoiceStatus.PARTIAL,
                amount_paid=Decimal("50.00"),
                balance_due=Decimal("58.00"),
            )
        )

        result = await use_case.execute(command(discount_amount=Decimal("10.00")))

        assert result.value.total == Decimal("98.00")
        assert result.value.amount_paid == Decimal("50.00")
        assert result.value.balance_due == Decimal("48.00")
        assert result.value.status == "partial"

    async def test_edit_down_to_amount_paid_marks_paid(self, use_case, invoice_repo, make_invoice):
        invoice_repo.get_by_id = AsyncMock(
            return_value=make_invoice(
                status=InvoiceStatus.PARTIAL,
                amount_paid=Decimal("100.00"),
                balance_due=Decimal("8.00"),
            )
        )

        result = await use_case.execute(command(tax_rate=Decimal("0")))

        assert result.value.total == Decimal("100.00")
        assert result.value.balance_due == Decimal("0.00")
        assert result.value.status == "paid"

    async def test_descriptive_fields_do_not_touch_totals(self, use_case, invoice_repo, make_invoice):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())

        result = await use_case.execute(command(title="New title", notes="Gate code 1234"))

        assert result.value.title == "New title"
        assert result.value.notes == "Gate code 1234"
        assert result.value.total == Decimal("108.00")

    async def test_payment_terms_move_due_date(self, use_case, invoice_repo, make_invoice):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())

        result = await use_case.execute(command(payment_terms=45))

        assert result.value.due_date == date(2024, 4, 15)

    async def test_paid_invoice_is_frozen(self, use_case, invoice_repo, mock_uow, make_invoice):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=InvoiceStatus.PAID))

        result = await use_case.execute(command(title="Too late"))

        assert result.error.code == "INVOICE_NOT_EDITABLE"
        assert result.error.kind == "invalid_state"
        invoice_repo.update.assert_not_awaited()
        mock_uow.rollback.assert_awaited_once()

    async def test_void_invoice_is_frozen(self, use_case, invoice_repo, make_invoice):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=InvoiceStatus.VOID))

        result = await use_case.execute(command(tax_rate=Decimal("0.05")))

        assert result.error.code == "INVOICE_NOT_EDITABLE"

    async def test_missing_invoice(self, use_case, invoice_repo):
        invoice_repo.get_by_id = AsyncMock(return_value=None)

        result = await use_case.execute(command(title="x"))

        assert result.error.code == "INVOICE_NOT_FOUND"
        assert result.error.kind == "not_found"
