"""Unit tests for PaymentAllocator"""

import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.services.payment_allocator import PaymentAllocator
from src.domain.invoice import InvoiceStatus


@pytest.fixture
def invoice_repo():
    repo = MagicMock()
    repo.update = AsyncMock(side_effect=lambda invoice: invoice)
    return repo


@pytest.fixture
def payment_repo():
    repo = MagicMock()
    repo.sum_collected_for_invoice = AsyncMock(return_value=Decimal("0.00"))
    return repo


@pytest.fixture
def refund_repo():
    repo = MagicMock()
    repo.sum_completed_for_invoice = AsyncMock(return_value=Decimal("0.00"))
    return repo


@pytest.fixture
def allocator(invoice_repo, payment_repo, refund_repo):
    return PaymentAllocator(invoice_repo, payment_repo, refund_repo)


@pytest.mark.asyncio
class TestRecompute:
    async def test_partial_payment(self, allocator, payment_repo, invoice_repo, make_invoice):
        payment_repo.sum_collected_for_invoice.return_value = Decimal("50.00")

        invoice = await allocator.recompute(make_invoice())

        assert invoice.amount_paid == Decimal("50.00")
        assert invoice.balance_due == Decimal("58.00")
        assert invoice.status == InvoiceStatus.PARTIAL
        invoice_repo.update.assert_awaited_once()

    async def test_full_payment_marks_paid(self, allocator, payment_repo, make_invoice):
        payment_repo.sum_collected_for_invoice.return_value = Decimal("108.00")

        invoice = await allocator.recompute(make_invoice(), today=date(2024, 3, 20))

        assert invoice.balance_due == Decimal("0.00")
        assert invoice.status == InvoiceStatus.PAID
        assert invoice.paid_date == date(2024, 3, 20)

    async def test_completed_refunds_are_subtracted(self, allocator, payment_repo, refund_repo, make_invoice):
        payment_repo.sum_collected_for_invoice.return_value = Decimal("108.00")
        refund_repo.sum_completed_for_invoice.return_value = Decimal("30.00")

        invoice = await allocator.recompute(make_invoice())

        assert invoice.amount_paid == Decimal("78.00")
        assert invoice.balance_due == Decimal("30.00")
        assert invoice.status == InvoiceStatus.PARTIAL

    async def test_is_idempotent(self, allocator, payment_repo, make_invoice):
        payment_repo.sum_collected_for_invoice.return_value = Decimal("50.00")
        invoice = make_invoice()

        await allocator.recompute(invoice)
        await allocator.recompute(invoice)

        assert invoice.amount_paid == Decimal("50.00")
        assert invoice.balance_due == Decimal("58.00")

    async def test_void_status_is_kept(self, allocator, payment_repo, make_invoice):
        payment_repo.sum_collected_for_invoice.return_value = Decimal("108.00")

        invoice = await allocator.recompute(make_invoice(status=InvoiceStatus.VOID))

        assert invoice.status == InvoiceStatus.VOID
        assert invoice.balance_due == Decimal("0.00")

    async def test_overpayment_stays_visible(self, allocator, payment_repo, make_invoice):
        payment_repo.sum_collected_for_invoice.return_value = Decimal("108.00")

        invoice = await allocator.recompute(make_invoice(total=Decimal("90.00")))

        assert invoice.balance_due == Decimal("-18.00")
        assert invoice.is_overpaid
        assert invoice.status == InvoiceStatus.PAID


@pytest.mark.asyncio
class TestApplyRefund:
    async def test_paid_invoice_reopens_as_partial(self, allocator, make_invoice):
        invoice = make_invoice(
            status=InvoiceStatus.PAID,
            amount_paid=Decimal("108.00"),
            balance_due=Decimal("0.00"),
            paid_date=date(2024, 3, 20),
        )

        invoice = await allocator.apply_refund(invoice, Decimal("30.00"))

        assert invoice.amount_paid == Decimal("78.00")
        assert invoice.balance_due == Decimal("30.00")
        assert invoice.status == InvoiceStatus.PARTIAL
        assert invoice.paid_date is None

    async def test_partial_invoice_stays_partial(self, allocator, make_invoice):
        invoice = make_invoice(
            status=InvoiceStatus.PARTIAL,
            amount_paid=Decimal("50.00"),
            balance_due=Decimal("58.00"),
        )

        invoice = await allocator.apply_refund(invoice, Decimal("20.00"))

        assert invoice.amount_paid == Decimal("30.00")
        assert invoice.balance_due == Decimal("78.00")
        assert invoice.status == InvoiceStatus.PARTIAL

    async def test_amount_paid_never_goes_negative(self, allocator, make_invoice):
        invoice = make_invoice(status=InvoiceStatus.PARTIAL, amount_paid=Decimal("10.00"))

        invoice = await allocator.apply_refund(invoice, Decimal("25.00"))

        assert invoice.amount_paid == Decimal("0.00")
        assert invoice.balance_due == Decimal("108.00")
