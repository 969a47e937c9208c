"""Unit tests for RefundPayment use case"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.services.payment_processor import (
    ChargeStatus,
    PaymentProcessorError,
    PaymentProcessorTimeout,
    RefundResult,
)
from src.app.use_cases.payments import RefundPayment, RefundPaymentCommandDTO
from src.domain.invoice import InvoiceStatus
from src.domain.payment import PaymentMethod, PaymentStatus
from src.domain.refund import RefundStatus


@pytest.fixture
def paid_invoice(make_invoice):
    return make_invoice(status=InvoiceStatus.PAID, amount_paid=Decimal("108.00"), balance_due=Decimal("0.00"))


@pytest.fixture
def invoice_repo(paid_invoice):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=paid_invoice)
    return repo


@pytest.fixture
def payment_repo(make_payment):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=make_payment(amount=Decimal("58.00")))
    return repo


@pytest.fixture
def refund_repo():
    repo = MagicMock()
    repo.sum_outstanding_for_payment = AsyncMock(return_value=Decimal("0.00"))
    repo.create = AsyncMock(side_effect=lambda refund: refund)
    return repo


@pytest.fixture
def allocator():
    allocator = MagicMock()

    async def apply_refund(invoice, amount):
        invoice.amount_paid -= amount
        invoice.refresh_balance()
        invoice.status = InvoiceStatus.PARTIAL
        return invoice

    allocator.apply_refund = AsyncMock(side_effect=apply_refund)
    return allocator


@pytest.fixture
def processor():
    processor = MagicMock()
    processor.create_refund = AsyncMock(return_value=RefundResult(id="re_1", status=ChargeStatus.SUCCEEDED))
    return processor


@pytest.fixture
def use_case(mock_uow, invoice_repo, payment_repo, refund_repo, allocator, processor):
    return RefundPayment(mock_uow, invoice_repo, payment_repo, refund_repo, allocator, processor)


def command(amount=None, **overrides):
    return RefundPaymentCommandDTO(
        account_id="acc_1",
        payment_id="pay_1",
        amount=Decimal(amount) if amount is not None else None,
        **overrides,
    )


@pytest.mark.asyncio
class TestManualRefund:
    async def test_partial_refund_reopens_invoice(self, use_case, allocator, processor, mock_uow):
        result = await use_case.execute(command("30.00", reason="Customer complaint"))

        assert result.is_ok()
        assert result.value.amount == Decimal("30.00")
        assert result.value.status == "completed"
        assert result.value.refunded_at is not None
        assert result.value.invoice.status == "partial"
        assert result.value.invoice.balance_due == Decimal("30.00")
        assert result.value.invoice.amount_paid == Decimal("78.00")
        allocator.apply_refund.assert_awaited_once()
        processor.create_refund.assert_not_awaited()
        mock_uow.commit.assert_awaited_once()

    async def test_amount_defaults_to_refundable(self, use_case, refund_repo):
        refund_repo.sum_outstanding_for_payment.return_value = Decimal("20.00")

        result = await use_case.execute(command())

        assert result.value.amount == Decimal("38.00")

    async def test_refund_larger_than_refundable(self, use_case, refund_repo, allocator, mock_uow):
        refund_repo.sum_outstanding_for_payment.return_value = Decimal("30.00")

        result = await use_case.execute(command("30.00"))

        assert result.error.code == "REFUND_EXCEEDS_REFUNDABLE"
        assert result.error.kind == "validation_failure"
        refund_repo.create.assert_not_awaited()
        allocator.apply_refund.assert_not_awaited()
        mock_uow.rollback.assert_awaited_once()

    async def test_fully_refunded_payment(self, use_case, refund_repo):
        refund_repo.sum_outstanding_for_payment.return_value = Decimal("58.00")

        result = await use_case.execute(command())

        assert result.error.code == "PAYMENT_FULLY_REFUNDED"
        assert result.error.kind == "invalid_state"

    @pytest.mark.parametrize("status", [PaymentStatus.PENDING, PaymentStatus.PROCESSING, PaymentStatus.FAILED])
    async def test_uncollected_payment_is_not_refundable(self, use_case, payment_repo, make_payment, status):
        payment_repo.get_by_id.return_value = make_payment(status=status)

        result = await use_case.execute(command("10.00"))

        assert result.error.code == "PAYMENT_NOT_REFUNDABLE"

    async def test_unknown_payment(self, use_case, payment_repo):
        payment_repo.get_by_id.return_value = None

        result = await use_case.execute(command("10.00"))

        assert result.error.code == "PAYMENT_NOT_FOUND"
        assert result.error.kind == "not_found"


@pytest.mark.asyncio
class TestProcessorRefund:
    @pytest.fixture
    def card_payment(self, payment_repo, make_payment):
        payment = make_payment(
            amount=Decimal("58.00"),
            payment_method=PaymentMethod.CARD,
            payment_processor="stripe",
            processor_payment_id="pi_1",
            processor_charge_id="ch_1",
        )
        payment_repo.get_by_id.return_value = payment
        return payment

    async def test_refund_goes_to_processor(self, use_case, card_payment, processor, refund_repo):
        result = await use_case.execute(command("30.00", reason="Duplicate visit"))

        assert result.value.status == "completed"
        assert result.value.processor_refund_id == "re_1"
        kwargs = processor.create_refund.await_args.kwargs
        assert kwargs["charge_ref"] == "ch_1"
        assert kwargs["amount"] == Decimal("30.00")
        created = refund_repo.create.await_args.args[0]
        assert kwargs["metadata"]["refund_id"] == created.id

    async def test_pending_processor_refund_leaves_invoice_alone(self, use_case, card_payment, processor, allocator):
        processor.create_refund.return_value = RefundResult(id="re_2", status=ChargeStatus.PROCESSING)

        result = await use_case.execute(command("30.00"))

        assert result.value.status == "pending"
        assert result.value.invoice.balance_due == Decimal("0.00")
        allocator.apply_refund.assert_not_awaited()

    async def test_pending_refunds_count_against_refundable(self, use_case, card_payment, processor, refund_repo):
        refund_repo.sum_outstanding_for_payment.return_value = Decimal("30.00")

        result = await use_case.execute(command("30.00"))

        assert result.error.code == "REFUND_EXCEEDS_REFUNDABLE"
        refund_repo.sum_outstanding_for_payment.assert_awaited_once_with("pay_1")
        processor.create_refund.assert_not_awaited()

    async def test_processor_rejection_stores_nothing(self, use_case, card_payment, processor, refund_repo, mock_uow):
        processor.create_refund.side_effect = PaymentProcessorError("Charge already refunded")

        result = await use_case.execute(command("30.00"))

        assert result.error.code == "REFUND_DECLINED"
        assert result.error.kind == "external_processor_failure"
        refund_repo.create.assert_not_awaited()
        mock_uow.rollback.assert_awaited_once()

    async def test_timeout_stores_pending_refund(self, use_case, card_payment, processor, refund_repo, mock_uow):
        processor.create_refund.side_effect = PaymentProcessorTimeout("timed out")

        result = await use_case.execute(command("30.00"))

        assert result.error.code == "PROCESSOR_TIMEOUT"
        created = refund_repo.create.await_args.args[0]
        assert created.status == RefundStatus.PENDING
        assert created.processor_refund_id is None
        mock_uow.commit.assert_awaited_once()
