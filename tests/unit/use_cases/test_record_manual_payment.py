"""Unit tests for RecordManualPayment use case"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.api.schemas.payment_request import RecordPaymentRequestSchema
from src.app.use_cases.payments import RecordManualPayment, RecordManualPaymentCommandDTO
from src.domain.invoice import InvoiceStatus
from src.domain.payment import PaymentMethod


@pytest.fixture
def invoice_repo():
    return MagicMock()


@pytest.fixture
def payment_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=lambda payment: payment)
    return repo


@pytest.fixture
def sequence_generator():
    generator = MagicMock()
    generator.next_number = AsyncMock(return_value="PAY-00001")
    return generator


@pytest.fixture
def allocator():
    allocator = MagicMock()

    async def recompute(invoice, today=None):
        # what recompute does for a first payment of 50.00
        invoice.amount_paid = Decimal("50.00")
        invoice.refresh_balance()
        invoice.apply_payment_status(today)
        return invoice

    allocator.recompute = AsyncMock(side_effect=recompute)
    return allocator


@pytest.fixture
def use_case(mock_uow, invoice_repo, payment_repo, sequence_generator, allocator):
    return RecordManualPayment(mock_uow, invoice_repo, payment_repo, sequence_generator, allocator)


def command(amount="50.00", **overrides):
    return RecordManualPaymentCommandDTO(account_id="acc_1", invoice_id="inv_1", amount=Decimal(amount), **overrides)


@pytest.mark.asyncio
class TestRecordManualPayment:
    async def test_records_completed_payment_and_updates_invoice(
        self, use_case, invoice_repo, payment_repo, allocator, mock_uow, make_invoice
    ):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())

        result = await use_case.execute(command(payment_method=PaymentMethod.CHECK, notes="Check #1042"))

        assert result.is_ok()
        payment = result.value.payment
        assert payment.payment_number == "PAY-00001"
        assert payment.status == "completed"
        assert payment.payment_method == "check"
        assert payment.amount == Decimal("50.00")
        assert result.value.invoice.status == "partial"
        assert result.value.invoice.balance_due == Decimal("58.00")
        allocator.recompute.assert_awaited_once()
        mock_uow.commit.assert_awaited_once()

    async def test_invoice_is_locked(self, use_case, invoice_repo, make_invoice):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())

        await use_case.execute(command())

        invoice_repo.get_by_id.assert_awaited_once_with("acc_1", "inv_1", for_update=True, include_deleted=False)

    async def test_overpayment_is_rejected(self, use_case, invoice_repo, payment_repo, mock_uow, make_invoice):
        invoice_repo.get_by_id = AsyncMock(
            return_value=make_invoice(
                status=InvoiceStatus.PARTIAL, amount_paid=Decimal("50.00"), balance_due=Decimal("58.00")
            )
        )

        result = await use_case.execute(command("60.00"))

        assert result.error.code == "PAYMENT_EXCEEDS_BALANCE"
        assert result.error.kind == "validation_failure"
        payment_repo.create.assert_not_awaited()
        mock_uow.rollback.assert_awaited_once()

    async def test_exact_balance_is_accepted(self, use_case, invoice_repo, make_invoice):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())

        result = await use_case.execute(command("108.00"))

        assert result.is_ok()

    @pytest.mark.parametrize("status", [InvoiceStatus.PAID, InvoiceStatus.VOID])
    async def test_closed_invoice_is_not_payable(self, use_case, invoice_repo, make_invoice, status):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=status))

        result = await use_case.execute(command())

        assert result.error.code == "INVOICE_NOT_PAYABLE"
        assert result.error.kind == "invalid_state"

    async def test_missing_invoice(self, use_case, invoice_repo):
        invoice_repo.get_by_id = AsyncMock(return_value=None)

        result = await use_case.execute(command())

        assert result.error.code == "INVOICE_NOT_FOUND"

    async def test_sub_cent_amount_rounding_to_zero_is_rejected(self, use_case, invoice_repo, make_invoice):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())

        result = await use_case.execute(command("0.004"))

        assert result.error.code == "INVALID_AMOUNT"


def test_command_schema_carries_example():
    example = RecordManualPaymentCommandDTO.model_json_schema()["example"]

    assert example["payment_method"] == "check"
    assert RecordManualPaymentCommandDTO.model_config["json_schema_extra"]["example"] == example
    assert RecordPaymentRequestSchema.model_json_schema()["example"]["amount"] == "50.00"
