"""Unit tests for ReconcilePayment and ReconcileRefund"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.services.payment_processor import (
    ChargeResult,
    ChargeStatus,
    PaymentProcessorError,
    RefundResult,
)
from src.app.use_cases.payments import (
    ReconcilePayment,
    ReconcileRefund,
    PaymentReferenceDTO,
    RefundReferenceDTO,
)
from src.domain.payment import PaymentMethod, PaymentStatus
from src.domain.refund import Refund, RefundStatus


@pytest.fixture
def invoice_repo(make_invoice):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=make_invoice())
    return repo


@pytest.fixture
def payment_repo():
    repo = MagicMock()
    repo.update = AsyncMock(side_effect=lambda payment: payment)
    return repo


@pytest.fixture
def allocator():
    allocator = MagicMock()
    allocator.recompute = AsyncMock(side_effect=lambda invoice, today=None: invoice)
    allocator.apply_refund = AsyncMock(side_effect=lambda invoice, amount: invoice)
    return allocator


@pytest.fixture
def processor():
    return MagicMock()


@pytest.fixture
def processing_payment(make_payment):
    return make_payment(
        status=PaymentStatus.PROCESSING,
        payment_method=PaymentMethod.BANK,
        payment_processor="stripe",
        processor_payment_id="pi_1",
    )


@pytest.mark.asyncio
class TestReconcilePayment:
    @pytest.fixture
    def use_case(self, mock_uow, invoice_repo, payment_repo, allocator, processor):
        return ReconcilePayment(mock_uow, invoice_repo, payment_repo, allocator, processor)

    async def test_cleared_debit_completes_payment(
        self, use_case, payment_repo, processor, allocator, mock_uow, processing_payment
    ):
        payment_repo.get_by_id = AsyncMock(return_value=processing_payment)
        processor.retrieve_charge = AsyncMock(
            return_value=ChargeResult(id="pi_1", status=ChargeStatus.SUCCEEDED, charge_ref="py_1")
        )

        result = await use_case.execute(PaymentReferenceDTO(payment_id="pay_1"))

        assert result.value.payment.status == "completed"
        assert result.value.payment.processor_charge_id == "py_1"
        assert result.value.payment.settled_date is not None
        allocator.recompute.assert_awaited_once()
        mock_uow.commit.assert_awaited_once()
        payment_repo.get_by_id.assert_awaited_once_with(None, "pay_1", for_update=True)

    async def test_returned_debit_fails_payment(self, use_case, payment_repo, processor, processing_payment):
        payment_repo.get_by_id = AsyncMock(return_value=processing_payment)
        processor.retrieve_charge = AsyncMock(return_value=ChargeResult(id="pi_1", status=ChargeStatus.FAILED))

        result = await use_case.execute(PaymentReferenceDTO(payment_id="pay_1"))

        assert result.value.payment.status == "failed"

    async def test_still_processing_changes_nothing(
        self, use_case, payment_repo, processor, allocator, mock_uow, processing_payment
    ):
        payment_repo.get_by_id = AsyncMock(return_value=processing_payment)
        processor.retrieve_charge = AsyncMock(return_value=ChargeResult(id="pi_1", status=ChargeStatus.PROCESSING))

        result = await use_case.execute(PaymentReferenceDTO(payment_id="pay_1"))

        assert result.value.payment.status == "processing"
        payment_repo.update.assert_not_awaited()
        allocator.recompute.assert_not_awaited()
        mock_uow.commit.assert_not_awaited()

    async def test_timed_out_charge_is_found_by_payment_id(self, use_case, payment_repo, processor, make_payment):
        payment_repo.get_by_id = AsyncMock(
            return_value=make_payment(
                status=PaymentStatus.PROCESSING, payment_method=PaymentMethod.CARD, payment_processor="stripe"
            )
        )
        processor.find_charge_by_reference = AsyncMock(
            return_value=ChargeResult(id="pi_9", status=ChargeStatus.SUCCEEDED, charge_ref="ch_9")
        )

        result = await use_case.execute(PaymentReferenceDTO(account_id="acc_1", payment_id="pay_1"))

        processor.find_charge_by_reference.assert_awaited_once_with("pay_1")
        assert result.value.payment.processor_payment_id == "pi_9"
        assert result.value.payment.status == "completed"

    async def test_unknown_charge_fails_payment(self, use_case, payment_repo, processor, make_payment):
        payment_repo.get_by_id = AsyncMock(
            return_value=make_payment(status=PaymentStatus.PENDING, payment_processor="stripe")
        )
        processor.find_charge_by_reference = AsyncMock(return_value=None)

        result = await use_case.execute(PaymentReferenceDTO(payment_id="pay_1"))

        assert result.value.payment.status == "failed"

    async def test_resolved_payment_is_returned_unchanged(self, use_case, payment_repo, processor, make_payment):
        payment_repo.get_by_id = AsyncMock(return_value=make_payment())
        processor.retrieve_charge = AsyncMock()

        result = await use_case.execute(PaymentReferenceDTO(payment_id="pay_1"))

        assert result.value.payment.status == "completed"
        processor.retrieve_charge.assert_not_awaited()

    async def test_processor_unavailable(self, use_case, payment_repo, processor, processing_payment, mock_uow):
        payment_repo.get_by_id = AsyncMock(return_value=processing_payment)
        processor.retrieve_charge = AsyncMock(side_effect=PaymentProcessorError("Stripe answered 401"))

        result = await use_case.execute(PaymentReferenceDTO(payment_id="pay_1"))

        assert result.error.code == "PROCESSOR_UNAVAILABLE"
        mock_uow.rollback.assert_awaited_once()


@pytest.mark.asyncio
class TestReconcileRefund:
    @pytest.fixture
    def refund_repo(self):
        repo = MagicMock()
        repo.update = AsyncMock(side_effect=lambda refund: refund)
        repo.sum_completed_for_payment = AsyncMock(return_value=Decimal("0.00"))
        return repo

    @pytest.fixture(autouse=True)
    def card_payment(self, payment_repo, make_payment):
        payment = make_payment(
            amount=Decimal("58.00"),
            payment_method=PaymentMethod.CARD,
            payment_processor="stripe",
            processor_payment_id="pi_1",
            processor_charge_id="ch_1",
        )
        payment_repo.get_by_id = AsyncMock(return_value=payment)
        return payment

    @pytest.fixture
    def use_case(self, mock_uow, invoice_repo, payment_repo, refund_repo, allocator, processor):
        return ReconcileRefund(mock_uow, invoice_repo, payment_repo, refund_repo, allocator, processor)

    @pytest.fixture
    def pending_refund(self, refund_repo):
        refund = Refund(
            id="ref_1",
            payment_id="pay_1",
            amount=Decimal("30.00"),
            status=RefundStatus.PENDING,
            processor_refund_id="re_1",
        )
        refund_repo.get_by_id = AsyncMock(return_value=refund)
        return refund

    async def test_succeeded_refund_is_applied(self, use_case, pending_refund, processor, allocator, mock_uow):
        processor.retrieve_refund = AsyncMock(return_value=RefundResult(id="re_1", status=ChargeStatus.SUCCEEDED))

        result = await use_case.execute(RefundReferenceDTO(refund_id="ref_1"))

        assert result.value.status == "completed"
        assert result.value.refunded_at is not None
        allocator.apply_refund.assert_awaited_once()
        assert allocator.apply_refund.await_args.args[1] == Decimal("30.00")
        mock_uow.commit.assert_awaited_once()

    async def test_failed_refund_leaves_invoice_alone(self, use_case, pending_refund, processor, allocator):
        processor.retrieve_refund = AsyncMock(return_value=RefundResult(id="re_1", status=ChargeStatus.FAILED))

        result = await use_case.execute(RefundReferenceDTO(refund_id="ref_1"))

        assert result.value.status == "failed"
        allocator.apply_refund.assert_not_awaited()

    async def test_completion_beyond_payment_amount_is_refused(
        self, use_case, pending_refund, processor, refund_repo, allocator, mock_uow
    ):
        refund_repo.sum_completed_for_payment.return_value = Decimal("40.00")
        processor.retrieve_refund = AsyncMock(return_value=RefundResult(id="re_1", status=ChargeStatus.SUCCEEDED))

        result = await use_case.execute(RefundReferenceDTO(refund_id="ref_1"))

        assert result.error.code == "REFUND_EXCEEDS_PAYMENT"
        assert result.error.kind == "invalid_state"
        assert pending_refund.status == RefundStatus.PENDING
        allocator.apply_refund.assert_not_awaited()
        mock_uow.rollback.assert_awaited_once()
        mock_uow.commit.assert_not_awaited()

    async def test_completion_up_to_payment_amount_is_allowed(self, use_case, pending_refund, processor, refund_repo):
        refund_repo.sum_completed_for_payment.return_value = Decimal("28.00")
        processor.retrieve_refund = AsyncMock(return_value=RefundResult(id="re_1", status=ChargeStatus.SUCCEEDED))

        result = await use_case.execute(RefundReferenceDTO(refund_id="ref_1"))

        assert result.value.status == "completed"

    async def test_untracked_refund_is_found_by_its_own_id(
        self, use_case, pending_refund, processor, allocator, refund_repo
    ):
        pending_refund.processor_refund_id = None
        processor.retrieve_refund = AsyncMock()
        processor.find_refund_by_reference = AsyncMock(
            return_value=RefundResult(id="re_5", status=ChargeStatus.SUCCEEDED)
        )

        result = await use_case.execute(RefundReferenceDTO(refund_id="ref_1"))

        assert result.value.status == "completed"
        assert result.value.processor_refund_id == "re_5"
        processor.find_refund_by_reference.assert_awaited_once_with("ch_1", "ref_1")
        processor.retrieve_refund.assert_not_awaited()
        allocator.apply_refund.assert_awaited_once()

    async def test_untracked_refund_still_processing_keeps_its_reference(
        self, use_case, pending_refund, processor, refund_repo, mock_uow
    ):
        pending_refund.processor_refund_id = None
        processor.find_refund_by_reference = AsyncMock(
            return_value=RefundResult(id="re_5", status=ChargeStatus.PROCESSING)
        )

        result = await use_case.execute(RefundReferenceDTO(refund_id="ref_1"))

        assert result.value.status == "pending"
        assert result.value.processor_refund_id == "re_5"
        refund_repo.update.assert_awaited_once()
        mock_uow.commit.assert_awaited_once()

    async def test_refund_never_created_at_processor_is_failed(
        self, use_case, pending_refund, processor, allocator, mock_uow
    ):
        pending_refund.processor_refund_id = None
        processor.find_refund_by_reference = AsyncMock(return_value=None)

        result = await use_case.execute(RefundReferenceDTO(refund_id="ref_1"))

        assert result.value.status == "failed"
        allocator.apply_refund.assert_not_awaited()
        mock_uow.commit.assert_awaited_once()

    async def test_processor_lookup_failure(self, use_case, pending_refund, processor, mock_uow):
        pending_refund.processor_refund_id = None
        processor.find_refund_by_reference = AsyncMock(side_effect=PaymentProcessorError("boom"))

        result = await use_case.execute(RefundReferenceDTO(refund_id="ref_1"))

        assert result.error.code == "PROCESSOR_UNAVAILABLE"
        assert pending_refund.status == RefundStatus.PENDING
        mock_uow.rollback.assert_awaited_once()

    async def test_unknown_refund(self, use_case, refund_repo):
        refund_repo.get_by_id = AsyncMock(return_value=None)

        result = await use_case.execute(RefundReferenceDTO(refund_id="ref_9"))

        assert result.error.code == "REFUND_NOT_FOUND"
