"""Unit tests for SendInvoice, MarkInvoiceViewed, VoidInvoice and DeleteInvoice"""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.invoices import (
    SendInvoice,
    MarkInvoiceViewed,
    VoidInvoice,
    DeleteInvoice,
    GetInvoice,
    InvoiceReferenceDTO,
)
from src.domain.invoice import InvoiceStatus


@pytest.fixture
def invoice_repo():
    repo = MagicMock()
    repo.update = AsyncMock(side_effect=lambda invoice: invoice)
    return repo


@pytest.fixture
def line_item_repo():
    repo = MagicMock()
    repo.get_by_invoice_id = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def client_repo(sample_client):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=sample_client)
    return repo


@pytest.fixture
def notification_service():
    service = MagicMock()
    service.send_email = AsyncMock(return_value="msg_1")
    return service


@pytest.fixture
def reference():
    return InvoiceReferenceDTO(account_id="acc_1", invoice_id="inv_1")


@pytest.mark.asyncio
class TestSendInvoice:
    @pytest.fixture
    def use_case(self, mock_uow, invoice_repo, line_item_repo, client_repo, notification_service):
        return SendInvoice(mock_uow, invoice_repo, line_item_repo, client_repo, notification_service)

    async def test_draft_becomes_sent_and_is_emailed(
        self, use_case, invoice_repo, notification_service, mock_uow, make_invoice, reference
    ):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=InvoiceStatus.DRAFT))

        result = await use_case.execute(reference)

        assert result.is_ok()
        assert result.value.status == "sent"
        assert result.value.sent_at is not None
        mock_uow.commit.assert_awaited_once()
        to, subject, body = notification_service.send_email.await_args.args
        assert to == "dana@example.com"
        assert "INV-00001" in subject
        assert "108.00" in body

    async def test_resending_partial_keeps_status(self, use_case, invoice_repo, make_invoice, reference):
        invoice_repo.get_by_id = AsyncMock(
            return_value=make_invoice(status=InvoiceStatus.PARTIAL, sent_at=datetime(2024, 3, 1))
        )

        result = await use_case.execute(reference)

        assert result.value.status == "partial"
        assert result.value.sent_at > datetime(2024, 3, 1)

    async def test_email_failure_does_not_undo_send(
        self, use_case, invoice_repo, notification_service, mock_uow, make_invoice, reference
    ):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=InvoiceStatus.DRAFT))
        notification_service.send_email.return_value = None

        result = await use_case.execute(reference)

        assert result.is_ok()
        assert result.value.status == "sent"
        mock_uow.rollback.assert_not_awaited()

    async def test_client_without_email_is_not_emailed(
        self, use_case, invoice_repo, client_repo, notification_service, make_invoice, sample_client, reference
    ):
        sample_client.email = None
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=InvoiceStatus.DRAFT))

        result = await use_case.execute(reference)

        assert result.is_ok()
        notification_service.send_email.assert_not_awaited()

    @pytest.mark.parametrize("status", [InvoiceStatus.VOID, InvoiceStatus.PAID])
    async def test_closed_invoices_cannot_be_sent(
        self, use_case, invoice_repo, notification_service, make_invoice, reference, status
    ):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=status))

        result = await use_case.execute(reference)

        assert result.error.code == "INVOICE_NOT_SENDABLE"
        assert result.error.kind == "invalid_state"
        notification_service.send_email.assert_not_awaited()


@pytest.mark.asyncio
class TestMarkInvoiceViewed:
    async def test_first_view_is_recorded(self, mock_uow, invoice_repo, line_item_repo, make_invoice, reference):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())

        result = await MarkInvoiceViewed(mock_uow, invoice_repo, line_item_repo).execute(reference)

        assert result.value.viewed_at is not None
        assert result.value.status == "sent"
        mock_uow.commit.assert_awaited_once()

    async def test_later_views_keep_first_timestamp(
        self, mock_uow, invoice_repo, line_item_repo, make_invoice, reference
    ):
        first_view = datetime(2024, 3, 2, 10, 0)
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(viewed_at=first_view))

        result = await MarkInvoiceViewed(mock_uow, invoice_repo, line_item_repo).execute(reference)

        assert result.value.viewed_at == first_view
        invoice_repo.update.assert_not_awaited()


@pytest.mark.asyncio
class TestVoidInvoice:
    async def test_unpaid_invoice_is_voided(self, mock_uow, invoice_repo, line_item_repo, make_invoice, reference):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=InvoiceStatus.OVERDUE))

        result = await VoidInvoice(mock_uow, invoice_repo, line_item_repo).execute(reference)

        assert result.value.status == "void"
        mock_uow.commit.assert_awaited_once()

    async def test_already_void(self, mock_uow, invoice_repo, line_item_repo, make_invoice, reference):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=InvoiceStatus.VOID))

        result = await VoidInvoice(mock_uow, invoice_repo, line_item_repo).execute(reference)

        assert result.error.code == "INVOICE_ALREADY_VOID"

    async def test_paid_invoice_cannot_be_voided(
        self, mock_uow, invoice_repo, line_item_repo, make_invoice, reference
    ):
        invoice_repo.get_by_id = AsyncMock(
            return_value=make_invoice(status=InvoiceStatus.PAID, amount_paid=Decimal("108.00"))
        )

        result = await VoidInvoice(mock_uow, invoice_repo, line_item_repo).execute(reference)

        assert result.error.code == "INVOICE_PAID"
        assert result.error.kind == "invalid_state"

    async def test_invoice_with_payments_cannot_be_voided(
        self, mock_uow, invoice_repo, line_item_repo, make_invoice, reference
    ):
        invoice_repo.get_by_id = AsyncMock(
            return_value=make_invoice(status=InvoiceStatus.PARTIAL, amount_paid=Decimal("50.00"))
        )

        result = await VoidInvoice(mock_uow, invoice_repo, line_item_repo).execute(reference)

        assert result.error.code == "INVOICE_HAS_PAYMENTS"
        invoice_repo.update.assert_not_awaited()


@pytest.mark.asyncio
class TestDeleteInvoice:
    async def test_soft_delete(self, mock_uow, invoice_repo, make_invoice, reference):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=InvoiceStatus.DRAFT))

        result = await DeleteInvoice(mock_uow, invoice_repo).execute(reference)

        assert result.value.is_deleted is True
        assert result.value.deleted_at is not None
        assert result.value.invoice_number == "INV-00001"

    async def test_invoice_with_payments_cannot_be_deleted(self, mock_uow, invoice_repo, make_invoice, reference):
        invoice_repo.get_by_id = AsyncMock(
            return_value=make_invoice(status=InvoiceStatus.PARTIAL, amount_paid=Decimal("50.00"))
        )

        result = await DeleteInvoice(mock_uow, invoice_repo).execute(reference)

        assert result.error.code == "INVOICE_HAS_PAYMENTS"

    async def test_deleted_invoice_is_not_found_again(self, mock_uow, invoice_repo, reference):
        invoice_repo.get_by_id = AsyncMock(return_value=None)

        result = await DeleteInvoice(mock_uow, invoice_repo).execute(reference)

        assert result.error.code == "INVOICE_NOT_FOUND"
        invoice_repo.get_by_id.assert_awaited_once_with("acc_1", "inv_1", for_update=True, include_deleted=False)


@pytest.mark.asyncio
class TestGetInvoice:
    async def test_include_deleted_is_passed_through(self, invoice_repo, line_item_repo, make_invoice):
        invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(is_deleted=True))

        result = await GetInvoice(invoice_repo, line_item_repo).execute(
            InvoiceReferenceDTO(account_id="acc_1", invoice_id="inv_1", include_deleted=True)
        )

        assert result.value.is_deleted is True
        invoice_repo.get_by_id.assert_awaited_once_with("acc_1", "inv_1", for_update=False, include_deleted=True)
