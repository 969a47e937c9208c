import pytest
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.domain.client import Client
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.payment import Payment, PaymentMethod, PaymentStatus


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def make_invoice():
    """Factory for invoices in any state; totals default to a 108.00 invoice"""

    def _make(**overrides):
        values = dict(
            id="inv_1",
            account_id="acc_1",
            client_id="cli_1",
            invoice_number="INV-00001",
            title="Water heater replacement",
            status=InvoiceStatus.SENT,
            subtotal=Decimal("100.00"),
            tax_rate=Decimal("0.08"),
            tax_amount=Decimal("8.00"),
            discount_amount=Decimal("0.00"),
            total=Decimal("108.00"),
            amount_paid=Decimal("0.00"),
            balance_due=Decimal("108.00"),
            currency="USD",
            invoice_date=date(2024, 3, 1),
            due_date=date(2024, 3, 31),
            payment_terms=30,
            reminder_count=0,
            is_deleted=False,
            created_at=datetime(2024, 3, 1, 9, 0),
            updated_at=datetime(2024, 3, 1, 9, 0),
        )
        values.update(overrides)
        return Invoice(**values)

    return _make


@pytest.fixture
def make_payment():
    def _make(**overrides):
        values = dict(
            id="pay_1",
            account_id="acc_1",
            client_id="cli_1",
            invoice_id="inv_1",
            payment_number="PAY-00001",
            amount=Decimal("50.00"),
            currency="USD",
            payment_method=PaymentMethod.CASH,
            status=PaymentStatus.COMPLETED,
            payment_date=datetime(2024, 3, 5, 12, 0),
            created_at=datetime(2024, 3, 5, 12, 0),
            updated_at=datetime(2024, 3, 5, 12, 0),
        )
        values.update(overrides)
        return Payment(**values)

    return _make


@pytest.fixture
def sample_client():
    return Client(
        id="cli_1",
        account_id="acc_1",
        first_name="Dana",
        last_name="Reyes",
        email="dana@example.com",
    )
