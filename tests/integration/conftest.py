import itertools
import pytest
import pytest_asyncio
from types import SimpleNamespace
from typing import Dict, Optional
from httpx import ASGITransport, AsyncClient
from src.adapter.database import create_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.services.notification_service import LoggingNotificationService
from src.app.services.payment_processor import (
    ChargeResult,
    ChargeStatus,
    PaymentProcessor,
    RefundResult,
)
from src.depends import init_db, get_session, get_payment_processor, get_notification_service
from src.domain.client import Client
from src.domain.job import Job


class FakeProcessor(PaymentProcessor):
    """In-memory processor; charge_status decides what the next charge returns"""

    name = "fake"

    def __init__(self):
        self.ids = itertools.count(1)
        self.charges: Dict[str, ChargeResult] = {}
        self.references: Dict[str, str] = {}
        self.refunds: Dict[str, RefundResult] = {}
        self.charge_status = ChargeStatus.SUCCEEDED
        self.refund_status = ChargeStatus.SUCCEEDED
        self.fail_with: Optional[Exception] = None
        self.refund_fail_with: Optional[Exception] = None
        self.refund_recorded_on_failure = False
        self.refund_references: Dict[str, str] = {}
        self.customers = []

    async def create_customer(self, email, name, metadata=None):
        customer_id = f"cus_{next(self.ids)}"
        self.customers.append(customer_id)
        return customer_id

    async def attach_instrument(self, customer_id, instrument_ref):
        return None

    async def create_charge(self, amount, currency, instrument_ref, customer_id, metadata=None, idempotency_key=None):
        if self.fail_with is not None:
            raise self.fail_with
        charge = ChargeResult(id=f"pi_{next(self.ids)}", status=self.charge_status, charge_ref=f"ch_{next(self.ids)}")
        self.charges[charge.id] = charge
        self.references[(metadata or {}).get("payment_id")] = charge.id
        return charge

    async def retrieve_charge(self, charge_id):
        return self.charges[charge_id]

    async def find_charge_by_reference(self, reference):
        charge_id = self.references.get(reference)
        return self.charges.get(charge_id) if charge_id else None

    async def create_refund(self, charge_ref, amount, reason=None, metadata=None):
        if self.refund_fail_with is not None and not self.refund_recorded_on_failure:
            raise self.refund_fail_with
        result = RefundResult(id=f"re_{next(self.ids)}", status=self.refund_status)
        self.refunds[result.id] = result
        self.refund_references[(metadata or {}).get("refund_id")] = result.id
        if self.refund_fail_with is not None:
            raise self.refund_fail_with
        return result

    async def retrieve_refund(self, refund_id):
        return self.refunds[refund_id]

    async def find_refund_by_reference(self, charge_ref, reference):
        refund_id = self.refund_references.get(reference)
        return self.refunds.get(refund_id) if refund_id else None

    def settle(self, charge_id, status=ChargeStatus.SUCCEEDED):
        self.charges[charge_id] = self.charges[charge_id].model_copy(update={"status": status})

    def settle_refund(self, refund_id, status=ChargeStatus.SUCCEEDED):
        self.refunds[refund_id] = self.refunds[refund_id].model_copy(update={"status": status})


@pytest.fixture
def processor():
    return FakeProcessor()


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """File-backed SQLite database per test"""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(session_factory):
    """One account with a client and a job, plus a second account"""
    async with session_factory() as session:
        client = Client(
            account_id="acc_1", first_name="Dana", last_name="Reyes", email="dana@example.com"
        )
        job = Job(account_id="acc_1", job_number="J-00001", title="Water heater replacement")
        other_client = Client(account_id="acc_2", first_name="Sam", last_name="Lee", email="sam@example.com")
        session.add_all([client, job, other_client])
        await session.commit()

    return SimpleNamespace(
        account_id="acc_1",
        client_id=client.id,
        job_id=job.id,
        other_account_id="acc_2",
        other_client_id=other_client.id,
    )


@pytest_asyncio.fixture
async def client(session_factory, processor, seeded):
    """Create test client with database session override"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_payment_processor] = lambda: processor
    app.dependency_overrides[get_notification_service] = lambda: LoggingNotificationService()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-Account-Id": seeded.account_id, "X-User-Id": "user_1"},
    ) as ac:
        yield ac
