"""SQLAlchemy Payment Repository Implementation"""

from typing import Optional, List
from decimal import Decimal
from datetime import datetime
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.base import round_money
from src.domain.payment import Payment, PaymentStatus, COLLECTED_STATUSES, UNRESOLVED_STATUSES


class SqlAlchemyPaymentRepository(PaymentRepository):
    """
    SQLAlchemy implementation of PaymentRepository

    Sums are computed in the database over the persisted payment set.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, payment: Payment) -> Payment:
        self.session.add(payment)
        await self.session.flush()
        await self.session.refresh(payment)
        return payment

    async def get_by_id(
        self, account_id: Optional[str], payment_id: str, for_update: bool = False
    ) -> Optional[Payment]:
        statement = select(Payment).where(Payment.id == payment_id)

        if account_id is not None:
            statement = statement.where(Payment.account_id == account_id)

        if for_update:
            statement = statement.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    def _filtered(self, statement, account_id: str, invoice_id: Optional[str], status: Optional[PaymentStatus]):
        statement = statement.where(Payment.account_id == account_id)
        if invoice_id:
            statement = statement.where(Payment.invoice_id == invoice_id)
        if status:
            statement = statement.where(Payment.status == status)
        return statement

    async def list(
        self,
        account_id: str,
        invoice_id: Optional[str] = None,
        status: Optional[PaymentStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Payment]:
        statement = self._filtered(select(Payment), account_id, invoice_id, status)
        statement = statement.order_by(Payment.created_at.desc(), Payment.payment_number.desc())
        statement = statement.limit(limit).offset(offset)

        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def count(
        self,
        account_id: str,
        invoice_id: Optional[str] = None,
        status: Optional[PaymentStatus] = None,
    ) -> int:
        statement = self._filtered(select(func.count()).select_from(Payment), account_id, invoice_id, status)
        result = await self.session.execute(statement)
        return result.scalar_one()

    async def update(self, payment: Payment) -> Payment:
        payment.updated_at = datetime.utcnow()
        self.session.add(payment)
        await self.session.flush()
        await self.session.refresh(payment)
        return payment

    async def sum_collected_for_invoice(self, invoice_id: str) -> Decimal:
        statement = select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.invoice_id == invoice_id,
            Payment.status.in_(list(COLLECTED_STATUSES)),
        )
        result = await self.session.execute(statement)
        return round_money(result.scalar_one() or 0)

    async def get_unresolved(self, created_before: datetime, limit: int = 100) -> List[Payment]:
        statement = (
            select(Payment)
            .where(
                Payment.status.in_(list(UNRESOLVED_STATUSES)),
                Payment.payment_processor.is_not(None),
                Payment.created_at < created_before,
            )
            .order_by(Payment.created_at.asc())
            .limit(limit)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())
