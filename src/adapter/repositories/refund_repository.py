"""SQLAlchemy Refund Repository Implementation"""

from typing import Optional, List
from decimal import Decimal
from datetime import datetime
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.refund_repository import RefundRepository
from src.domain.base import round_money
from src.domain.payment import Payment, COLLECTED_STATUSES
from src.domain.refund import Refund, RefundStatus


class SqlAlchemyRefundRepository(RefundRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, refund: Refund) -> Refund:
        self.session.add(refund)
        await self.session.flush()
        await self.session.refresh(refund)
        return refund

    async def update(self, refund: Refund) -> Refund:
        self.session.add(refund)
        await self.session.flush()
        await self.session.refresh(refund)
        return refund

    async def get_by_id(self, refund_id: str, for_update: bool = False) -> Optional[Refund]:
        statement = select(Refund).where(Refund.id == refund_id)

        if for_update:
            statement = statement.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_payment_id(self, payment_id: str) -> List[Refund]:
        statement = (
            select(Refund)
            .where(Refund.payment_id == payment_id)
            .order_by(Refund.created_at.asc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def sum_completed_for_payment(self, payment_id: str) -> Decimal:
        statement = select(func.coalesce(func.sum(Refund.amount), 0)).where(
            Refund.payment_id == payment_id,
            Refund.status == RefundStatus.COMPLETED,
        )
        result = await self.session.execute(statement)
        return round_money(result.scalar_one() or 0)

    async def sum_outstanding_for_payment(self, payment_id: str) -> Decimal:
        statement = select(func.coalesce(func.sum(Refund.amount), 0)).where(
            Refund.payment_id == payment_id,
            Refund.status.in_([RefundStatus.PENDING, RefundStatus.COMPLETED]),
        )
        result = await self.session.execute(statement)
        return round_money(result.scalar_one() or 0)

    async def sum_completed_for_invoice(self, invoice_id: str) -> Decimal:
        statement = (
            select(func.coalesce(func.sum(Refund.amount), 0))
            .select_from(Refund)
            .join(Payment, Payment.id == Refund.payment_id)
            .where(
                Payment.invoice_id == invoice_id,
                Payment.status.in_(list(COLLECTED_STATUSES)),
                Refund.status == RefundStatus.COMPLETED,
            )
        )
        result = await self.session.execute(statement)
        return round_money(result.scalar_one() or 0)

    async def get_pending(self, created_before: datetime, limit: int = 100) -> List[Refund]:
        statement = (
            select(Refund)
            .where(
                Refund.status == RefundStatus.PENDING,
                Refund.created_at < created_before,
            )
            .order_by(Refund.created_at.asc())
            .limit(limit)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())
