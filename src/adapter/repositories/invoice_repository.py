"""SQLAlchemy Invoice Repository Implementation

Implements invoice persistence using SQLAlchemy async session.
"""

from typing import Optional, List
from datetime import date, datetime
from sqlalchemy import and_, or_, update
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import Invoice, InvoiceStatus


class SqlAlchemyInvoiceRepository(InvoiceRepository):
    """
    SQLAlchemy implementation of InvoiceRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE (a no-op on SQLite, which
      serializes writers itself)
    - Tombstones excluded from every read unless asked for
    - Overdue sweep and reminder stamps as single conditional UPDATEs
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, invoice: Invoice) -> Invoice:
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice

    async def get_by_id(
        self,
        account_id: str,
        invoice_id: str,
        for_update: bool = False,
        include_deleted: bool = False,
    ) -> Optional[Invoice]:
        """
        Retrieve invoice by ID with optional row-level locking

        A locked read always reloads the row, so a copy already sitting in
        the session never hides a concurrent writer's changes.
        """
        statement = select(Invoice).where(
            Invoice.id == invoice_id, Invoice.account_id == account_id
        )

        if not include_deleted:
            statement = statement.where(Invoice.is_deleted.is_(False))

        if for_update:
            statement = statement.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    def _filtered(
        self,
        statement,
        account_id: str,
        status: Optional[InvoiceStatus],
        client_id: Optional[str],
        overdue_as_of: Optional[date],
        include_deleted: bool,
    ):
        statement = statement.where(Invoice.account_id == account_id)

        if not include_deleted:
            statement = statement.where(Invoice.is_deleted.is_(False))

        if status:
            statement = statement.where(Invoice.status == status)

        if client_id:
            statement = statement.where(Invoice.client_id == client_id)

        if overdue_as_of:
            statement = statement.where(
                Invoice.due_date < overdue_as_of,
                Invoice.status.not_in([InvoiceStatus.PAID, InvoiceStatus.VOID]),
            )

        return statement

    async def list(
        self,
        account_id: str,
        status: Optional[InvoiceStatus] = None,
        client_id: Optional[str] = None,
        overdue_as_of: Optional[date] = None,
        include_deleted: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Invoice]:
        statement = self._filtered(
            select(Invoice), account_id, status, client_id, overdue_as_of, include_deleted
        )
        statement = statement.order_by(Invoice.created_at.desc(), Invoice.invoice_number.desc())
        statement = statement.limit(limit).offset(offset)

        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def count(
        self,
        account_id: str,
        status: Optional[InvoiceStatus] = None,
        client_id: Optional[str] = None,
        overdue_as_of: Optional[date] = None,
        include_deleted: bool = False,
    ) -> int:
        statement = self._filtered(
            select(func.count()).select_from(Invoice),
            account_id,
            status,
            client_id,
            overdue_as_of,
            include_deleted,
        )
        result = await self.session.execute(statement)
        return result.scalar_one()

    async def update(self, invoice: Invoice) -> Invoice:
        invoice.updated_at = datetime.utcnow()
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice

    async def mark_overdue(self, today: date, account_id: Optional[str] = None) -> List[str]:
        statement = (
            update(Invoice)
            .where(
                Invoice.status == InvoiceStatus.SENT,
                Invoice.due_date < today,
                Invoice.is_deleted.is_(False),
            )
            .values(status=InvoiceStatus.OVERDUE, updated_at=datetime.utcnow())
            .returning(Invoice.id)
            .execution_options(synchronize_session=False)
        )

        if account_id:
            statement = statement.where(Invoice.account_id == account_id)

        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def get_reminder_candidates(
        self, due_on_or_before: date, account_id: Optional[str] = None
    ) -> List[Invoice]:
        statement = select(Invoice).where(
            Invoice.is_deleted.is_(False),
            or_(
                and_(Invoice.status == InvoiceStatus.SENT, Invoice.due_date <= due_on_or_before),
                Invoice.status == InvoiceStatus.OVERDUE,
            ),
        )

        if account_id:
            statement = statement.where(Invoice.account_id == account_id)

        statement = statement.order_by(Invoice.due_date.asc())

        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def record_reminder(self, invoice_id: str, sent_at: datetime) -> None:
        statement = (
            update(Invoice)
            .where(Invoice.id == invoice_id)
            .values(
                last_reminder_sent_at=sent_at,
                reminder_count=Invoice.reminder_count + 1,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(statement)
