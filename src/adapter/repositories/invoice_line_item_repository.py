"""SQLAlchemy InvoiceLineItem Repository Implementation"""

from typing import List
from sqlalchemy import delete
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.invoice_line_item_repository import InvoiceLineItemRepository
from src.domain.invoice_line_item import InvoiceLineItem


class SqlAlchemyInvoiceLineItemRepository(InvoiceLineItemRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_invoice_id(self, invoice_id: str) -> List[InvoiceLineItem]:
        statement = (
            select(InvoiceLineItem)
            .where(InvoiceLineItem.invoice_id == invoice_id)
            .order_by(InvoiceLineItem.sort_order.asc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def replace_for_invoice(
        self, invoice_id: str, line_items: List[InvoiceLineItem]
    ) -> List[InvoiceLineItem]:
        await self.session.execute(
            delete(InvoiceLineItem)
            .where(InvoiceLineItem.invoice_id == invoice_id)
            .execution_options(synchronize_session=False)
        )

        for index, item in enumerate(line_items):
            item.invoice_id = invoice_id
            item.sort_order = index
            self.session.add(item)

        await self.session.flush()
        for item in line_items:
            await self.session.refresh(item)
        return list(line_items)
