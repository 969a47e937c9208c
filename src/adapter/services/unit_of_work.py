from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """Unit of work bound to one AsyncSession; every repository of a use case shares it"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        # nothing to undo after a commit or before the first statement
        if self.session.in_transaction():
            await self.session.rollback()
