"""SQLAlchemy Client Repository Implementation"""

from typing import Optional
from datetime import datetime
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.client_repository import ClientRepository
from src.domain.client import Client


class SqlAlchemyClientRepository(ClientRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, account_id: str, client_id: str) -> Optional[Client]:
        statement = select(Client).where(Client.id == client_id, Client.account_id == account_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def set_processor_customer_id(self, client: Client, customer_id: str) -> Client:
        client.processor_customer_id = customer_id
        client.updated_at = datetime.utcnow()
        self.session.add(client)
        await self.session.flush()
        await self.session.refresh(client)
        return client
