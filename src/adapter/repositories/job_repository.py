"""SQLAlchemy Job Repository Implementation"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.job_repository import JobRepository
from src.domain.job import Job


class SqlAlchemyJobRepository(JobRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, account_id: str, job_id: str) -> Optional[Job]:
        statement = select(Job).where(Job.id == job_id, Job.account_id == account_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()
