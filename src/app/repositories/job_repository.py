"""Job Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.job import Job


class JobRepository(ABC):
    @abstractmethod
    async def get_by_id(self, account_id: str, job_id: str) -> Optional[Job]:
        pass
