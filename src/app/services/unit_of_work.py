"""Unit of Work Interface

Every financial write goes through one unit of work: either all of it
commits or none of it does.
"""

from abc import ABC, abstractmethod


class UnitOfWork(ABC):
    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
