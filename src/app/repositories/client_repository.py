"""Client Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.client import Client


class ClientRepository(ABC):
    """Read access to clients, plus caching of the processor customer reference"""

    @abstractmethod
    async def get_by_id(self, account_id: str, client_id: str) -> Optional[Client]:
        pass

    @abstractmethod
    async def set_processor_customer_id(self, client: Client, customer_id: str) -> Client:
        pass
