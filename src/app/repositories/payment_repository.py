"""Payment Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from src.domain.payment import Payment, PaymentStatus


class PaymentRepository(ABC):
    """Repository interface for Payment persistence"""

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def get_by_id(
        self, account_id: Optional[str], payment_id: str, for_update: bool = False
    ) -> Optional[Payment]:
        """
        Retrieve payment by ID within an account

        Args:
            account_id: Tenant identifier, None skips the tenant filter (workers only)
            payment_id: Payment ID
            for_update: If True, locks the row (SELECT FOR UPDATE)

        Returns:
            Payment if found, None otherwise
        """
        pass

    @abstractmethod
    async def list(
        self,
        account_id: str,
        invoice_id: Optional[str] = None,
        status: Optional[PaymentStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Payment]:
        pass

    @abstractmethod
    async def count(
        self,
        account_id: str,
        invoice_id: Optional[str] = None,
        status: Optional[PaymentStatus] = None,
    ) -> int:
        pass

    @abstractmethod
    async def update(self, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def sum_collected_for_invoice(self, invoice_id: str) -> Decimal:
        """
        Sum of completed and settled payment amounts on an invoice

        Args:
            invoice_id: Invoice ID

        Returns:
            Decimal sum (0 when there are none)
        """
        pass

    @abstractmethod
    async def get_unresolved(self, created_before: datetime, limit: int = 100) -> List[Payment]:
        """
        Retrieve pending/processing payments created before the given time

        Used by the payment reconciler to poll the processor.
        """
        pass
