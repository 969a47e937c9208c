"""Refund Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from src.domain.refund import Refund


class RefundRepository(ABC):
    """Repository interface for Refund persistence"""

    @abstractmethod
    async def create(self, refund: Refund) -> Refund:
        pass

    @abstractmethod
    async def update(self, refund: Refund) -> Refund:
        pass

    @abstractmethod
    async def get_by_id(self, refund_id: str, for_update: bool = False) -> Optional[Refund]:
        pass

    @abstractmethod
    async def get_by_payment_id(self, payment_id: str) -> List[Refund]:
        pass

    @abstractmethod
    async def sum_completed_for_payment(self, payment_id: str) -> Decimal:
        """Sum of completed refund amounts on one payment (0 when none)"""
        pass

    @abstractmethod
    async def sum_outstanding_for_payment(self, payment_id: str) -> Decimal:
        """Sum of pending and completed refund amounts on one payment (0 when none)"""
        pass

    @abstractmethod
    async def sum_completed_for_invoice(self, invoice_id: str) -> Decimal:
        """Sum of completed refunds on collected payments of an invoice (0 when none)"""
        pass

    @abstractmethod
    async def get_pending(self, created_before: datetime, limit: int = 100) -> List[Refund]:
        pass
