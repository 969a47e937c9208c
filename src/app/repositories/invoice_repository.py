"""Invoice Repository Interface

Defines the contract for invoice persistence operations.
"""

from abc import ABC, abstractmethod
from typing import Optional, List
from datetime import date, datetime
from src.domain.invoice import Invoice, InvoiceStatus


class InvoiceRepository(ABC):
    """
    Repository interface for Invoice persistence

    All reads are scoped to an account and exclude tombstoned invoices
    unless include_deleted is set.
    """

    @abstractmethod
    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Args:
            invoice: Invoice entity to persist

        Returns:
            Created Invoice
        """
        pass

    @abstractmethod
    async def get_by_id(
        self,
        account_id: str,
        invoice_id: str,
        for_update: bool = False,
        include_deleted: bool = False,
    ) -> Optional[Invoice]:
        """
        Retrieve invoice by ID within an account

        Args:
            account_id: Tenant identifier
            invoice_id: Invoice ID
            for_update: If True, locks the row (SELECT FOR UPDATE)
            include_deleted: If True, tombstoned invoices are returned too

        Returns:
            Invoice if found, None otherwise
        """
        pass

    @abstractmethod
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
        """
        Retrieve a page of invoices for an account, newest first

        Args:
            account_id: Tenant identifier
            status: Optional filter by status
            client_id: Optional filter by client
            overdue_as_of: If set, only unpaid, non-void invoices due before this date
            include_deleted: Include tombstoned invoices
            limit: Maximum number of invoices to return
            offset: Offset for pagination

        Returns:
            List of invoices
        """
        pass

    @abstractmethod
    async def count(
        self,
        account_id: str,
        status: Optional[InvoiceStatus] = None,
        client_id: Optional[str] = None,
        overdue_as_of: Optional[date] = None,
        include_deleted: bool = False,
    ) -> int:
        """Count invoices matching the same filters as list()"""
        pass

    @abstractmethod
    async def update(self, invoice: Invoice) -> Invoice:
        """
        Update an existing invoice

        Args:
            invoice: Invoice entity with updated values

        Returns:
            Updated Invoice
        """
        pass

    @abstractmethod
    async def mark_overdue(self, today: date, account_id: Optional[str] = None) -> List[str]:
        """
        Move every non-deleted sent invoice with due_date < today to overdue

        Runs as one conditional UPDATE so a concurrent payment on the same
        invoice is never overwritten with stale balances.

        Args:
            today: Reference date
            account_id: Optional tenant filter (None = all accounts)

        Returns:
            IDs of the invoices that changed
        """
        pass

    @abstractmethod
    async def get_reminder_candidates(
        self, due_on_or_before: date, account_id: Optional[str] = None
    ) -> List[Invoice]:
        """
        Retrieve invoices that may need a payment reminder

        Args:
            due_on_or_before: sent invoices due on or before this date qualify
            account_id: Optional tenant filter (None = all accounts)

        Returns:
            sent invoices due by the given date plus every overdue invoice
        """
        pass

    @abstractmethod
    async def record_reminder(self, invoice_id: str, sent_at: datetime) -> None:
        """Stamp last_reminder_sent_at and add one to reminder_count"""
        pass
