"""Invoice Line Item Repository Interface"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.invoice_line_item import InvoiceLineItem


class InvoiceLineItemRepository(ABC):
    """
    Repository interface for InvoiceLineItem persistence

    Line items are only ever written as a complete batch per invoice.
    """

    @abstractmethod
    async def get_by_invoice_id(self, invoice_id: str) -> List[InvoiceLineItem]:
        """
        Retrieve all line items for an invoice

        Args:
            invoice_id: Invoice ID

        Returns:
            Line items ordered by sort_order
        """
        pass

    @abstractmethod
    async def replace_for_invoice(
        self, invoice_id: str, line_items: List[InvoiceLineItem]
    ) -> List[InvoiceLineItem]:
        """
        Delete the invoice's current line items and insert the given batch

        Args:
            invoice_id: Invoice ID
            line_items: New line items (invoice_id and sort_order are set here)

        Returns:
            Persisted line items in order
        """
        pass
