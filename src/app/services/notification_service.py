"""Notification Service Interface

Defines the contract for outbound email delivery (invoices, reminders).
"""

from abc import ABC, abstractmethod
from typing import Optional


class NotificationService(ABC):
    """
    Abstract notification dispatcher

    Delivery is best-effort from the ledger's point of view: implementations
    log and swallow transport failures and report them by returning None.
    """

    @abstractmethod
    async def send_email(self, to: str, subject: str, body: str) -> Optional[str]:
        """
        Send an email

        Args:
            to: Recipient address
            subject: Subject line
            body: Plain-text body

        Returns:
            Provider message id if accepted, None if delivery failed
        """
        pass
