"""Document Sequence Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple


class SequenceRepository(ABC):
    """
    Storage for per-account document counters

    Only SequenceGenerator talks to this repository.
    """

    @abstractmethod
    async def ensure_exists(self, account_id: str, sequence_type: str, prefix: str) -> None:
        """
        Create the counter row at zero if it does not exist yet

        Must be safe to call concurrently: losing a creation race is not an error.
        """
        pass

    @abstractmethod
    async def increment(self, account_id: str, sequence_type: str) -> Optional[Tuple[str, int]]:
        """
        Atomically add one to the counter

        Returns:
            (prefix, new current_value), or None if the row does not exist
        """
        pass
