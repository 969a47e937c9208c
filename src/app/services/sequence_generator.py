"""Sequence Generator

Mints per-account document numbers (INV-00007, PAY-00012, ...). Runs on the
caller's session so the number and the document it labels commit or roll
back together.
"""

import logging
from src.app.errors import ConcurrencyConflictError
from src.app.repositories.sequence_repository import SequenceRepository
from src.domain.sequence import SEQUENCE_PREFIXES, SequenceType, format_document_number

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


class SequenceGenerator:
    """
    Service: next document number for (account_id, sequence_type)

    Business Rules:
    1. The counter row is created lazily at zero on first use
    2. The increment is one atomic statement, so concurrent callers never
       receive the same value
    3. Numbers are unique and monotonic; a rolled back transaction may leave a gap
    4. A lost race is retried a bounded number of times before surfacing
    """

    def __init__(self, sequence_repo: SequenceRepository, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        self.sequence_repo = sequence_repo
        self.max_attempts = max(1, max_attempts)

    async def next_number(self, account_id: str, sequence_type: SequenceType) -> str:
        sequence_type = SequenceType(sequence_type)
        prefix = SEQUENCE_PREFIXES[sequence_type]

        for attempt in range(1, self.max_attempts + 1):
            await self.sequence_repo.ensure_exists(account_id, sequence_type.value, prefix)
            incremented = await self.sequence_repo.increment(account_id, sequence_type.value)

            if incremented is not None:
                stored_prefix, value = incremented
                return format_document_number(stored_prefix or prefix, value)

            logger.warning(
                f"Sequence {sequence_type.value} for account {account_id} "
                f"not visible after create (attempt {attempt}/{self.max_attempts})"
            )

        raise ConcurrencyConflictError(
            code="SEQUENCE_CONFLICT",
            message=f"Could not allocate a {sequence_type.value} number, please retry",
            reason=f"account_id={account_id}, attempts={self.max_attempts}",
        )
