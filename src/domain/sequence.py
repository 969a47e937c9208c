"""Document Sequence Domain Entity

Per-account, per-document-type counter used to mint human readable numbers.
Only SequenceGenerator reads or writes it.
"""

from enum import Enum
from sqlmodel import Field, Column
from sqlalchemy import String, UniqueConstraint
from src.domain.base import BaseModel, generate_uuid


class SequenceType(str, Enum):
    QUOTE = "quote"
    JOB = "job"
    INVOICE = "invoice"
    PAYMENT = "payment"


SEQUENCE_PREFIXES = {
    SequenceType.QUOTE: "Q",
    SequenceType.JOB: "J",
    SequenceType.INVOICE: "INV",
    SequenceType.PAYMENT: "PAY",
}

NUMBER_PAD_WIDTH = 5


def format_document_number(prefix: str, value: int) -> str:
    """INV + 7 -> INV-00007; values past 99999 keep growing (INV-100000)"""
    return f"{prefix}-{value:0{NUMBER_PAD_WIDTH}d}"


class DocumentSequence(BaseModel, table=True):
    """
    Document Sequence - Monotonic counter per (account_id, sequence_type)

    Domain Rules:
    - (account_id, sequence_type) is unique
    - current_value only increases, values are never reused
    - created lazily on first use, never deleted
    """

    __tablename__ = "sequences"
    __table_args__ = (
        UniqueConstraint('account_id', 'sequence_type', name='uq_sequences_account_type'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True, max_length=36)

    account_id: str = Field(max_length=36)

    sequence_type: str = Field(sa_column=Column(String(50), nullable=False))

    prefix: str = Field(sa_column=Column(String(20), nullable=False))

    current_value: int = Field(default=0)
