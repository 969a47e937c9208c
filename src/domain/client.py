"""Client Domain Entity

Read-only collaborator record. The ledger only checks that a client exists
inside an account and caches the processor customer reference on it.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import String
from src.domain.base import BaseModel, generate_uuid


class Client(BaseModel, table=True):
    __tablename__ = "clients"
    __table_args__ = (
        Index('ix_clients_account_id', 'account_id'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True, max_length=36)
    account_id: str = Field(max_length=36)
    first_name: str = Field(sa_column=Column(String(100), nullable=False))
    last_name: str = Field(sa_column=Column(String(100), nullable=False))
    company_name: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    email: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))

    processor_customer_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Cached customer reference at the charge processor"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def display_name(self) -> str:
        if self.company_name:
            return self.company_name
        return f"{self.first_name} {self.last_name}".strip()
