"""Job Domain Entity

Read-only collaborator record; invoices may reference a job in the same account.
"""

from datetime import datetime
from sqlmodel import Field, Column, Index
from sqlalchemy import String
from src.domain.base import BaseModel, generate_uuid


class Job(BaseModel, table=True):
    __tablename__ = "jobs"
    __table_args__ = (
        Index('ix_jobs_account_id', 'account_id'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True, max_length=36)
    account_id: str = Field(max_length=36)
    job_number: str = Field(sa_column=Column(String(50), nullable=False))
    title: str = Field(sa_column=Column(String(255), nullable=False))
    status: str = Field(default="scheduled", sa_column=Column(String(50), nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow)
