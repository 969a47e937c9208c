"""SQLAlchemy Document Sequence Repository Implementation

Counter rows are created with INSERT ... ON CONFLICT DO NOTHING and bumped
with a single UPDATE ... RETURNING, so concurrent callers on PostgreSQL and
SQLite never read-modify-write the counter themselves.
"""

import logging
from typing import Optional, Tuple
from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.sequence_repository import SequenceRepository
from src.domain.base import generate_uuid
from src.domain.sequence import DocumentSequence

logger = logging.getLogger(__name__)

UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class SqlAlchemySequenceRepository(SequenceRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    def _dialect_name(self) -> str:
        return self.session.get_bind().dialect.name

    async def ensure_exists(self, account_id: str, sequence_type: str, prefix: str) -> None:
        table = DocumentSequence.__table__
        values = dict(
            id=generate_uuid(),
            account_id=account_id,
            sequence_type=sequence_type,
            prefix=prefix,
            current_value=0,
        )

        insert = UPSERT_INSERTS.get(self._dialect_name())
        if insert is not None:
            statement = (
                insert(table)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["account_id", "sequence_type"])
            )
            await self.session.execute(statement)
            return

        # Other backends: check, then insert inside a savepoint
        existing = await self.session.execute(
            select(DocumentSequence.id).where(
                DocumentSequence.account_id == account_id,
                DocumentSequence.sequence_type == sequence_type,
            )
        )
        if existing.first() is not None:
            return

        try:
            async with self.session.begin_nested():
                await self.session.execute(table.insert().values(**values))
        except IntegrityError:
            logger.info(f"Sequence {sequence_type} for account {account_id} created concurrently")

    async def increment(self, account_id: str, sequence_type: str) -> Optional[Tuple[str, int]]:
        table = DocumentSequence.__table__
        statement = (
            update(table)
            .where(table.c.account_id == account_id, table.c.sequence_type == sequence_type)
            .values(current_value=table.c.current_value + 1)
            .returning(table.c.prefix, table.c.current_value)
        )
        result = await self.session.execute(statement)
        row = result.first()
        if row is None:
            return None
        return row.prefix, row.current_value
