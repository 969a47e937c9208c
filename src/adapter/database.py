"""Async engine construction

PostgreSQL honours the SELECT ... FOR UPDATE row locks the use cases take.
SQLite ignores them, so every SQLite transaction starts with BEGIN IMMEDIATE
and holds the database write lock from its first statement.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine


def create_engine(db_uri: str, echo: bool = False) -> AsyncEngine:
    engine = create_async_engine(db_uri, echo=echo, future=True)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def _disable_driver_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine
