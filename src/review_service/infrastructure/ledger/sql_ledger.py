"""SQL ledger backend.

Stores world state in a single ``world_state`` table through async
SQLAlchemy (SQLite via aiosqlite by default). Selector queries stream rows
in key order and filter them while iterating.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy import select, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncResult,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .models import Base, WorldStateModel
from .provider import LedgerError, LedgerProvider, QueryResultIterator
from .selector import CompiledQuery, SelectorResultIterator

logger = logging.getLogger(__name__)


class SqlQueryResultIterator(SelectorResultIterator):
    """Streams rows from an open connection; closing releases the connection."""

    def __init__(self, query: CompiledQuery, connection: AsyncConnection, result: AsyncResult):
        super().__init__(query)
        self._connection = connection
        self._result = result

    async def _fetch(self) -> Optional[Tuple[str, bytes]]:
        try:
            row = await self._result.fetchone()
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to read query results: {e}") from e
        if row is None:
            return None
        key, value = row
        return key, bytes(value)

    async def _release(self) -> None:
        try:
            try:
                await self._result.close()
            finally:
                await self._connection.close()
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to release query results: {e}") from e


class SqlLedger(LedgerProvider):
    """Async SQLAlchemy ledger provider."""

    def __init__(self, database_url: str):
        """Initialize SQL ledger.

        Args:
            database_url: SQLAlchemy database URL (e.g., sqlite+aiosqlite:///./ledger.db)
        """
        self.engine = create_async_engine(database_url, echo=False)
        self.async_session = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    @retry(
        retry=retry_if_exception_type(OperationalError),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        stop=stop_after_attempt(5),
        reraise=True,
    )
    async def verify_connection(self):
        """Verify database connection, retrying with exponential backoff."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Ledger database connection verified")

    async def initialize(self) -> None:
        """Verify the connection and create the world state table."""
        try:
            await self.verify_connection()
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise LedgerError(f"Ledger database initialization failed: {e}") from e
        logger.info("SQL ledger initialized successfully")

    async def get_state(self, key: str) -> Optional[bytes]:
        try:
            async with self.async_session() as session:
                result = await session.execute(
                    select(WorldStateModel.value).where(WorldStateModel.key == key)
                )
                value = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to read key '{key}': {e}") from e
        return bytes(value) if value is not None else None

    async def put_state(self, key: str, value: bytes) -> None:
        try:
            async with self.async_session() as session:
                await session.merge(WorldStateModel(key=key, value=bytes(value)))
                await session.commit()
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to write key '{key}': {e}") from e

    async def get_query_result(self, query: str) -> QueryResultIterator:
        compiled = CompiledQuery.parse(query)

        try:
            connection = await self.engine.connect()
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to issue query: {e}") from e

        try:
            result = await connection.stream(
                select(WorldStateModel.key, WorldStateModel.value).order_by(WorldStateModel.key)
            )
        except SQLAlchemyError as e:
            await connection.close()
            raise LedgerError(f"Failed to issue query: {e}") from e

        return SqlQueryResultIterator(compiled, connection, result)

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()

    async def health_check(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Ledger health check failed: {e}")
            return False
