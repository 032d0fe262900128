"""Ledger Provider Interface

Abstraction over the transactional key-value ledger the service stores
review documents in. The ledger offers:
- Point lookups by key
- Point writes by key
- Declarative selector queries returning matching records

Local backends:
- MemoryLedger (tests and ephemeral runs)
- SqlLedger (SQLAlchemy, SQLite by default)
"""

from abc import ABC, abstractmethod
from typing import Optional
from pydantic import BaseModel


class LedgerError(Exception):
    """Raised when a ledger operation cannot be completed."""


class LedgerRecord(BaseModel):
    """A (key, value) pair yielded by a selector query."""

    key: str
    value: bytes


class QueryResultIterator(ABC):
    """Forward-only iterator over selector query results.

    Must be closed after use. Supports ``async with`` (closes on exit) and
    ``async for``.
    """

    @abstractmethod
    async def has_next(self) -> bool:
        """Return True if another record is available."""
        pass

    @abstractmethod
    async def next(self) -> LedgerRecord:
        """Return the next record.

        Raises:
            StopAsyncIteration: If the iterator is exhausted
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying resources. Safe to call more than once."""
        pass

    async def __aenter__(self) -> "QueryResultIterator":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    def __aiter__(self) -> "QueryResultIterator":
        return self

    async def __anext__(self) -> LedgerRecord:
        if not await self.has_next():
            raise StopAsyncIteration
        return await self.next()


class LedgerProvider(ABC):
    """Abstract base class for ledger backends."""

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the backend (connections, tables).

        Raises:
            LedgerError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def get_state(self, key: str) -> Optional[bytes]:
        """Read the value stored at ``key``.

        Returns:
            The stored bytes, or None if the key does not exist

        Raises:
            LedgerError: If the lookup fails
        """
        pass

    @abstractmethod
    async def put_state(self, key: str, value: bytes) -> None:
        """Write ``value`` at ``key``.

        Raises:
            LedgerError: If the write fails
        """
        pass

    @abstractmethod
    async def get_query_result(self, query: str) -> QueryResultIterator:
        """Run a JSON selector query.

        Args:
            query: JSON document with ``selector`` and optional ``fields``,
                ``limit`` and ``skip`` members, e.g.
                ``{"selector": {"text": {"$regex": "^Wid"}}, "limit": 99}``

        Returns:
            Iterator over matching records; the caller must close it

        Raises:
            LedgerError: If the query is malformed or cannot be issued
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the ledger is reachable.

        Returns:
            True if healthy, False otherwise
        """
        pass
