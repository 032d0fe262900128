"""Ledger infrastructure.

Key-value ledger abstraction with local backends:
- SqlLedger (async SQLAlchemy, SQLite by default)
- MemoryLedger (in-process, for tests and ephemeral runs)
"""

from .factory import create_ledger_provider
from .provider import LedgerProvider, LedgerError, LedgerRecord, QueryResultIterator
from .memory_ledger import MemoryLedger
from .sql_ledger import SqlLedger

__all__ = [
    "create_ledger_provider",
    "LedgerProvider",
    "LedgerError",
    "LedgerRecord",
    "QueryResultIterator",
    "MemoryLedger",
    "SqlLedger",
]
