"""Ledger Provider Factory

Chooses the ledger backend from configuration.
"""

import logging

from ...config.settings import Settings
from .provider import LedgerProvider
from .memory_ledger import MemoryLedger
from .sql_ledger import SqlLedger

logger = logging.getLogger(__name__)


def create_ledger_provider(settings: Settings) -> LedgerProvider:
    """Create the ledger provider named by ``settings.ledger_backend``.

    - "sql" (default): SqlLedger on ``settings.database_url``
    - "memory": MemoryLedger, state is lost on restart

    Raises:
        ValueError: If the backend name is not recognised
    """
    backend = settings.ledger_backend.lower()

    logger.info(f"Initializing ledger provider: {backend}")

    if backend == "sql":
        return SqlLedger(settings.database_url)
    if backend == "memory":
        return MemoryLedger()

    raise ValueError(
        f"Invalid LEDGER_BACKEND: {settings.ledger_backend}. "
        f"Must be 'sql' or 'memory'"
    )
