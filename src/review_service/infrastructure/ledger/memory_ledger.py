"""In-memory ledger backend.

Keeps world state in a dict. Intended for tests and ephemeral runs; nothing
survives a restart.
"""

import logging
from typing import Dict, List, Optional, Tuple

from .provider import LedgerProvider, QueryResultIterator
from .selector import CompiledQuery, SelectorResultIterator

logger = logging.getLogger(__name__)


class MemoryQueryResultIterator(SelectorResultIterator):
    """Iterates a snapshot of the state taken when the query was issued."""

    def __init__(self, ledger: "MemoryLedger", query: CompiledQuery, items: List[Tuple[str, bytes]]):
        super().__init__(query)
        self._ledger = ledger
        self._items = items
        self._position = 0

    async def _fetch(self) -> Optional[Tuple[str, bytes]]:
        if self._position >= len(self._items):
            return None
        item = self._items[self._position]
        self._position += 1
        return item

    async def _release(self) -> None:
        self._items = []
        self._ledger.open_iterators -= 1


class MemoryLedger(LedgerProvider):
    """Dict-backed ledger provider."""

    def __init__(self):
        self._state: Dict[str, bytes] = {}
        self.open_iterators = 0

    async def initialize(self) -> None:
        logger.info("In-memory ledger initialized")

    async def get_state(self, key: str) -> Optional[bytes]:
        return self._state.get(key)

    async def put_state(self, key: str, value: bytes) -> None:
        self._state[key] = bytes(value)

    async def get_query_result(self, query: str) -> QueryResultIterator:
        compiled = CompiledQuery.parse(query)
        items = sorted(self._state.items())
        self.open_iterators += 1
        return MemoryQueryResultIterator(self, compiled, items)

    async def close(self) -> None:
        self._state.clear()

    async def health_check(self) -> bool:
        return True
