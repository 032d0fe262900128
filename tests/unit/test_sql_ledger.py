"""Tests for the SQLite-backed ledger."""

import json
import pytest
from unittest.mock import AsyncMock, patch

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncResult

from review_service.config.settings import Settings
from review_service.core.dispatcher import Dispatcher
from review_service.core.review_manager import ReviewManager
from review_service.infrastructure.ledger import LedgerError, SqlLedger
from review_service.models.document import Document

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"


def connection_reset():
    return OperationalError("SELECT", {}, Exception("connection reset"))


async def test_missing_key_reads_as_none(database_url):
    """Absent key reads as None"""
    ledger = SqlLedger(database_url)
    await ledger.initialize()
    try:
        assert await ledger.get_state("nope") is None
    finally:
        await ledger.close()


async def test_put_then_get_and_overwrite(database_url):
    """Happy path: put stores a value and a second put replaces it"""
    ledger = SqlLedger(database_url)
    await ledger.initialize()
    try:
        await ledger.put_state("r1", b"first")
        assert await ledger.get_state("r1") == b"first"

        await ledger.put_state("r1", b"second")
        assert await ledger.get_state("r1") == b"second"
    finally:
        await ledger.close()


async def test_state_survives_reopen(database_url):
    """Stored state is visible to a new ledger on the same database"""
    ledger = SqlLedger(database_url)
    await ledger.initialize()
    await ledger.put_state("r1", Document(text="Widget").to_bytes())
    await ledger.close()

    reopened = SqlLedger(database_url)
    await reopened.initialize()
    try:
        assert Document.from_bytes(await reopened.get_state("r1")).text == "Widget"
    finally:
        await reopened.close()


async def test_query_streams_matches_in_key_order(database_url):
    """Selector query yields projected matches in key order up to the limit"""
    ledger = SqlLedger(database_url)
    await ledger.initialize()
    try:
        for key, text in [("c", "Hullo"), ("a", "Hello"), ("b", "Gadget"), ("d", "Hallo")]:
            await ledger.put_state(key, Document(text=text, rating="5").to_bytes())

        results = await ledger.get_query_result(
            '{"selector": {"text": {"$regex": "^H.llo"}}, "fields": ["text"], "limit": 2}'
        )
        async with results:
            records = [record async for record in results]

        assert [r.key for r in records] == ["a", "c"]
        assert records[0].value == b'{"text":"Hello"}'
    finally:
        await ledger.close()


async def test_malformed_query_raises(database_url):
    """Invalid regex in a selector raises LedgerError"""
    ledger = SqlLedger(database_url)
    await ledger.initialize()
    try:
        with pytest.raises(LedgerError):
            await ledger.get_query_result('{"selector": {"text": {"$regex": "("}}}')
    finally:
        await ledger.close()


async def test_closing_results_twice_is_safe(database_url):
    """Second close is a no-op and a closed iterator has no next"""
    ledger = SqlLedger(database_url)
    await ledger.initialize()
    try:
        await ledger.put_state("a", Document(text="Widget").to_bytes())
        results = await ledger.get_query_result('{"selector": {}}')

        assert await results.has_next()
        await results.close()
        await results.close()

        assert not await results.has_next()
    finally:
        await ledger.close()


async def test_close_failure_raises_ledger_error(database_url):
    """Database error while releasing results surfaces as LedgerError"""
    ledger = SqlLedger(database_url)
    await ledger.initialize()
    try:
        await ledger.put_state("a", Document(text="Widget").to_bytes())
        results = await ledger.get_query_result('{"selector": {}}')

        with patch.object(AsyncResult, "close", AsyncMock(side_effect=connection_reset())):
            with pytest.raises(LedgerError, match="connection reset"):
                await results.close()
    finally:
        await ledger.close()


async def test_search_returns_internal_error_when_close_fails(database_url):
    """Search returns a 500 envelope when releasing results fails"""
    ledger = SqlLedger(database_url)
    await ledger.initialize()
    try:
        await ledger.put_state("r1", Document(text="Widget").to_bytes())
        manager = ReviewManager(ledger, Settings(ledger_backend="memory"))
        dispatcher = Dispatcher(manager)

        with patch.object(AsyncResult, "close", AsyncMock(side_effect=connection_reset())):
            envelope = await dispatcher.invoke("search", ["Widget"])

        assert envelope.status == 500
        assert "connection reset" in envelope.message
        assert envelope.payload is None

        envelope = await dispatcher.invoke("search", ["Widget"])
        assert envelope.status == 200
        assert [v["id"] for v in json.loads(envelope.payload)["values"]] == ["r1"]
    finally:
        await ledger.close()


async def test_health_check(database_url):
    """Health check succeeds on an initialized ledger"""
    ledger = SqlLedger(database_url)
    await ledger.initialize()
    try:
        assert await ledger.health_check() is True
    finally:
        await ledger.close()
