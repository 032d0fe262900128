"""Unit tests for search query construction and aggregation."""

import json
import pytest
from unittest.mock import AsyncMock, MagicMock

from review_service.core import query_builder
from review_service.core.errors import InternalError
from review_service.core.query_builder import QueryBuilder, SearchResults, fold_quotes, iter_decoded
from review_service.infrastructure.ledger import LedgerError, LedgerRecord, MemoryLedger
from review_service.models.document import Document


@pytest.mark.unit
class TestQueryConstruction:
    """Test selector query construction"""

    def test_query_matches_text_projects_fields_and_caps_results(self):
        """Happy path: query matches text, projects document fields and caps at 99"""
        query = QueryBuilder().build("^Wid")

        assert json.loads(query.to_json()) == {
            "selector": {"text": {"$regex": "^Wid"}},
            "fields": ["text", "review", "name", "location", "rating"],
            "limit": 99,
        }

    def test_quotes_fold_to_wildcards(self):
        """Double quotes fold to regex wildcards"""
        assert fold_quotes('say "hi"') == "say .hi."

        query = QueryBuilder().build('a"b')

        assert json.loads(query.to_json())["selector"]["text"]["$regex"] == "a.b"

    def test_quotes_are_encoded_safely_when_folding_is_off(self):
        """Quotes cannot escape the regex literal when folding is off"""
        pattern = '"}, "selector": {"rating": "5'

        query = QueryBuilder(fold_quotes_in_patterns=False).build(pattern)
        decoded = json.loads(query.to_json())

        assert decoded["selector"] == {"text": {"$regex": pattern}}

    def test_limit_is_configurable(self):
        """Result limit follows the builder setting"""
        assert json.loads(QueryBuilder(limit=5).build("x").to_json())["limit"] == 5


def failing_results(error: Exception):
    """Result iterator that fails on first read and records close()."""
    results = MagicMock()
    results.__aenter__ = AsyncMock(return_value=results)
    results.__aexit__ = AsyncMock(return_value=None)
    results.__aiter__ = MagicMock(return_value=results)
    results.__anext__ = AsyncMock(side_effect=error)
    return results


@pytest.mark.unit
@pytest.mark.asyncio
class TestQueryExecution:
    """Test query execution and result aggregation"""

    async def test_no_matches_yields_empty_values(self):
        """No match yields an empty values list"""
        results = await QueryBuilder().execute(MemoryLedger(), QueryBuilder().build("^Nothing"))

        assert results == SearchResults()
        assert json.loads(results.to_bytes()) == {"values": []}

    async def test_matches_map_text_to_product(self):
        """Happy path: text is reported as product and iterator is released"""
        ledger = MemoryLedger()
        doc = Document(text="Widget", review="Great!", name="Alice", location="NY", rating="5")
        await ledger.put_state("r1", doc.to_bytes())
        await ledger.put_state("r2", Document(text="Gadget").to_bytes())

        builder = QueryBuilder()
        results = await builder.execute(ledger, builder.build("^Wid"))

        assert json.loads(results.to_bytes()) == {"values": [{
            "id": "r1", "review": "Great!", "product": "Widget",
            "name": "Alice", "location": "NY", "rating": "5",
        }]}
        assert ledger.open_iterators == 0

    async def test_query_failure_is_internal_error(self):
        """Query failure raises InternalError"""
        ledger = MemoryLedger()
        builder = QueryBuilder()

        with pytest.raises(InternalError, match="Invalid \\$regex"):
            await builder.execute(ledger, builder.build("("))

    async def test_iterator_closed_when_reading_fails(self):
        """Result iterator is closed when reading fails"""
        results = failing_results(LedgerError("cursor lost"))
        ledger = MagicMock()
        ledger.get_query_result = AsyncMock(return_value=results)

        builder = QueryBuilder()
        with pytest.raises(InternalError, match="cursor lost"):
            await builder.execute(ledger, builder.build("x"))

        results.__aexit__.assert_awaited_once()

    async def test_corrupt_record_emitted_with_recovered_fields(self, caplog):
        """Corrupt record is emitted with recovered fields and a warning"""
        ledger = MemoryLedger()
        await ledger.put_state("bad", b'{"text":"Widget","rating":5}')

        builder = QueryBuilder()
        results = await builder.execute(ledger, builder.build("Widget"))

        assert [item.model_dump() for item in results.values] == [{
            "id": "bad", "review": "", "product": "Widget",
            "name": "", "location": "", "rating": "",
        }]
        assert "Corrupt record 'bad'" in caplog.text

    async def test_corrupt_record_fails_search_in_strict_mode(self):
        """Corrupt record fails the search in strict mode"""
        ledger = MemoryLedger()
        await ledger.put_state("bad", b'{"text":"Widget","rating":5}')

        builder = QueryBuilder(strict_decoding=True)
        with pytest.raises(InternalError, match="Corrupt record 'bad'"):
            await builder.execute(ledger, builder.build("Widget"))

        assert ledger.open_iterators == 0

    async def test_decoded_records_closed_when_strict_decoding_fails(self, monkeypatch):
        """Record decoder is finalized before the search error propagates"""
        ledger = MemoryLedger()
        await ledger.put_state("bad", b'{"text":"Widget","rating":5}')
        await ledger.put_state("good", Document(text="Widget").to_bytes())
        finalized = []

        async def tracking_decoder(results):
            try:
                async for record in iter_decoded(results):
                    yield record
            finally:
                finalized.append(ledger.open_iterators)

        monkeypatch.setattr(query_builder, "iter_decoded", tracking_decoder)

        builder = QueryBuilder(strict_decoding=True)
        with pytest.raises(InternalError, match="Corrupt record 'bad'"):
            await builder.execute(ledger, builder.build("Widget"))

        assert finalized == [1]
        assert ledger.open_iterators == 0

    async def test_result_records_are_decoded_from_projection(self):
        """Records are decoded from the projected value"""
        ledger = MagicMock()
        records = [LedgerRecord(key="k", value=b'{"text":"T","review":"R"}')]

        class Results:
            def __init__(self):
                self.closed = False

            async def __aenter__(self):
                return self

            async def __aexit__(self, *exc):
                self.closed = True

            def __aiter__(self):
                self._it = iter(records)
                return self

            async def __anext__(self):
                try:
                    return next(self._it)
                except StopIteration:
                    raise StopAsyncIteration

        results = Results()
        ledger.get_query_result = AsyncMock(return_value=results)

        builder = QueryBuilder()
        aggregate = await builder.execute(ledger, builder.build("T"))

        assert aggregate.values[0].product == "T"
        assert aggregate.values[0].review == "R"
        assert results.closed
        submitted = json.loads(ledger.get_query_result.await_args.args[0])
        assert submitted["selector"] == {"text": {"$regex": "T"}}
