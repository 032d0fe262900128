"""Pattern search: selector query construction and result aggregation."""

import logging
from contextlib import aclosing
from typing import AsyncIterator, Dict, List, Optional
from pydantic import BaseModel, Field

from ..infrastructure.ledger import LedgerError, LedgerProvider, QueryResultIterator
from ..models.document import DOCUMENT_FIELDS, DecodedRecord, decode_record
from .errors import InternalError


class RegexCondition(BaseModel):
    """Field condition matching a regular expression."""
    regex: str = Field(..., alias="$regex")


class SelectorQuery(BaseModel):
    """Structured selector query submitted to the ledger."""
    selector: Dict[str, RegexCondition]
    fields: List[str] = Field(default_factory=lambda: list(DOCUMENT_FIELDS))
    limit: int = 99

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class SearchResultItem(BaseModel):
    """One entry of a search result set."""
    id: str
    review: str
    product: str
    name: str
    location: str
    rating: str

    @classmethod
    def from_record(cls, record: DecodedRecord) -> "SearchResultItem":
        doc = record.recovered if record.is_corrupt else record.document
        return cls(
            id=record.key,
            review=doc.review,
            product=doc.text,
            name=doc.name,
            location=doc.location,
            rating=doc.rating,
        )


class SearchResults(BaseModel):
    """Aggregate returned by a search: ``{"values": [...]}``."""
    values: List[SearchResultItem] = Field(default_factory=list)

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")


def fold_quotes(pattern: str) -> str:
    """Replace every double quote with a regex wildcard."""
    return pattern.replace('"', ".")


async def iter_decoded(results: QueryResultIterator) -> AsyncIterator[DecodedRecord]:
    """Decode each record of a query result into a typed outcome."""
    async for record in results:
        yield decode_record(record.key, record.value)


class QueryBuilder:
    """Builds `text` regex queries and turns their results into JSON."""

    def __init__(
        self,
        limit: int = 99,
        fold_quotes_in_patterns: bool = True,
        strict_decoding: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        self.limit = limit
        self.fold_quotes_in_patterns = fold_quotes_in_patterns
        self.strict_decoding = strict_decoding
        self.logger = logger or logging.getLogger(__name__)

    def build(self, pattern: str) -> SelectorQuery:
        """Build the selector query for documents whose `text` matches ``pattern``."""
        if self.fold_quotes_in_patterns:
            pattern = fold_quotes(pattern)
        return SelectorQuery(
            selector={"text": RegexCondition(**{"$regex": pattern})},
            limit=self.limit,
        )

    async def execute(self, ledger: LedgerProvider, query: SelectorQuery) -> SearchResults:
        """Run ``query`` against the ledger and collect the matches.

        The result iterator is closed on every exit path.

        Raises:
            InternalError: If the query cannot be issued or read, or a record
                is corrupt while strict decoding is enabled
        """
        try:
            results = await ledger.get_query_result(query.to_json())
        except LedgerError as e:
            raise InternalError(str(e))

        aggregate = SearchResults()
        try:
            async with results, aclosing(iter_decoded(results)) as records:
                async for record in records:
                    if record.is_corrupt:
                        if self.strict_decoding:
                            raise InternalError(f"Corrupt record '{record.key}': {record.error}")
                        self.logger.warning(f"Corrupt record '{record.key}' emitted with recovered fields")
                    aggregate.values.append(SearchResultItem.from_record(record))
        except LedgerError as e:
            raise InternalError(str(e))

        return aggregate
