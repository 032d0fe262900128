"""Review document operations: create, read and search."""

import logging
from http import HTTPStatus
from typing import Optional

from ..config.settings import Settings
from ..infrastructure.ledger import LedgerError, LedgerProvider
from ..models.document import Document
from ..models.envelope import Envelope
from .errors import BadRequestError, ConflictError, InternalError, NotFoundError
from .query_builder import QueryBuilder
from .response_builder import ResponseBuilder


class ReviewManager:
    """Business logic for review documents stored in the ledger."""

    def __init__(
        self,
        ledger: LedgerProvider,
        settings: Settings,
        responses: Optional[ResponseBuilder] = None,
        query_builder: Optional[QueryBuilder] = None,
        logger: Optional[logging.Logger] = None
    ):
        """Initialize review manager.

        Args:
            ledger: Ledger provider holding the documents
            settings: Service settings (validation bounds, search options)
            responses: Envelope builder; built from settings if omitted
            query_builder: Search query builder; built from settings if omitted
            logger: Logger for this manager
        """
        self.ledger = ledger
        self.settings = settings
        self.logger = logger or logging.getLogger(__name__)
        self.responses = responses or ResponseBuilder(settings.max_payload_bytes, self.logger)
        self.query_builder = query_builder or QueryBuilder(
            limit=settings.search_result_limit,
            fold_quotes_in_patterns=settings.fold_quotes_in_patterns,
            strict_decoding=settings.strict_decoding,
            logger=self.logger,
        )

    def _check_length(self, operation: str, label: str, value: str, max_length: int):
        if not self.settings.enforce_field_bounds:
            return
        if not 1 <= len(value) <= max_length:
            raise BadRequestError(
                f"{operation}: argument '{label}' must be between 1 and {max_length} characters"
            )

    async def create(
        self, review_id: str, text: str, review: str, name: str, location: str, rating: str
    ) -> Envelope:
        """Create a review document under a new id.

        Args:
            review_id: Key for the document, folded to lowercase
            text: Product the review is about
            review: Review body
            name: Reviewer name
            location: Reviewer location
            rating: Rating as given by the reviewer

        Returns:
            201 envelope without payload

        Raises:
            ConflictError: If the id exists, or its existence cannot be ruled out
            InternalError: If the ledger write fails
        """
        self._check_length("create", "id", review_id, self.settings.max_id_length)
        self._check_length("create", "text", text, self.settings.max_text_length)

        key = review_id.lower()
        doc = Document(text=text, review=review, name=name, location=location, rating=rating)

        # Only a clean lookup returning nothing proves the key is free.
        try:
            existing = await self.ledger.get_state(key)
        except LedgerError as e:
            self.logger.warning(f"Existence check for '{key}' failed: {e}")
            raise ConflictError("Text Exists")
        if existing:
            raise ConflictError("Text Exists")

        try:
            await self.ledger.put_state(key, doc.to_bytes())
        except LedgerError as e:
            raise InternalError(str(e))

        self.logger.info(f"Created review {key}")
        return self.responses.success(HTTPStatus.CREATED, "Text Created")

    async def read(self, review_id: str) -> Envelope:
        """Read the stored bytes of a review document.

        Raises:
            NotFoundError: If the key is absent or the lookup fails
        """
        self._check_length("read", "id", review_id, self.settings.max_id_length)

        key = review_id.lower()
        try:
            value = await self.ledger.get_state(key)
        except LedgerError as e:
            self.logger.warning(f"Lookup for '{key}' failed: {e}")
            raise NotFoundError("Not Found")
        if not value:
            raise NotFoundError("Not Found")

        return self.responses.success(HTTPStatus.OK, "OK", value)

    async def search(self, pattern: str) -> Envelope:
        """Find documents whose `text` matches a regular expression.

        For example '^H.llo' matches texts starting with 'Hello' or 'Hallo'.

        Returns:
            200 envelope whose payload is ``{"values": [...]}``

        Raises:
            InternalError: If the query fails
        """
        self._check_length("search", "pattern", pattern, self.settings.max_pattern_length)

        query = self.query_builder.build(pattern)
        results = await self.query_builder.execute(self.ledger, query)

        self.logger.info(f"Search for '{pattern}' returned {len(results.values)} results")
        return self.responses.success(HTTPStatus.OK, "OK", results.to_bytes())
