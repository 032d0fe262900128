"""Selector query evaluation for the local ledger backends.

Implements the subset of the CouchDB Mango selector language the local
backends need: implicit equality, ``$eq``, ``$ne``, ``$regex``, ``$in``,
``$exists``, ``$and`` and ``$or``, plus ``fields``, ``limit`` and ``skip``.
"""

import json
import re
from abc import abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

from .provider import LedgerError, LedgerRecord, QueryResultIterator

Predicate = Callable[[Dict[str, Any]], bool]

_MISSING = object()


def _field_operator(field: str, operator: str, operand: Any) -> Predicate:
    if operator == "$eq":
        return lambda doc: doc.get(field, _MISSING) == operand
    if operator == "$ne":
        return lambda doc: doc.get(field, _MISSING) != operand
    if operator == "$in":
        if not isinstance(operand, list):
            raise LedgerError(f"$in operand for '{field}' must be an array")
        return lambda doc: doc.get(field, _MISSING) in operand
    if operator == "$exists":
        if not isinstance(operand, bool):
            raise LedgerError(f"$exists operand for '{field}' must be a boolean")
        return lambda doc: (field in doc) == operand
    if operator == "$regex":
        if not isinstance(operand, str):
            raise LedgerError(f"$regex operand for '{field}' must be a string")
        try:
            pattern = re.compile(operand)
        except re.error as e:
            raise LedgerError(f"Invalid $regex for '{field}': {e}")

        def regex_match(doc: Dict[str, Any]) -> bool:
            value = doc.get(field)
            return isinstance(value, str) and pattern.search(value) is not None
        return regex_match
    raise LedgerError(f"Unsupported selector operator: {operator}")


def _compile_field(field: str, condition: Any) -> Predicate:
    if not isinstance(condition, dict):
        return lambda doc: doc.get(field, _MISSING) == condition

    predicates = [
        _field_operator(field, operator, operand)
        for operator, operand in condition.items()
    ]
    return lambda doc: all(p(doc) for p in predicates)


def compile_selector(selector: Any) -> Predicate:
    """Compile a selector object into a predicate over decoded documents.

    Raises:
        LedgerError: If the selector is malformed
    """
    if not isinstance(selector, dict):
        raise LedgerError("Selector must be a JSON object")

    predicates: List[Predicate] = []
    for name, condition in selector.items():
        if name in ("$and", "$or"):
            if not isinstance(condition, list):
                raise LedgerError(f"{name} operand must be an array")
            children = [compile_selector(child) for child in condition]
            if name == "$and":
                predicates.append(lambda doc, c=children: all(p(doc) for p in c))
            else:
                predicates.append(lambda doc, c=children: any(p(doc) for p in c))
        elif name.startswith("$"):
            raise LedgerError(f"Unsupported selector operator: {name}")
        else:
            predicates.append(_compile_field(name, condition))

    return lambda doc: all(p(doc) for p in predicates)


class CompiledQuery:
    """A parsed selector query ready to be applied to stored records."""

    def __init__(
        self,
        predicate: Predicate,
        fields: Optional[List[str]] = None,
        limit: Optional[int] = None,
        skip: int = 0
    ):
        self.predicate = predicate
        self.fields = fields
        self.limit = limit
        self.skip = skip

    @classmethod
    def parse(cls, query: str) -> "CompiledQuery":
        """Parse a JSON query string.

        Raises:
            LedgerError: If the query is not valid JSON or not a valid query
        """
        try:
            data = json.loads(query)
        except ValueError as e:
            raise LedgerError(f"Query is not valid JSON: {e}")
        if not isinstance(data, dict) or "selector" not in data:
            raise LedgerError("Query must be a JSON object with a 'selector' member")

        fields = data.get("fields")
        if fields is not None and (
            not isinstance(fields, list) or not all(isinstance(f, str) for f in fields)
        ):
            raise LedgerError("'fields' must be an array of strings")

        limit = data.get("limit")
        if limit is not None and (not isinstance(limit, int) or limit < 0):
            raise LedgerError("'limit' must be a non-negative integer")

        skip = data.get("skip", 0)
        if not isinstance(skip, int) or skip < 0:
            raise LedgerError("'skip' must be a non-negative integer")

        return cls(compile_selector(data["selector"]), fields, limit, skip)

    def matches(self, value: bytes) -> bool:
        """Return True if the stored value is a JSON object matching the selector."""
        doc = _decode(value)
        return doc is not None and self.predicate(doc)

    def project(self, value: bytes) -> bytes:
        """Apply the ``fields`` projection to a matching stored value."""
        if self.fields is None:
            return value
        doc = _decode(value) or {}
        projected = {field: doc[field] for field in self.fields if field in doc}
        return json.dumps(projected, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _decode(value: bytes) -> Optional[Dict[str, Any]]:
    try:
        doc = json.loads(value)
    except (ValueError, TypeError):
        return None
    return doc if isinstance(doc, dict) else None


class SelectorResultIterator(QueryResultIterator):
    """Applies a compiled query to a stream of raw stored records.

    Subclasses supply the raw stream through ``_fetch`` and release their
    resources in ``_release``.
    """

    def __init__(self, query: CompiledQuery):
        self.query = query
        self._pending: Optional[LedgerRecord] = None
        self._skipped = 0
        self._returned = 0
        self._closed = False

    @abstractmethod
    async def _fetch(self) -> Optional[Tuple[str, bytes]]:
        """Return the next raw (key, value) pair, or None when exhausted."""

    @abstractmethod
    async def _release(self) -> None:
        """Release backend resources."""

    async def has_next(self) -> bool:
        if self._pending is not None:
            return True
        if self._closed:
            return False
        if self.query.limit is not None and self._returned >= self.query.limit:
            return False

        while True:
            raw = await self._fetch()
            if raw is None:
                return False
            key, value = raw
            if not self.query.matches(value):
                continue
            if self._skipped < self.query.skip:
                self._skipped += 1
                continue
            self._pending = LedgerRecord(key=key, value=self.query.project(value))
            return True

    async def next(self) -> LedgerRecord:
        if not await self.has_next():
            raise StopAsyncIteration
        record, self._pending = self._pending, None
        self._returned += 1
        return record

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._pending = None
        await self._release()
