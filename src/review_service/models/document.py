"""Review document model and its byte codec."""

import json
from typing import Union
from pydantic import BaseModel, Field, ValidationError


DOCUMENT_FIELDS = ("text", "review", "name", "location", "rating")


class DocumentDecodeError(ValueError):
    """Raised when stored bytes cannot be decoded into a Document."""


class Document(BaseModel):
    """Value stored at each ledger key.

    All fields are opaque text. Identity lives outside the document: it is
    the key the document is stored under.
    """
    text: str = Field(default="", description="Product the review is about")
    review: str = Field(default="")
    name: str = Field(default="", description="Reviewer name")
    location: str = Field(default="")
    rating: str = Field(default="")

    def to_bytes(self) -> bytes:
        """Encode as compact UTF-8 JSON in canonical field order."""
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Document":
        """Decode stored bytes.

        Unknown keys are ignored and missing keys decode as empty strings.

        Raises:
            DocumentDecodeError: If the bytes are not a JSON object of text fields
        """
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise DocumentDecodeError(str(e)) from e

    @classmethod
    def from_bytes_lenient(cls, raw: bytes) -> "Document":
        """Decode whatever can be recovered from possibly corrupt bytes.

        Known fields holding strings are kept; everything else is left empty.
        Never raises.
        """
        try:
            data = json.loads(raw)
        except (ValueError, TypeError):
            return cls()
        if not isinstance(data, dict):
            return cls()
        return cls(**{
            field: data[field]
            for field in DOCUMENT_FIELDS
            if isinstance(data.get(field), str)
        })


class DecodedDocument(BaseModel):
    """A ledger record whose value decoded cleanly."""
    key: str
    document: Document

    @property
    def is_corrupt(self) -> bool:
        return False


class CorruptRecord(BaseModel):
    """A ledger record whose value failed strict decoding."""
    key: str
    raw: bytes
    error: str
    recovered: Document = Field(default_factory=Document)

    @property
    def is_corrupt(self) -> bool:
        return True


DecodedRecord = Union[DecodedDocument, CorruptRecord]


def decode_record(key: str, raw: bytes) -> DecodedRecord:
    """Decode a stored value into a typed per-record outcome."""
    try:
        return DecodedDocument(key=key, document=Document.from_bytes(raw))
    except DocumentDecodeError as e:
        return CorruptRecord(
            key=key,
            raw=raw,
            error=str(e),
            recovered=Document.from_bytes_lenient(raw),
        )
