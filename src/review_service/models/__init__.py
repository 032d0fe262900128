"""Data models for Review Ledger Service."""

from .document import (
    Document,
    DocumentDecodeError,
    DecodedDocument,
    CorruptRecord,
    DecodedRecord,
    decode_record,
)
from .envelope import Envelope
from .requests import (
    InvokeRequest,
    InitRequest,
    EnvelopeResponse,
    CreateReviewRequest,
    CreateReviewResponse,
    HealthResponse,
)

__all__ = [
    "Document",
    "DocumentDecodeError",
    "DecodedDocument",
    "CorruptRecord",
    "DecodedRecord",
    "decode_record",
    "Envelope",
    "InvokeRequest",
    "InitRequest",
    "EnvelopeResponse",
    "CreateReviewRequest",
    "CreateReviewResponse",
    "HealthResponse",
]
