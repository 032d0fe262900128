"""Request and response models for API endpoints."""

from typing import List, Optional
from pydantic import BaseModel, Field

from .envelope import Envelope


class InvokeRequest(BaseModel):
    """Invoke an operation by name with positional arguments."""
    function: str = Field(..., description="Operation name: create, read or search")
    args: List[str] = Field(default_factory=list)


class InitRequest(BaseModel):
    """Init request; no arguments are expected."""
    args: List[str] = Field(default_factory=list)


class EnvelopeResponse(BaseModel):
    """Envelope as returned over HTTP, payload as text."""
    status: int
    message: str
    payload: Optional[str] = None

    @classmethod
    def from_envelope(cls, envelope: Envelope):
        """Convert Envelope to EnvelopeResponse."""
        return cls(
            status=envelope.status,
            message=envelope.message,
            payload=envelope.payload_text(),
        )


class CreateReviewRequest(BaseModel):
    """Model for creating a review document."""
    id: str = Field(..., description="Review id, stored lowercase")
    text: str = Field(..., description="Product the review is about")
    review: str
    name: str
    location: str
    rating: str

    def to_args(self) -> List[str]:
        return [self.id, self.text, self.review, self.name, self.location, self.rating]


class CreateReviewResponse(BaseModel):
    """Response model for a created review."""
    id: str
    message: str


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    service: str
    version: str
    ledger_backend: str
    ledger_connected: bool
