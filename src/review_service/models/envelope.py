"""Response envelope returned for every invocation."""

from typing import Optional
from pydantic import BaseModel


class Envelope(BaseModel):
    """Outcome of a single call: status code, message and optional payload."""
    status: int
    message: str
    payload: Optional[bytes] = None

    @property
    def ok(self) -> bool:
        return self.status < 400

    def payload_text(self) -> Optional[str]:
        """Payload decoded as UTF-8 text, for JSON transports."""
        if self.payload is None:
            return None
        return self.payload.decode("utf-8", errors="replace")
