"""Maps handler outcomes to response envelopes."""

import logging
from http import HTTPStatus
from typing import Optional

from ..models.envelope import Envelope

PAYLOAD_TOO_LARGE_MESSAGE = "Maximum return payload length of 1MB exceeded!"


class ResponseBuilder:
    """Builds success and error envelopes.

    The payload cap is enforced here, so no envelope leaving the service can
    carry more than ``max_payload_bytes``.
    """

    def __init__(self, max_payload_bytes: int = 1048576, logger: Optional[logging.Logger] = None):
        self.max_payload_bytes = max_payload_bytes
        self.logger = logger or logging.getLogger(__name__)

    def success(self, status: int, message: str, payload: Optional[bytes] = None) -> Envelope:
        if payload is not None and len(payload) > self.max_payload_bytes:
            return self.error(HTTPStatus.INTERNAL_SERVER_ERROR, PAYLOAD_TOO_LARGE_MESSAGE)
        return Envelope(status=int(status), message=message, payload=payload)

    def error(self, status: int, message: str) -> Envelope:
        self.logger.error("Error %d = %s", int(status), message)
        return Envelope(status=int(status), message=message)
