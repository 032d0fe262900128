"""Invocation endpoints: the envelope-level surface of the service."""

import logging
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ...core.dispatcher import Dispatcher
from ...models.envelope import Envelope
from ...models.requests import EnvelopeResponse, InitRequest, InvokeRequest
from ..dependencies import get_dispatcher

router = APIRouter(prefix="/api/v1/ledger", tags=["ledger"])
logger = logging.getLogger(__name__)


def envelope_response(envelope: Envelope) -> JSONResponse:
    """Render an envelope with its status as the HTTP status code."""
    return JSONResponse(
        status_code=envelope.status,
        content=EnvelopeResponse.from_envelope(envelope).model_dump(),
    )


@router.post(
    "/invoke",
    response_model=EnvelopeResponse,
    summary="Invoke Operation",
    description="""
Invoke a ledger operation by name with positional string arguments.

**Operations**:
- `create`: id, text, review, name, location, rating → 201
- `read`: id → 200, payload is the stored document JSON
- `search`: pattern → 200, payload is `{"values": [...]}`

**Request Example**:
```json
{"function": "search", "args": ["^Wid"]}
```

**Response Example**:
```json
{
  "status": 200,
  "message": "OK",
  "payload": "{\\"values\\":[{\\"id\\":\\"r1\\",\\"review\\":\\"Great!\\",\\"product\\":\\"Widget\\",\\"name\\":\\"Alice\\",\\"location\\":\\"NY\\",\\"rating\\":\\"5\\"}]}"
}
```

The HTTP status code mirrors the envelope status.
    """,
    responses={
        200: {"description": "Read or search succeeded"},
        201: {"description": "Document created"},
        400: {"description": "Wrong number of arguments or argument out of bounds"},
        404: {"description": "Document not found"},
        409: {"description": "Document id already exists"},
        500: {"description": "Ledger failure or payload too large"},
        501: {"description": "Unknown operation"}
    }
)
async def invoke(request: InvokeRequest, dispatcher: Dispatcher = Depends(get_dispatcher)):
    """Invoke an operation."""
    try:
        envelope = await dispatcher.invoke(request.function, request.args)
    except Exception as e:
        logger.error(f"Invoke('{request.function}') failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return envelope_response(envelope)


@router.post(
    "/init",
    response_model=EnvelopeResponse,
    summary="Initialize",
    description="Initialization entry point. Accepts no arguments; any argument yields 400.",
    responses={
        200: {"description": "Initialized"},
        400: {"description": "Arguments were supplied"}
    }
)
async def init(request: InitRequest, dispatcher: Dispatcher = Depends(get_dispatcher)):
    """Initialize the service."""
    return envelope_response(dispatcher.init(request.args))
