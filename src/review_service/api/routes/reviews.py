"""Review document endpoints."""

import json
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Response

from ...core.dispatcher import Dispatcher, Operation
from ...models.envelope import Envelope
from ...models.requests import CreateReviewRequest, CreateReviewResponse
from ..dependencies import get_dispatcher

router = APIRouter(prefix="/api/v1/reviews", tags=["reviews"])
logger = logging.getLogger(__name__)


def raise_for_envelope(envelope: Envelope):
    """Turn an error envelope into an HTTPException."""
    if not envelope.ok:
        raise HTTPException(status_code=envelope.status, detail=envelope.message)


@router.post(
    "",
    response_model=CreateReviewResponse,
    status_code=201,
    summary="Create Review",
    description="""
Create a review document under a new id.

**Workflow**:
1. Fold the id to lowercase
2. Check the ledger for an existing document under that id
3. Encode the five fields and write them to the ledger

**Request Example**:
```json
{
  "id": "r1",
  "text": "Widget",
  "review": "Great!",
  "name": "Alice",
  "location": "NY",
  "rating": "5"
}
```
    """,
    responses={
        201: {"description": "Review created"},
        400: {"description": "Argument out of bounds"},
        409: {"description": "Review id already exists"},
        500: {"description": "Ledger write failed"}
    }
)
async def create_review(request: CreateReviewRequest, dispatcher: Dispatcher = Depends(get_dispatcher)):
    """Create a review."""
    envelope = await dispatcher.invoke(Operation.CREATE.value, request.to_args())
    raise_for_envelope(envelope)
    return CreateReviewResponse(id=request.id.lower(), message=envelope.message)


@router.get(
    "/{review_id}",
    summary="Get Review",
    description="""
Return the stored document for an id (case-insensitive).

**Response Example**:
```json
{"text": "Widget", "review": "Great!", "name": "Alice", "location": "NY", "rating": "5"}
```
    """,
    responses={
        200: {"description": "Stored document"},
        404: {"description": "Review not found"}
    }
)
async def get_review(review_id: str, dispatcher: Dispatcher = Depends(get_dispatcher)):
    """Get a review by id."""
    envelope = await dispatcher.invoke(Operation.READ.value, [review_id])
    raise_for_envelope(envelope)
    return Response(content=envelope.payload, media_type="application/json")


@router.get(
    "",
    summary="Search Reviews",
    description="""
Search reviews whose product text matches a regular expression.
For example `^H.llo` matches products starting with "Hello" or "Hallo".

At most 99 results are returned, in ledger order.
    """,
    responses={
        200: {"description": "Matching reviews as {\"values\": [...]}"},
        500: {"description": "Query failed"}
    }
)
async def search_reviews(
    pattern: str = Query(..., description="Regular expression matched against the product text"),
    dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """Search reviews."""
    envelope = await dispatcher.invoke(Operation.SEARCH.value, [pattern])
    raise_for_envelope(envelope)
    return json.loads(envelope.payload)
