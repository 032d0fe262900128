"""Routes invocations to operation handlers."""

import logging
from enum import Enum
from http import HTTPStatus
from typing import Awaitable, Callable, Dict, List, Optional

from ..models.envelope import Envelope
from .errors import BadRequestError, NotImplementedOperationError, ReviewServiceError
from .response_builder import ResponseBuilder
from .review_manager import ReviewManager

Handler = Callable[..., Awaitable[Envelope]]


class Operation(str, Enum):
    """Operations exposed through invoke."""
    CREATE = "create"
    READ = "read"
    SEARCH = "search"

    @property
    def arity(self) -> int:
        return OPERATION_ARITY[self]


# Positional argument count per operation
OPERATION_ARITY = {
    Operation.CREATE: 6,  # id, text, review, name, location, rating
    Operation.READ: 1,  # id
    Operation.SEARCH: 1,  # pattern
}

# Names the full method set of the reviews API, not only what Operation routes
INVALID_METHOD_MESSAGE = "Invalid method! Valid methods are 'create|update|delete|exist|read|history|search'!"


class Dispatcher:
    """Maps an operation name and argument list onto a handler.

    Every outcome, success or failure, comes back as an Envelope.
    """

    def __init__(
        self,
        manager: ReviewManager,
        responses: Optional[ResponseBuilder] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.responses = responses or manager.responses
        self.handlers: Dict[Operation, Handler] = {
            Operation.CREATE: manager.create,
            Operation.READ: manager.read,
            Operation.SEARCH: manager.search,
        }

    def init(self, args: List[str]) -> Envelope:
        """Instantiate entry point; accepts no arguments."""
        if len(args) > 0:
            return self.responses.error(
                HTTPStatus.BAD_REQUEST,
                "Init: Incorrect number of arguments; no arguments were expected."
            )
        return self.responses.success(HTTPStatus.OK, "OK")

    def resolve(self, function: str) -> Operation:
        """Look up an operation by its exact name.

        Raises:
            NotImplementedOperationError: If the name is not an operation
        """
        try:
            return Operation(function)
        except ValueError:
            self.logger.warning(f"Invoke('{function}') invalid!")
            raise NotImplementedOperationError(INVALID_METHOD_MESSAGE)

    async def invoke(self, function: str, args: List[str]) -> Envelope:
        """Run one operation and return its envelope."""
        self.logger.debug(f"Invoke('{function}') with {len(args)} argument(s)")
        try:
            operation = self.resolve(function)
            if len(args) != operation.arity:
                raise BadRequestError(
                    f"{operation.value}: Incorrect number of arguments; "
                    f"expecting {operation.arity}, got {len(args)}."
                )
            return await self.handlers[operation](*args)
        except ReviewServiceError as e:
            return self.responses.error(e.status_code, e.message)
