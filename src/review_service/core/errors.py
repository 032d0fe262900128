"""Error kinds raised by operation handlers."""

from http import HTTPStatus


class ReviewServiceError(Exception):
    """Base class for errors that terminate an invocation."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(ReviewServiceError):
    status_code = HTTPStatus.BAD_REQUEST


class NotFoundError(ReviewServiceError):
    status_code = HTTPStatus.NOT_FOUND


class ConflictError(ReviewServiceError):
    status_code = HTTPStatus.CONFLICT


class InternalError(ReviewServiceError):
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR


class NotImplementedOperationError(ReviewServiceError):
    status_code = HTTPStatus.NOT_IMPLEMENTED
