"""API exception hierarchy for consistent error handling.

All API exceptions inherit from LaMachineAPIError, which provides
status_code and error_code attributes used by the global exception
handler to generate consistent error responses.
"""

from lamachine.api.models.errors import ErrorCode


class LaMachineAPIError(Exception):
    """Base exception for all API errors."""

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConstraintNotFoundError(LaMachineAPIError):
    """Raised when the constraint id is not in the catalog."""

    status_code = 404
    error_code = ErrorCode.CONSTRAINT_NOT_FOUND
