"""Standard error codes for the rental backend.

Every failure surfaced to a caller uses one of these codes so that HTTP
responses share a single structure: ``{success, error_code, message,
recovery, details}``.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes."""

    NOT_FOUND = "ERR_NOT_FOUND"
    INVALID_RANGE = "ERR_INVALID_RANGE"
    INVALID_INPUT = "ERR_INVALID_INPUT"
    UNAVAILABLE = "ERR_UNAVAILABLE"
    UPSTREAM_FAILURE = "ERR_UPSTREAM"
    PAYMENT_NOT_COMPLETED = "ERR_PAYMENT_NOT_COMPLETED"
    INVALID_TRANSITION = "ERR_INVALID_TRANSITION"
    UNAUTHORIZED = "ERR_UNAUTHORIZED"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.NOT_FOUND: "The requested resource was not found",
    ErrorCode.INVALID_RANGE: "Invalid date range",
    ErrorCode.INVALID_INPUT: "Invalid input",
    ErrorCode.UNAVAILABLE: "The product is not available for the requested dates",
    ErrorCode.UPSTREAM_FAILURE: "An external service failed to process the request",
    ErrorCode.PAYMENT_NOT_COMPLETED: "Payment has not been completed",
    ErrorCode.INVALID_TRANSITION: "The order cannot move to the requested status",
    ErrorCode.UNAUTHORIZED: "Office credentials are required for this action",
}

# Recovery suggestions for callers
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.NOT_FOUND: "Check the identifier and try again",
    ErrorCode.INVALID_RANGE: "Use YYYY-MM-DD dates with startDate on or before endDate",
    ErrorCode.INVALID_INPUT: "Check the request values and try again",
    ErrorCode.UNAVAILABLE: "Choose dates outside the blocked window or another product",
    ErrorCode.UPSTREAM_FAILURE: "Try again later",
    ErrorCode.PAYMENT_NOT_COMPLETED: "Complete the payment and confirm again",
    ErrorCode.INVALID_TRANSITION: "Reload the order to see its current status",
    ErrorCode.UNAUTHORIZED: "Provide a valid office bearer token",
}


class ErrorResponse(BaseModel):
    """Standard error response body."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, Any]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, Any]] = None,
        message: Optional[str] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error
            message: Optional message overriding the default for the code

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=message or ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class RentalError(Exception):
    """Exception raised by rental operations.

    Converted to an ErrorResponse by the API exception handler.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, Any]] = None,
        message: Optional[str] = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        return ErrorResponse.from_code(self.code, self.details, self.message)
