"""API exceptions and error codes for the pairing API."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standard error codes for API responses."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"

    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    EXTERNAL_API_ERROR = "EXTERNAL_API_ERROR"


_RETRYABLE_CODES: set[ErrorCode] = {
    ErrorCode.DATABASE_ERROR,
    ErrorCode.EXTERNAL_API_ERROR,
}


class APIException(Exception):
    """Base exception for all API errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
        retryable: bool | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        self.retryable = retryable if retryable is not None else (error_code in _RETRYABLE_CODES)


class AuthenticationError(APIException):
    """Raised when the pairing secret is missing or wrong."""

    def __init__(self, message: str = "Invalid pairing secret"):
        super().__init__(message=message, error_code=ErrorCode.UNAUTHORIZED, status_code=401)


class ExternalServiceError(APIException):
    """Raised when the device relay or the issuer fails."""

    def __init__(self, service: str, message: str):
        super().__init__(
            message=message,
            error_code=ErrorCode.EXTERNAL_API_ERROR,
            status_code=502,
            details={"service": service},
        )
