# Error taxonomy shared by services, guards and exception handlers.
# Services raise AppError subclasses; app/middleware/error_handlers.py turns
# them into the uniform error envelope.

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_TOKEN = "INVALID_TOKEN"
    EXPIRED_TOKEN = "EXPIRED_TOKEN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_ALREADY_EXISTS = "RESOURCE_ALREADY_EXISTS"
    CONFLICT = "CONFLICT"
    PAYMENT_REQUIRED = "PAYMENT_REQUIRED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"


class AppError(Exception):
    """Base class for failures that map onto an HTTP status and error code."""

    status_code: int = 500
    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Any = None,
        status_code: Optional[int] = None,
        headers: Optional[dict] = None,
    ):
        self.message = message or self.message
        self.details = details
        self.headers = headers
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class BadRequestError(AppError):
    status_code = 400
    code = ErrorCode.BAD_REQUEST
    message = "Bad request"


class ValidationFailedError(AppError):
    status_code = 400
    code = ErrorCode.VALIDATION_ERROR
    message = "Validation failed"


class UnauthorizedError(AppError):
    status_code = 401
    code = ErrorCode.UNAUTHORIZED
    message = "Authentication required"


class InvalidTokenError(AppError):
    status_code = 401
    code = ErrorCode.INVALID_TOKEN
    message = "Invalid or expired token"


class InvalidCredentialsError(AppError):
    status_code = 401
    code = ErrorCode.INVALID_CREDENTIALS
    message = "Invalid email or password"


class ForbiddenError(AppError):
    status_code = 403
    code = ErrorCode.FORBIDDEN
    message = "Not enough permissions"


class NotFoundError(AppError):
    status_code = 404
    code = ErrorCode.RESOURCE_NOT_FOUND
    message = "Resource not found"


class AlreadyExistsError(AppError):
    status_code = 409
    code = ErrorCode.RESOURCE_ALREADY_EXISTS
    message = "Resource already exists"


class ConflictError(AppError):
    status_code = 409
    code = ErrorCode.CONFLICT
    message = "Request conflicts with the current state of the resource"


class RateLimitExceededError(AppError):
    status_code = 429
    code = ErrorCode.RATE_LIMIT_EXCEEDED
    message = "Too many requests. Please slow down."


class ExternalServiceError(AppError):
    status_code = 502
    code = ErrorCode.EXTERNAL_SERVICE_ERROR
    message = "External service request failed"
