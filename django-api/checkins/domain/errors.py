"""Domain error codes for the checkins module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    VENUE_NOT_FOUND = "VENUE_NOT_FOUND"
    VENUE_NOT_OPEN = "VENUE_NOT_OPEN"
    MALFORMED_CODE = "MALFORMED_CODE"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    RATE_LIMITED = "RATE_LIMITED"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    # Whether the caller may safely resubmit the same request.
    retryable = False

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class AuthenticationRequiredError(DomainError):
    """Raised when a guest calls an operation that needs a real user."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.AUTHENTICATION_REQUIRED,
            message="Sign in to verify your visit",
        )


class VenueNotFoundError(DomainError):
    """Raised when a venue is not found."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.VENUE_NOT_FOUND,
            message="Venue not found",
        )


class VenueNotOpenError(DomainError):
    """Raised when a venue is not confirmed or completed."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.VENUE_NOT_OPEN,
            message="This venue is not open for check-in",
        )


class MalformedCodeError(DomainError):
    """Raised when a submitted code has the wrong shape."""

    def __init__(self, digits: int) -> None:
        super().__init__(
            code=ErrorCode.MALFORMED_CODE,
            message=f"Code must be {digits} digits",
        )


class StorageUnavailableError(DomainError):
    """Raised when the backing store cannot be reached or fails."""

    retryable = True

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.STORAGE_UNAVAILABLE,
            message="Check-in storage is temporarily unavailable",
        )


class ValidationFailedError(DomainError):
    """Raised when request input has an invalid shape."""

    def __init__(self, message: str = "Invalid request") -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_FAILED,
            message=message,
        )
