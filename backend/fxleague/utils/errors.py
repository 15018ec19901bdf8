"""Custom exception classes for tournament operations.

Provides structured error handling with error codes and user-facing messages.
Every error carries an HTTP status so the API layer can render it without
knowing the concrete subclass.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standard error codes."""

    # General
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Authorization
    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"
    ACCOUNT_BANNED = "ACCOUNT_BANNED"
    ADMIN_REQUIRED = "ADMIN_REQUIRED"

    # Not found
    TOURNAMENT_NOT_FOUND = "TOURNAMENT_NOT_FOUND"
    REGISTRATION_NOT_FOUND = "REGISTRATION_NOT_FOUND"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"

    # Conflicts
    SLUG_TAKEN = "SLUG_TAKEN"

    # State
    TOURNAMENT_CLOSED = "TOURNAMENT_CLOSED"
    NOT_JOINED = "NOT_JOINED"
    NOT_PENDING_REVIEW = "NOT_PENDING_REVIEW"

    # Validation
    INVALID_PRIZE_BREAKDOWN = "INVALID_PRIZE_BREAKDOWN"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_WINNERS_COUNT = "INVALID_WINNERS_COUNT"
    INVALID_RESULTS = "INVALID_RESULTS"
    INVALID_SCHEDULE = "INVALID_SCHEDULE"


class LeagueError(Exception):
    """Base exception for tournament-related errors.

    Attributes:
        code: Error code for programmatic handling
        message: User-facing error message
        details: Additional error details
    """

    status_code: int = 400

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(LeagueError):
    """Malformed input, raised before any write."""

    status_code = 422

    def __init__(
        self,
        message: str,
        code: ErrorCode | str = ErrorCode.INVALID_REQUEST,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(code=code, message=message, details=details)


class ConflictError(LeagueError):
    """The write collided with another writer or an existing row."""

    status_code = 409

    def __init__(
        self,
        message: str,
        code: ErrorCode | str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(code=code, message=message, details=details)


class AuthorizationError(LeagueError):
    """Caller is not signed in, is banned, or is not an operator."""

    status_code = 403

    def __init__(
        self,
        message: str = "Not allowed",
        code: ErrorCode | str = ErrorCode.ADMIN_REQUIRED,
        authenticated: bool = True,
    ):
        super().__init__(code=code, message=message)
        if not authenticated:
            self.status_code = 401


class NotFoundError(LeagueError):
    """Referenced tournament, registration or profile does not exist."""

    status_code = 404

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(code=code, message=message, details=details)


class StateError(LeagueError):
    """Operation is not valid for the registration's or tournament's current state."""

    status_code = 409

    def __init__(
        self,
        message: str,
        code: ErrorCode | str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(code=code, message=message, details=details)


class TournamentNotFoundError(NotFoundError):
    """Raised when a tournament is not found."""

    def __init__(self, tournament_ref: str):
        super().__init__(
            code=ErrorCode.TOURNAMENT_NOT_FOUND,
            message=f"Tournament not found: {tournament_ref}",
            details={"tournament": tournament_ref},
        )


class RegistrationNotFoundError(NotFoundError):
    """Raised when a registration is not found."""

    def __init__(self, registration_id: str):
        super().__init__(
            code=ErrorCode.REGISTRATION_NOT_FOUND,
            message=f"Registration not found: {registration_id}",
            details={"registrationId": registration_id},
        )
