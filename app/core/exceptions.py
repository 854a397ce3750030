"""
Application error taxonomy.

Every error a handler can surface maps to one class here. The exception
handlers in ``app.main`` render them as ``{"error": code, "message": ...}``
plus any kind-specific extra fields.
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    status_code = 500
    error = "internal_error"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message, **self.extra}

    def headers(self) -> Optional[Dict[str, str]]:
        return None


class ValidationError(AppError):
    status_code = 400
    error = "validation_error"
    default_message = "Invalid request data"


class ConflictError(AppError):
    status_code = 409
    error = "conflict"
    default_message = "Resource already exists"


class NotFoundError(AppError):
    status_code = 404
    error = "not_found"
    default_message = "Resource not found"


class InvalidCredentialsError(AppError):
    status_code = 401
    error = "invalid_credentials"
    default_message = "Invalid email or password"


class AccountInactiveError(AppError):
    status_code = 403
    error = "account_inactive"
    default_message = "Account has not been activated by an administrator"


class AccountLockedError(AppError):
    status_code = 423
    error = "account_locked"
    default_message = "Account temporarily locked"

    def __init__(self, minutes_remaining: int):
        super().__init__(
            f"Account locked. Try again in {minutes_remaining} minutes",
            minutes_remaining=minutes_remaining,
        )


class TokenExpiredError(AppError):
    status_code = 401
    error = "token_expired"
    default_message = "Authentication token expired"


class TokenInvalidError(AppError):
    status_code = 401
    error = "token_invalid"
    default_message = "Invalid authentication token"


class SessionExpiredError(AppError):
    status_code = 401
    error = "session_expired"
    default_message = "Session expired"


class SessionInvalidError(AppError):
    status_code = 401
    error = "session_invalid"
    default_message = "Session not found or inactive"


class UserNotFoundError(AppError):
    status_code = 401
    error = "user_not_found"
    default_message = "User does not exist"


class RateLimitExceededError(AppError):
    status_code = 429
    error = "rate_limit_exceeded"

    def __init__(self, max_requests: int, window_seconds: int, retry_after: int):
        super().__init__(
            f"Maximum of {max_requests} requests per {window_seconds} seconds",
            retryAfter=retry_after,
        )
        self.retry_after = retry_after

    def headers(self) -> Optional[Dict[str, str]]:
        return {"Retry-After": str(self.retry_after)}


class InternalError(AppError):
    status_code = 500
    error = "internal_error"
    default_message = "Internal server error"
