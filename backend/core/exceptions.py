"""
Application error taxonomy.

Every error carries an HTTP status and a stable machine-readable ``code``;
the API layer turns them into ``{"success": false, "message", "code"}``.
"""


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Authentication required"


class InvalidInput(AppError):
    status_code = 400
    code = "INVALID_INPUT"
    default_message = "Invalid input"


class PlanRestriction(AppError):
    """Premium-only tool requested by a free user."""

    status_code = 403
    code = "PLAN_RESTRICTION"
    default_message = "This feature is available to premium subscribers only"


class UsageLimitExceeded(AppError):
    """Free-tier usage counter exhausted."""

    status_code = 429
    code = "USAGE_LIMIT_EXCEEDED"
    default_message = "Free usage limit reached. Upgrade to premium to continue"


class RateLimited(AppError):
    """Too many requests in the current window, independent of plan."""

    status_code = 429
    code = "RATE_LIMITED"
    default_message = "Too many requests. Please slow down"


class GenerationFailed(AppError):
    """External generator failed or returned empty content. No row is written."""

    status_code = 502
    code = "GENERATION_FAILED"
    default_message = "Content generation failed. Please try again"


class GenerationTimeout(GenerationFailed):
    status_code = 504
    code = "GENERATION_TIMEOUT"
    default_message = "Content generation timed out. Please try again"


class PersistenceFailed(AppError):
    """Datastore write failed, possibly after content was generated."""

    status_code = 500
    code = "PERSISTENCE_FAILED"
    default_message = "Failed to save the result"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class Forbidden(AppError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Operation not permitted"


class InternalError(AppError):
    pass
