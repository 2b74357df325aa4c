"""Error taxonomy for account, setup and dashboard operations.

Services raise these; the handler registered in ``mindnamo.main`` turns
them into ``{"error": message}`` responses with the matching status code.
"""


class AccountError(Exception):
    """Base class for errors surfaced to the client as a structured result."""

    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(AccountError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(AccountError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(AccountError):
    status_code = 404
    default_message = "User not found"


class RateLimited(AccountError):
    status_code = 429
    default_message = "Too many requests. Please wait a minute."


class NoActiveChallenge(AccountError):
    default_message = "No active verification code. Please request a new one."


class CodeMismatch(AccountError):
    default_message = "Invalid verification code"


class Expired(AccountError):
    default_message = "Verification code has expired"


class HandleTaken(AccountError):
    status_code = 409
    default_message = "Username is already taken"


class ValidationFailed(AccountError):
    status_code = 422
    default_message = "Invalid input"


class Conflict(AccountError):
    status_code = 409
    default_message = "Conflict"


class EmailNotVerified(AccountError):
    status_code = 409
    default_message = "Verify your email before setting a password"


class UpstreamUnavailable(AccountError):
    status_code = 503
    default_message = "Service temporarily unavailable"


__all__ = [
    "AccountError",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "RateLimited",
    "NoActiveChallenge",
    "CodeMismatch",
    "Expired",
    "HandleTaken",
    "ValidationFailed",
    "Conflict",
    "EmailNotVerified",
    "UpstreamUnavailable",
]
