"""
Application exceptions.

Each exception carries the HTTP status the API layer responds with and a
message that is safe to show to callers. Details meant for operators go to
the log, not into the message.
"""

from __future__ import annotations

from typing import Optional


class RundownError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(RundownError):
    """Malformed input; nothing was changed."""

    status_code = 400
    default_message = "Invalid request"


class TokenExpired(RundownError):
    status_code = 401
    default_message = "Token expired, please refresh"


class Forbidden(RundownError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(RundownError):
    status_code = 404
    default_message = "Not found"


class UpstreamError(RundownError):
    """Strava answered with something other than the expected status.

    ``status_code`` is the provider's own status so callers see it verbatim.
    """

    status_code = 502
    default_message = "Strava request failed"


class StorageError(RundownError):
    status_code = 500
    default_message = "Database error"


__all__ = [
    "Forbidden",
    "NotFound",
    "RundownError",
    "StorageError",
    "TokenExpired",
    "UpstreamError",
    "ValidationError",
]
