"""
Error taxonomy for message and channel operations.

Every error carries the HTTP status it maps to; main.py turns them into
JSON responses. None of them is retried by the core.
"""

from typing import Optional


class ForumError(Exception):
    """Base class for errors raised by forum operations."""

    status_code = 500
    error_type = "forum_error"

    def __init__(self, message: str, context: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict:
        body = {
            "error": self.__class__.__name__,
            "message": self.message,
            "type": self.error_type,
        }
        if self.context:
            body["context"] = self.context
        return body


class ValidationError(ForumError):
    """Empty or invalid content, malformed input."""

    status_code = 400
    error_type = "validation_error"


class NotFoundError(ForumError):
    """Missing channel, message or parent message."""

    status_code = 404
    error_type = "not_found"


class AuthorizationError(ForumError):
    """Caller is not allowed to act on the message."""

    status_code = 403
    error_type = "permission_denied"


class ConflictError(ForumError):
    """Operation conflicts with the message's current state.

    Raised for publishing under a deleted/orphaned parent, publishing twice,
    or editing a message through the wrong transition. ``context`` carries
    the ids a client needs to discard or re-target the draft.
    """

    status_code = 409
    error_type = "conflict"
