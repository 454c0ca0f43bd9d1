"""
WealthDesk — Error Taxonomy

Every failure a request can end in maps to one of these. The HTTP layer turns
them into the standard response envelope using ``status_code`` and
``public_message``; the original cause is logged, never returned.
"""

from typing import List, Optional


class WealthDeskError(Exception):
    status_code = 500
    public_message = "An unexpected error occurred."

    def __init__(self, message: Optional[str] = None, errors: Optional[List[str]] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message
        self.errors = errors or []


class Unauthorized(WealthDeskError):
    status_code = 401
    public_message = "Authentication required."


class ValidationFailed(WealthDeskError):
    status_code = 422
    public_message = "Invalid input."


class ModelResponseError(ValidationFailed):
    """The assistant answered, but not in the shape that was asked for."""
    public_message = "The assistant returned an unusable response."


class NotFound(WealthDeskError):
    status_code = 404
    public_message = "Not found."


class UpstreamFailure(WealthDeskError):
    status_code = 503
    public_message = "I'm unable to connect to the AI service right now. Please try again in a moment."


class InternalError(WealthDeskError):
    status_code = 500
