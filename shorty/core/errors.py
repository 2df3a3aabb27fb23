"""
Error taxonomy for the shortener.

Each error carries the HTTP status it maps to and the message that is safe to
show to a caller. Server-side failures always present the generic message.
"""

from typing import Optional


class ShortyError(Exception):
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class ValidationError(ShortyError):
    """Bad or missing input from the client."""
    status_code = 400
    message = "Invalid URL"


class NotFoundError(ShortyError):
    status_code = 404
    message = "Short URL not found"


class ConflictError(ShortyError):
    """Short code already taken at the store. Retried by the service."""
    status_code = 500
    message = "Short code already exists"


class ExhaustedRetriesError(ShortyError):
    status_code = 500
    message = "Failed to generate a unique short code"


class StoreUnavailableError(ShortyError):
    status_code = 500
    message = "Mapping store unavailable"
