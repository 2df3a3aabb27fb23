# re-export common schemas for simpler imports
from .URLCreateRequest import URLCreateRequest
from .URLInfoResponse import ErrorResponse, HealthResponse, ShortenResponse, URLInfoResponse

__all__ = [
    "URLCreateRequest",
    "ShortenResponse",
    "URLInfoResponse",
    "HealthResponse",
    "ErrorResponse",
]
