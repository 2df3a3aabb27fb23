from pydantic import BaseModel
from typing import Any, Optional

# Request DTOs
class URLCreateRequest(BaseModel):
    # Left untyped so a missing or non-string url reaches the service and is
    # reported as "Missing url" instead of a generic validation failure.
    url: Optional[Any] = None
