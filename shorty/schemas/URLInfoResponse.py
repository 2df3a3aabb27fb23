from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime

from shorty.services.shortener import MappingView, ShortenResult


class CamelModel(BaseModel):
    # JSON keys are camelCase (originalUrl, shortCode, ...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Response DTOs
class ShortenResponse(CamelModel):
    original_url: str
    short_code: str
    short_url: str

    @classmethod
    def from_result(cls, result: ShortenResult) -> "ShortenResponse":
        return cls(
            original_url=result.mapping.original_url,
            short_code=result.mapping.short_code,
            short_url=result.short_url,
        )


class URLInfoResponse(CamelModel):
    id: int
    original_url: str
    short_code: str
    short_url: str
    clicks: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_view(cls, view: MappingView) -> "URLInfoResponse":
        m = view.mapping
        return cls(
            id=m.id,
            original_url=m.original_url,
            short_code=m.short_code,
            short_url=view.short_url,
            clicks=m.clicks,
            created_at=m.created_at,
            updated_at=m.updated_at,
        )


class HealthResponse(BaseModel):
    status: str


class ErrorResponse(BaseModel):
    error: str
