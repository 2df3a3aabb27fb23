from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "URL Shortener"

    HOST: str = "0.0.0.0"
    PORT: int = 5000
    # Externally visible origin used to build short URLs
    BASE_URL: Optional[str] = None

    # Storage connection string (SQLAlchemy URL or redis://). Unset means
    # the ephemeral in-memory store.
    DATABASE_URL: Optional[str] = None
    ALLOW_EPHEMERAL_FALLBACK: bool = True

    SHORT_CODE_LENGTH: int = Field(default=6, ge=4, le=32)
    MAX_CREATE_ATTEMPTS: int = Field(default=5, ge=1)

    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("DATABASE_URL")
    def blank_database_url(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def default_base_url(self):
        if not self.BASE_URL:
            self.BASE_URL = f"http://localhost:{self.PORT}"
        self.BASE_URL = self.BASE_URL.rstrip("/")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
