from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class URLItem(Base):
    __tablename__ = "urls"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Unique constraint is what guarantees no two mappings share a code;
    # the service only retries when this rejects an insert.
    short_code = Column(String(32), unique=True, index=True, nullable=False)

    # Not unique: idempotent shortening is a lookup, not a constraint
    original_url = Column(Text, index=True, nullable=False)

    clicks = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


@dataclass(frozen=True)
class UrlMapping:
    """Backend-independent snapshot of a stored mapping."""
    id: int
    original_url: str
    short_code: str
    clicks: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: URLItem) -> "UrlMapping":
        return cls(
            id=row.id,
            original_url=row.original_url,
            short_code=row.short_code,
            clicks=row.clicks or 0,
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )
