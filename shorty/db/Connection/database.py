import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from shorty.core.config import Settings
from shorty.core.errors import StoreUnavailableError
from shorty.db.redis_store import RedisMappingStore
from shorty.db.repository import MappingStore, SQLMappingStore

logger = logging.getLogger(__name__)

EPHEMERAL_DATABASE_URL = "sqlite:///:memory:"


def is_redis_url(url: str) -> bool:
    return url.startswith(("redis://", "rediss://", "unix://"))


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # every session must see the same in-memory database
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        return create_engine(url, future=True, **kwargs)
    return create_engine(url, pool_pre_ping=True, future=True)


def create_ephemeral_store() -> SQLMappingStore:
    store = SQLMappingStore(build_engine(EPHEMERAL_DATABASE_URL))
    store.create_schema()
    return store


def _connect(url: str) -> Optional[MappingStore]:
    if is_redis_url(url):
        store = RedisMappingStore.from_url(url)
        if store.ping():
            logger.info("Redis connection verified")
            return store
        store.close()
        return None

    try:
        engine = build_engine(url)
    except (SQLAlchemyError, ImportError) as e:
        logger.error("Cannot create database engine: %s", e)
        return None
    store = SQLMappingStore(engine)
    if not store.ping():
        store.close()
        return None
    store.create_schema()
    logger.info("Database connection verified")
    return store


def create_store(settings: Settings) -> MappingStore:
    """Build the mapping store described by settings.

    Falls back to an in-memory SQLite store when no DATABASE_URL is set, or
    when it is unreachable and ALLOW_EPHEMERAL_FALLBACK is on. Data in the
    fallback store is lost on restart.
    """
    url = settings.DATABASE_URL
    if url:
        store = _connect(url)
        if store is not None:
            return store
        if not settings.ALLOW_EPHEMERAL_FALLBACK:
            raise StoreUnavailableError(f"Cannot connect to configured store {url.split('@')[-1]}")
        logger.warning("Failed to connect to configured DATABASE_URL. Falling back to in-memory store.")
    else:
        logger.warning("DATABASE_URL not set. Using in-memory store; mappings will not survive a restart.")

    return create_ephemeral_store()
