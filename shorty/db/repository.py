from abc import ABC, abstractmethod
from contextlib import contextmanager, nullcontext
from typing import Iterator, List, Optional
import logging
import threading

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from shorty.core.errors import ConflictError, NotFoundError, StoreUnavailableError
from shorty.db.Models.models import Base, URLItem, UrlMapping, utcnow

logger = logging.getLogger(__name__)


class MappingStore(ABC):
    """Persistence for short code mappings.

    Implementations must enforce short code uniqueness themselves and make
    increment_clicks a single atomic operation; callers never pre-check.
    """

    @abstractmethod
    def find_by_original_url(self, original_url: str) -> Optional[UrlMapping]:
        """Return the oldest mapping for original_url, or None."""

    @abstractmethod
    def find_by_short_code(self, short_code: str) -> Optional[UrlMapping]:
        pass

    @abstractmethod
    def create(self, original_url: str, short_code: str) -> UrlMapping:
        """Persist a new mapping. Raises ConflictError if short_code is taken."""

    @abstractmethod
    def increment_clicks(self, short_code: str) -> UrlMapping:
        """Atomically add one click. Raises NotFoundError for unknown codes."""

    @abstractmethod
    def list_all(self) -> List[UrlMapping]:
        """All mappings, most recently created first."""

    @abstractmethod
    def ping(self) -> bool:
        pass

    def close(self) -> None:
        pass


class SQLMappingStore(MappingStore):

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
        )
        # StaticPool shares one connection between all sessions, so a session
        # must not start until the previous one has committed or rolled back
        self._guard = threading.RLock() if isinstance(engine.pool, StaticPool) else nullcontext()

    def create_schema(self) -> None:
        with self._guard:
            Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._guard:
            db = self.SessionLocal()
            try:
                yield db
            except OperationalError as e:
                db.rollback()
                logger.error("Database operation failed: %s", e)
                raise StoreUnavailableError() from e
            finally:
                db.close()

    def find_by_original_url(self, original_url: str) -> Optional[UrlMapping]:
        with self._session() as db:
            row = (
                db.query(URLItem)
                .filter(URLItem.original_url == original_url)
                .order_by(URLItem.created_at.asc(), URLItem.id.asc())
                .first()
            )
            return UrlMapping.from_row(row) if row else None

    def find_by_short_code(self, short_code: str) -> Optional[UrlMapping]:
        with self._session() as db:
            row = db.query(URLItem).filter(URLItem.short_code == short_code).first()
            return UrlMapping.from_row(row) if row else None

    def create(self, original_url: str, short_code: str) -> UrlMapping:
        now = utcnow()
        db_url = URLItem(
            short_code=short_code,
            original_url=original_url,
            clicks=0,
            created_at=now,
            updated_at=now,
        )
        with self._session() as db:
            try:
                db.add(db_url)
                db.commit()
            except IntegrityError as e:
                db.rollback()
                logger.warning("IntegrityError creating URLItem short_code=%s: %s", short_code, e.orig)
                raise ConflictError() from e
            db.refresh(db_url)
            return UrlMapping.from_row(db_url)

    def increment_clicks(self, short_code: str) -> UrlMapping:
        with self._session() as db:
            # Single UPDATE so concurrent redirects cannot lose counts
            updated = db.query(URLItem).filter(URLItem.short_code == short_code).update(
                {
                    URLItem.clicks: URLItem.clicks + 1,
                    URLItem.updated_at: utcnow(),
                },
                synchronize_session=False,
            )
            if not updated:
                db.rollback()
                raise NotFoundError()
            row = db.query(URLItem).filter(URLItem.short_code == short_code).one()
            mapping = UrlMapping.from_row(row)
            db.commit()
            return mapping

    def list_all(self) -> List[UrlMapping]:
        with self._session() as db:
            rows = (
                db.query(URLItem)
                .order_by(URLItem.created_at.desc(), URLItem.id.desc())
                .all()
            )
            return [UrlMapping.from_row(r) for r in rows]

    def ping(self) -> bool:
        try:
            with self._guard, self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error("Database connection failed: %s", e)
            return False

    def close(self) -> None:
        self.engine.dispose()
