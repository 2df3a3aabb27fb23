import itertools
import threading

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from shorty.core.config import Settings
from shorty.core.errors import ConflictError, NotFoundError
from shorty.db.Models.models import UrlMapping, utcnow
from shorty.db.repository import MappingStore, SQLMappingStore
from shorty.main import create_app
from shorty.services.shortener import URLService


BASE_URL = "http://localhost:5000"

# Create in-memory SQLite database for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"


class FakeStore(MappingStore):
    """Dict-backed store for service tests."""

    def __init__(self):
        self.rows = {}
        self.ids = itertools.count(1)
        self.lock = threading.Lock()
        self.create_calls = 0

    def find_by_original_url(self, original_url):
        matches = [m for m in self.rows.values() if m.original_url == original_url]
        return min(matches, key=lambda m: m.id) if matches else None

    def find_by_short_code(self, short_code):
        return self.rows.get(short_code)

    def create(self, original_url, short_code):
        with self.lock:
            self.create_calls += 1
            if short_code in self.rows:
                raise ConflictError()
            now = utcnow()
            mapping = UrlMapping(next(self.ids), original_url, short_code, 0, now, now)
            self.rows[short_code] = mapping
            return mapping

    def increment_clicks(self, short_code):
        with self.lock:
            m = self.rows.get(short_code)
            if m is None:
                raise NotFoundError()
            m = UrlMapping(m.id, m.original_url, m.short_code, m.clicks + 1, m.created_at, utcnow())
            self.rows[short_code] = m
            return m

    def list_all(self):
        return sorted(self.rows.values(), key=lambda m: m.id, reverse=True)

    def ping(self):
        return True


@pytest.fixture
def sql_store():
    """Creates a fresh database for each test."""
    engine = create_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    store = SQLMappingStore(engine)
    store.create_schema()
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def settings():
    return Settings(BASE_URL=BASE_URL, DATABASE_URL=None)


@pytest.fixture
def service(sql_store):
    return URLService(sql_store, base_url=BASE_URL)


@pytest.fixture
def client(settings, sql_store):
    """Creates a test client with the test store injected."""
    app = create_app(settings=settings, store=sql_store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_urls():
    """Provides sample URLs for testing."""
    return [
        "https://example.com/test1",
        "https://google.com/search?q=test",
        "https://github.com/user/repo",
    ]
