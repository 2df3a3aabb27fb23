from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from shorty.core.errors import ConflictError, NotFoundError
from shorty.db.Connection.database import build_engine, create_ephemeral_store
from shorty.db.repository import SQLMappingStore


def test_create_and_find(sql_store):
    created = sql_store.create("https://example.com/a", "abc123")

    assert created.id is not None
    assert created.clicks == 0
    assert created.created_at == created.updated_at
    assert sql_store.find_by_short_code("abc123") == created
    assert sql_store.find_by_original_url("https://example.com/a") == created


def test_find_missing_returns_none(sql_store):
    assert sql_store.find_by_short_code("nope00") is None
    assert sql_store.find_by_original_url("https://example.com/none") is None


def test_short_codes_are_case_sensitive(sql_store):
    sql_store.create("https://example.com/lower", "abcdef")
    sql_store.create("https://example.com/upper", "ABCDEF")

    assert sql_store.find_by_short_code("abcdef").original_url == "https://example.com/lower"
    assert sql_store.find_by_short_code("ABCDEF").original_url == "https://example.com/upper"


def test_duplicate_short_code_conflicts(sql_store):
    sql_store.create("https://example.com/a", "dup000")

    with pytest.raises(ConflictError):
        sql_store.create("https://example.com/b", "dup000")

    # store is still usable after the rolled back insert
    assert len(sql_store.list_all()) == 1
    sql_store.create("https://example.com/b", "dup001")
    assert len(sql_store.list_all()) == 2


def test_original_url_is_not_unique(sql_store):
    first = sql_store.create("https://example.com/same", "first0")
    sql_store.create("https://example.com/same", "secnd0")

    assert sql_store.find_by_original_url("https://example.com/same") == first


def test_increment_clicks(sql_store):
    created = sql_store.create("https://example.com/a", "clk000")

    updated = sql_store.increment_clicks("clk000")
    assert updated.clicks == 1
    assert updated.updated_at >= created.updated_at
    assert sql_store.increment_clicks("clk000").clicks == 2


def test_increment_unknown_code(sql_store):
    with pytest.raises(NotFoundError):
        sql_store.increment_clicks("ghost0")
    assert sql_store.list_all() == []


def test_list_all_newest_first(sql_store):
    for i in range(5):
        sql_store.create(f"https://example.com/{i}", f"code0{i}")

    assert [m.short_code for m in sql_store.list_all()] == [f"code0{i}" for i in reversed(range(5))]


def test_ping(sql_store):
    assert sql_store.ping() is True


def test_concurrent_increments_are_atomic(tmp_path):
    store = SQLMappingStore(build_engine(f"sqlite:///{tmp_path / 'clicks.db'}"))
    store.create_schema()
    try:
        store.create("https://example.com/hot", "hot000")

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: store.increment_clicks("hot000"), range(100)))

        assert store.find_by_short_code("hot000").clicks == 100
    finally:
        store.close()


def test_timestamps_are_utc(sql_store):
    created = sql_store.create("https://example.com/tz", "tz0000")
    assert created.created_at.tzinfo is not None
    assert created.created_at.utcoffset() == timedelta(0)
    assert sql_store.increment_clicks("tz0000").updated_at.utcoffset() == timedelta(0)
    assert all(m.created_at.tzinfo is not None for m in sql_store.list_all())


def test_ephemeral_store_concurrent_increments():
    store = create_ephemeral_store()
    try:
        store.create("https://example.com/hot", "hot000")

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: store.increment_clicks("hot000"), range(400)))

        assert store.find_by_short_code("hot000").clicks == 400
        assert sorted(m.clicks for m in results) == list(range(1, 401))
    finally:
        store.close()


def test_ephemeral_store_concurrent_creates():
    store = create_ephemeral_store()
    try:
        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(lambda i: store.create(f"https://example.com/{i}", f"c{i:05d}"), range(300)))

        mappings = store.list_all()
        assert len(mappings) == 300
        assert len({m.id for m in mappings}) == 300
    finally:
        store.close()
