"""Tests for folio.identity.cache — sqlite identifier cache."""

import sqlite3
import pytest

from folio.identity.cache import SCHEMA_VERSION, UuidCache, get_meta, open_cache


@pytest.fixture
def cache():
    c = UuidCache(":memory:")
    yield c
    c.close()


class TestOpen:

    def test_creates_directory_and_schema(self, tmp_path):
        path = tmp_path / "site" / "cache" / "uuid.db"
        db = open_cache(path)
        assert path.exists()
        tables = {r[0] for r in db.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        assert {"uuids", "_meta"} <= tables
        assert get_meta(db, "schema_version") == SCHEMA_VERSION
        db.close()

    def test_row_factory(self, cache):
        assert cache.db.row_factory == sqlite3.Row


class TestEntries:

    def test_set_get(self, cache):
        assert cache.set("page/ab/c123", "blog/hello") is True
        assert cache.get("page/ab/c123") == "blog/hello"

    def test_structured_value(self, cache):
        cache.set("file/xy/z", {"parent": "blog", "filename": "a.jpg"})
        assert cache.get("file/xy/z") == {"parent": "blog", "filename": "a.jpg"}

    def test_missing(self, cache):
        assert cache.get("page/no/pe") is None
        assert not cache.exists("page/no/pe")

    def test_overwrite(self, cache):
        cache.set("page/ab/c", "old")
        cache.set("page/ab/c", "new")
        assert cache.get("page/ab/c") == "new"
        assert cache.count() == 1

    def test_remove(self, cache):
        cache.set("page/ab/c", "x")
        assert cache.remove("page/ab/c") is True
        assert cache.remove("page/ab/c") is False
        assert not cache.exists("page/ab/c")

    def test_flush_by_scheme(self, cache):
        cache.set("page/aa/1", "a")
        cache.set("page/bb/2", "b")
        cache.set("file/cc/3", {"parent": "", "filename": "f"})
        assert cache.flush("page") == 2
        assert cache.count() == 1
        assert cache.count("file") == 1
        assert cache.flush() == 1
        assert cache.count() == 0

    def test_entries_sorted(self, cache):
        cache.set("page/zz/1", "z")
        cache.set("page/aa/1", "a")
        assert [e["key"] for e in cache.entries()] == ["page/aa/1", "page/zz/1"]
        assert cache.entries()[0]["value"] == "a"

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "uuid.db"
        first = UuidCache(path)
        first.set("page/ab/c", "blog")
        first.close()
        second = UuidCache(path)
        assert second.get("page/ab/c") == "blog"
        second.close()


class TestOps:

    def test_log(self, cache):
        cache.log("populate", "all", rows_affected=3, force=False)
        ops = cache.ops()
        assert len(ops) == 1
        assert ops[0]["operation"] == "populate"
        assert ops[0]["target"] == "all"
        assert ops[0]["rows_affected"] == 3
        assert '"force": false' in ops[0]["params"]

    def test_no_ops(self, cache):
        assert cache.ops() == []
