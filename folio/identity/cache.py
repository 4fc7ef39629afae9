"""
UUID Cache — identifier → model locator.

Single source of truth for the permalink route: it resolves identifiers from
here only, never by scanning content. Entries are written when an identifier
resolves through the index, on populate(), and before a permalink is handed
out.

Keys are `<scheme>/<id[:2]>/<id[2:]>`; values are JSON locators
(page id, {"parent", "filename"} for files, user id).

Cache location: <root>/site/cache/uuid.db (":memory:" for throwaway apps)
"""

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS uuids (
    key         TEXT PRIMARY KEY,
    scheme      TEXT NOT NULL,
    value       TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_uuids_scheme ON uuids(scheme);

CREATE TABLE IF NOT EXISTS _meta (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""

SCHEMA_VERSION = "1"


def open_cache(db_path: str | Path) -> sqlite3.Connection:
    """Open the cache database, creating its directory and schema if needed."""
    if str(db_path) == ":memory:":
        db = sqlite3.connect(":memory:", check_same_thread=False)
    else:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        db = sqlite3.connect(str(db_path), check_same_thread=False, timeout=10)
        db.execute("PRAGMA journal_mode=WAL")
        db.execute("PRAGMA synchronous=NORMAL")
    db.row_factory = sqlite3.Row
    db.executescript(_SCHEMA)

    set_meta(db, "schema_version", SCHEMA_VERSION)
    return db


def get_meta(db: sqlite3.Connection, key: str) -> Optional[str]:
    """Read a single value from _meta table."""
    row = db.execute("SELECT value FROM _meta WHERE key = ?", (key,)).fetchone()
    return row[0] if row else None


def set_meta(db: sqlite3.Connection, key: str, value: str):
    """Write a key-value pair to _meta table."""
    db.execute(
        "INSERT OR REPLACE INTO _meta (key, value) VALUES (?, ?)",
        (key, value)
    )
    db.commit()


def ensure_ops_table(db: sqlite3.Connection):
    """Create _ops table if it doesn't exist. Idempotent."""
    db.execute("""CREATE TABLE IF NOT EXISTS _ops (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp INTEGER DEFAULT (strftime('%s','now')),
        operation TEXT,
        target TEXT,
        params TEXT,
        rows_affected INTEGER,
        source TEXT
    )""")


def log_op(db: sqlite3.Connection, operation: str, target: str,
           params: dict = None, rows_affected: int = None,
           source: str = None):
    """Record an identifier mutation in _ops."""
    ensure_ops_table(db)
    db.execute(
        "INSERT INTO _ops (operation, target, params, rows_affected, source) "
        "VALUES (?, ?, ?, ?, ?)",
        (operation, target,
         json.dumps(params) if params else None,
         rows_affected, source))
    db.commit()


class UuidCache:
    """Key/value store for identifier locators."""

    def __init__(self, db_path: str | Path = ":memory:"):
        self.db_path = db_path
        self.db = open_cache(db_path)

    def get(self, key: str):
        """Decoded locator for key, or None."""
        row = self.db.execute("SELECT value FROM uuids WHERE key = ?", (key,)).fetchone()
        return json.loads(row["value"]) if row else None

    def set(self, key: str, value) -> bool:
        now = datetime.now(timezone.utc).isoformat()
        self.db.execute("""
            INSERT INTO uuids (key, scheme, value, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
        """, (key, key.split("/", 1)[0], json.dumps(value), now, now))
        self.db.commit()
        return True

    def exists(self, key: str) -> bool:
        return self.db.execute(
            "SELECT 1 FROM uuids WHERE key = ?", (key,)
        ).fetchone() is not None

    def remove(self, key: str) -> bool:
        """Remove an entry. Returns True if it existed."""
        cursor = self.db.execute("DELETE FROM uuids WHERE key = ?", (key,))
        self.db.commit()
        return cursor.rowcount > 0

    def flush(self, scheme: Optional[str] = None) -> int:
        """Drop all entries (or those of one scheme). Returns count removed."""
        if scheme:
            cursor = self.db.execute("DELETE FROM uuids WHERE scheme = ?", (scheme,))
        else:
            cursor = self.db.execute("DELETE FROM uuids")
        self.db.commit()
        return cursor.rowcount

    def count(self, scheme: Optional[str] = None) -> int:
        if scheme:
            row = self.db.execute("SELECT COUNT(*) FROM uuids WHERE scheme = ?", (scheme,)).fetchone()
        else:
            row = self.db.execute("SELECT COUNT(*) FROM uuids").fetchone()
        return row[0]

    def entries(self) -> list[dict]:
        rows = self.db.execute(
            "SELECT key, scheme, value, updated_at FROM uuids ORDER BY key"
        ).fetchall()
        return [dict(r) | {"value": json.loads(r["value"])} for r in rows]

    def log(self, operation: str, target: str, **params):
        rows = params.pop("rows_affected", None)
        log_op(self.db, operation, target, params=params or None,
               rows_affected=rows, source="folio")

    def ops(self) -> list[dict]:
        ensure_ops_table(self.db)
        rows = self.db.execute(
            "SELECT operation, target, params, rows_affected FROM _ops ORDER BY id"
        ).fetchall()
        return [dict(r) for r in rows]

    def close(self):
        if self.db:
            self.db.close()
            self.db = None
