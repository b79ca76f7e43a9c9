"""
m77ag/core/db.py - Owned SQLite Handle

One Database object per logical database. It is opened once at startup,
shared by every component that needs it, and closed once at shutdown.

The connection is created with check_same_thread=False so Flask's worker
threads (and the analytics thread pool) can share it. A lock serialises
statements on the handle; nothing serialises a sequence of statements, so
callers interleave at statement boundaries.

Every statement is committed on its own. There are no transactions spanning
more than one call.
"""

import os
import sqlite3
import logging
import threading
from collections import namedtuple
from contextlib import contextmanager

from .errors import StoreError

log = logging.getLogger("m77ag.db")

WriteResult = namedtuple("WriteResult", "lastrowid rowcount")


class Database:
    """Process-wide SQLite handle with an explicit open/close lifecycle."""

    def __init__(self, path: str, name: str = "farming"):
        self.path = path
        self.name = name
        self._conn = None
        self._lock = threading.Lock()

    def __repr__(self):
        state = "open" if self.is_open else "closed"
        return f"<Database {self.name} {self.path} ({state})>"

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> "Database":
        if self._conn is not None:
            return self
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        try:
            conn = sqlite3.connect(self.path, timeout=30, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open {self.path}: {e}") from e
        self._conn = conn
        log.info("Connected to %s database at %s", self.name, self.path,
                 extra={"db": self.name})
        return self

    def close(self):
        with self._lock:
            if self._conn is None:
                return
            try:
                self._conn.close()
            except sqlite3.Error as e:
                log.error("Error closing %s database: %s", self.name, e)
            finally:
                self._conn = None
        log.info("Database connection closed: %s", self.name, extra={"db": self.name})

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # ── Statement execution ───────────────────────────────────────────────────

    @contextmanager
    def _cursor(self):
        """Lock the handle, yield a cursor, commit on success.

        sqlite3 errors, and OverflowError from binding an integer SQLite
        can't hold, are re-raised as StoreError with the original message.
        """
        with self._lock:
            if self._conn is None:
                raise StoreError(f"Database {self.name} is not open")
            cur = self._conn.cursor()
            try:
                yield cur
                self._conn.commit()
            except (sqlite3.Error, OverflowError) as e:
                self._conn.rollback()
                raise StoreError(str(e)) from e
            finally:
                cur.close()

    def execute(self, sql: str, params=()) -> WriteResult:
        """Run a write statement. Returns (lastrowid, rowcount)."""
        with self._cursor() as cur:
            cur.execute(sql, params)
            result = WriteResult(cur.lastrowid, cur.rowcount)
        return result

    def executescript(self, script: str):
        with self._cursor() as cur:
            cur.executescript(script)

    def fetch_all(self, sql: str, params=()) -> list:
        with self._cursor() as cur:
            rows = cur.execute(sql, params).fetchall()
        return [dict(r) for r in rows]

    def fetch_one(self, sql: str, params=()) -> dict | None:
        with self._cursor() as cur:
            row = cur.execute(sql, params).fetchone()
        return dict(row) if row else None

    def table_counts(self) -> dict:
        """Row counts for every user table - used by /api/health."""
        tables = self.fetch_all(
            "SELECT name FROM sqlite_master WHERE type='table' "
            "AND name NOT LIKE 'sqlite_%' ORDER BY name")
        counts = {}
        for t in tables:
            row = self.fetch_one(f'SELECT COUNT(*) AS n FROM "{t["name"]}"')
            counts[t["name"]] = row["n"]
        return counts
