"""
m77ag/core/router.py - Multi-Database Router

Keeps one open Database handle per logical name and dispatches queries to the
handle addressed by name. "farming" (the proposal store) is always present;
other project databases (inventory, customers, ...) can be provisioned from
M77_EXTRA_DATABASES but nothing queries them yet.
"""

import os
import logging

from .db import Database
from .errors import UnknownDatabase, StoreError

log = logging.getLogger("m77ag.router")

PRIMARY = "farming"


class DatabaseManager:
    """Registry of named database handles."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self.databases = {}

    def add_database(self, name: str, filename: str) -> Database:
        """Open <data_dir>/<filename> and register it under name."""
        db = Database(os.path.join(self.data_dir, filename), name=name).open()
        return self.register(name, db)

    def register(self, name: str, db: Database) -> Database:
        """Register an already-open handle (the proposal store shares its own)."""
        if name in self.databases and self.databases[name] is not db:
            log.warning("Replacing database handle %s", name)
        self.databases[name] = db
        log.info("Registered %s database", name, extra={"db": name})
        return db

    def names(self) -> list:
        return sorted(self.databases)

    def get(self, name: str) -> Database:
        db = self.databases.get(name)
        if db is None:
            raise UnknownDatabase(name)
        return db

    def query(self, db_name: str, sql: str, params=()) -> list:
        """Run a read query against the named database. Returns rows as dicts."""
        return self.get(db_name).fetch_all(sql, params)

    def stats(self) -> dict:
        """{name: {table: row_count}}; a database that can't be read maps to None."""
        out = {}
        for name in self.names():
            try:
                out[name] = self.databases[name].table_counts()
            except StoreError as e:
                log.error("Stats failed for %s: %s", name, e, extra={"db": name})
                out[name] = None
        return out

    def close_all(self):
        for name in self.names():
            self.databases[name].close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close_all()
        return False


def federated_search(manager: DatabaseManager, term: str) -> dict:
    """Search proposals by operation name or email substring.

    Returns {logical_db_name: rows}. Only the farming database is searched
    today; other registered databases have no search query yet.
    """
    pattern = f"%{term or ''}%"
    farming = manager.query(
        PRIMARY,
        "SELECT * FROM proposals WHERE operation_name LIKE ? OR email LIKE ?",
        (pattern, pattern))
    return {PRIMARY: farming}
