"""
m77ag/core/schema.py - Table Provisioning

TABLES:
  proposals          - one row per customer quote; services kept as a JSON blob
  proposal_services  - one row per priced service line, for analytics

The services column and the proposal_services rows hold the same data twice.
Both are written at submission and never re-synchronised afterwards.
"""

import logging

from .errors import StoreError

log = logging.getLogger("m77ag.schema")

PROPOSALS_TABLE = """
CREATE TABLE IF NOT EXISTS proposals (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp       DATETIME DEFAULT CURRENT_TIMESTAMP,
    operation_name  TEXT NOT NULL,
    fields          INTEGER,
    acres           REAL,
    crop_type       TEXT,
    start_date      DATE,
    finish_date     DATE,
    email           TEXT NOT NULL,
    phone           TEXT,
    services        TEXT,           -- JSON array of {name, rate, cost}
    subtotal        TEXT,           -- formatted currency, e.g. "$1,234.56"
    discount        TEXT,
    total           TEXT,
    status          TEXT DEFAULT 'pending',  -- pending|approved|rejected|completed
    notes           TEXT
);
"""

SERVICES_TABLE = """
CREATE TABLE IF NOT EXISTS proposal_services (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    proposal_id     INTEGER,
    service_name    TEXT,
    rate            TEXT,
    cost            TEXT,
    FOREIGN KEY (proposal_id) REFERENCES proposals(id)
);
"""

TABLES = (
    ("proposals", PROPOSALS_TABLE),
    ("proposal_services", SERVICES_TABLE),
)

STATUSES = ("pending", "approved", "rejected", "completed")


def init_schema(db) -> dict:
    """Create both tables if they don't exist. Safe to call multiple times.

    A table that fails to create is logged and reported as False; startup
    carries on and later statements against it fail on their own.
    """
    ready = {}
    for name, ddl in TABLES:
        try:
            db.executescript(ddl)
        except StoreError as e:
            log.error("Error creating %s table: %s", name, e, extra={"table": name})
            ready[name] = False
            continue
        log.info("%s table ready", name, extra={"table": name})
        ready[name] = True
    return ready
