"""
m77ag/core/proposals.py - Proposal Store

CRUD and status transitions over the proposals table and its service lines.

Consistency is deliberately weak:
  - create() writes the parent row, then each service line as its own
    statement. A failed service line is logged and dropped; the proposal stays.
  - delete() removes service lines, then the proposal, as two separate
    statements. A crash between them leaves orphaned service lines.
  - update_status() accepts any status string and does no conflict detection;
    the last write wins.
"""

import re
import json
import math
import logging

from .errors import ProposalNotFound, StoreError
from .schema import STATUSES

log = logging.getLogger("m77ag.proposals")

# Front-end payload key → column. Column names are accepted as-is too.
PAYLOAD_KEYS = {
    "operation": "operation_name",
    "crop": "crop_type",
    "startDate": "start_date",
    "finishDate": "finish_date",
}

COLUMNS = ("operation_name", "fields", "acres", "crop_type", "start_date",
           "finish_date", "email", "phone", "services", "subtotal",
           "discount", "total")


# ── Helpers ───────────────────────────────────────────────────────────────────

_DECIMAL = re.compile(r"[-+]?(\d+(\.\d*)?|\.\d+)")

# SQLite INTEGER range; ids outside it can't exist and can't be bound.
_MIN_ROWID, _MAX_ROWID = -(2 ** 63), 2 ** 63 - 1


def parse_number(val):
    """Finite float from a number or plain decimal text. Anything else → None.

    Stricter than float(): text like "nan", "inf" or "1_000" is refused.
    """
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        try:
            f = float(val)
        except OverflowError:
            return None
    else:
        text = str(val).strip()
        if not _DECIMAL.fullmatch(text):
            return None
        f = float(text)
    return f if math.isfinite(f) else None


def _to_int(val):
    f = parse_number(val)
    return None if f is None else int(f)


def _storable_id(proposal_id) -> bool:
    if isinstance(proposal_id, int):
        return _MIN_ROWID <= proposal_id <= _MAX_ROWID
    return True


def normalize_proposal(data: dict) -> dict:
    """Map a submission payload onto column names and coerce numeric fields.

    A payload that isn't an object is treated as empty; services that aren't
    a list become [].
    """
    if not isinstance(data, dict):
        data = {}
    row = {}
    for key, val in data.items():
        row[PAYLOAD_KEYS.get(key, key)] = val
    out = {col: row.get(col) for col in COLUMNS}
    out["fields"] = _to_int(out["fields"])
    out["acres"] = parse_number(out["acres"])
    if not isinstance(out["services"], list):
        out["services"] = []
    return out


def load_services(raw) -> list:
    """Decode a services blob. Absent, empty or malformed → []."""
    if not raw:
        return []
    try:
        services = json.loads(raw)
    except (TypeError, ValueError):
        log.warning("Unreadable services blob: %.60r", raw)
        return []
    return services if isinstance(services, list) else []


def decode_row(row: dict) -> dict:
    row["services"] = load_services(row.get("services"))
    return row


# ── Store ─────────────────────────────────────────────────────────────────────

class ProposalStore:
    """Proposal persistence over an injected Database handle."""

    def __init__(self, db):
        self.db = db

    def create(self, proposal: dict) -> int:
        """Insert a proposal and its service lines. Returns the new id.

        Raises StoreError only if the parent row fails.
        """
        p = normalize_proposal(proposal)
        services = p["services"]
        result = self.db.execute("""
            INSERT INTO proposals (
                operation_name, fields, acres, crop_type,
                start_date, finish_date, email, phone,
                services, subtotal, discount, total
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            p["operation_name"], p["fields"], p["acres"], p["crop_type"],
            p["start_date"], p["finish_date"], p["email"], p["phone"],
            json.dumps(services), p["subtotal"], p["discount"], p["total"],
        ))
        proposal_id = result.lastrowid
        log.info("Proposal %d created for %s (%d services)",
                 proposal_id, p["operation_name"], len(services),
                 extra={"proposal_id": proposal_id})

        for service in services:
            if not isinstance(service, dict):
                log.warning("Skipping service line %.40r for proposal %d",
                            service, proposal_id, extra={"proposal_id": proposal_id})
                continue
            try:
                self.db.execute(
                    "INSERT INTO proposal_services (proposal_id, service_name, rate, cost) "
                    "VALUES (?, ?, ?, ?)",
                    (proposal_id, service.get("name"), service.get("rate"), service.get("cost")))
            except StoreError as e:
                log.warning("Service line %r for proposal %d not saved: %s",
                            service.get("name"), proposal_id, e,
                            extra={"proposal_id": proposal_id})
        return proposal_id

    def list_all(self) -> list:
        """All proposals, newest first, services decoded."""
        rows = self.db.fetch_all(
            "SELECT * FROM proposals ORDER BY timestamp DESC, id DESC")
        return [decode_row(r) for r in rows]

    def recent(self, limit: int = 10) -> list:
        rows = self.db.fetch_all(
            "SELECT * FROM proposals ORDER BY timestamp DESC, id DESC LIMIT ?",
            (limit,))
        return [decode_row(r) for r in rows]

    def get(self, proposal_id) -> dict:
        if not _storable_id(proposal_id):
            raise ProposalNotFound(proposal_id)
        row = self.db.fetch_one("SELECT * FROM proposals WHERE id = ?", (proposal_id,))
        if not row:
            raise ProposalNotFound(proposal_id)
        return decode_row(row)

    def services_for(self, proposal_id) -> list:
        """Service-line rows for one proposal, in insertion order."""
        if not _storable_id(proposal_id):
            return []
        return self.db.fetch_all(
            "SELECT * FROM proposal_services WHERE proposal_id = ? ORDER BY id",
            (proposal_id,))

    def update_status(self, proposal_id, status: str, notes: str = None) -> int:
        """Set status and notes. Returns rows affected (0 = unknown id).

        Statuses outside STATUSES are stored anyway, with a warning.
        """
        if not _storable_id(proposal_id):
            return 0
        if status not in STATUSES:
            log.warning("Proposal %s given non-standard status %r", proposal_id, status,
                        extra={"proposal_id": proposal_id})
        result = self.db.execute(
            "UPDATE proposals SET status = ?, notes = ? WHERE id = ?",
            (status, notes, proposal_id))
        log.info("Proposal %s status → %s (%d row)", proposal_id, status, result.rowcount,
                 extra={"proposal_id": proposal_id})
        return result.rowcount

    def delete(self, proposal_id) -> int:
        """Delete service lines, then the proposal. Returns parent rows deleted."""
        if not _storable_id(proposal_id):
            return 0
        self.db.execute("DELETE FROM proposal_services WHERE proposal_id = ?", (proposal_id,))
        result = self.db.execute("DELETE FROM proposals WHERE id = ?", (proposal_id,))
        log.info("Proposal %s deleted (%d row)", proposal_id, result.rowcount,
                 extra={"proposal_id": proposal_id})
        return result.rowcount
