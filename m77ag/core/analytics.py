"""
m77ag/core/analytics.py - Proposal Analytics

Five sub-queries run concurrently on a small thread pool against the shared
handle. The summary waits for all of them. A sub-query that fails is logged
and reported as None; the others are unaffected.

No isolation is promised between sub-queries: a write landing mid-summary may
show up in some keys and not others.
"""

import re
import logging
from concurrent.futures import ThreadPoolExecutor

from .errors import StoreError
from .proposals import ProposalStore, parse_number

log = logging.getLogger("m77ag.analytics")

_CURRENCY_JUNK = re.compile(r"[$,\s]")

# Amounts beyond this are left out so the running sum stays finite.
MAX_AMOUNT = 1e300


def parse_currency(value) -> float | None:
    """'$1,234.56' → 1234.56. Unparseable, empty or non-finite → None."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return parse_number(value)
    return parse_number(_CURRENCY_JUNK.sub("", str(value)))


class AnalyticsEngine:
    """Aggregate statistics over the proposal tables."""

    def __init__(self, db, max_workers: int = 5):
        self.db = db
        self.max_workers = max_workers
        self.store = ProposalStore(db)
        self.queries = {
            "totalProposals": self.total_proposals,
            "totalValue": self.total_value,
            "avgAcres": self.avg_acres,
            "topServices": self.top_services,
            "recentProposals": self.recent_proposals,
        }

    # ── Sub-queries ───────────────────────────────────────────────────────────

    def total_proposals(self) -> dict:
        return self.db.fetch_one("SELECT COUNT(*) AS count FROM proposals")

    def total_value(self) -> dict:
        rows = self.db.fetch_all("SELECT total FROM proposals")
        total = 0.0
        skipped = 0
        for r in rows:
            amount = parse_currency(r["total"])
            if amount is None or abs(amount) > MAX_AMOUNT:
                skipped += 1
                continue
            total += amount
        if skipped:
            log.debug("totalValue skipped %d unparseable totals", skipped)
        return {"total": total}

    def avg_acres(self) -> dict:
        return self.db.fetch_one(
            "SELECT AVG(acres) AS avg FROM proposals "
            "WHERE typeof(acres) IN ('integer', 'real') "
            "AND acres BETWEEN -1e300 AND 1e300")

    def top_services(self, limit: int = 5) -> list:
        return self.db.fetch_all("""
            SELECT service_name, COUNT(*) AS count
            FROM proposal_services
            GROUP BY service_name
            ORDER BY count DESC, MIN(id) ASC
            LIMIT ?
        """, (limit,))

    def recent_proposals(self, limit: int = 10) -> list:
        return self.store.recent(limit)

    # ── Combined ──────────────────────────────────────────────────────────────

    def summary(self) -> dict:
        """Run every sub-query concurrently and assemble one result."""
        results = {}
        with ThreadPoolExecutor(max_workers=self.max_workers,
                                thread_name_prefix="analytics") as pool:
            futures = {key: pool.submit(fn) for key, fn in self.queries.items()}
            for key, future in futures.items():
                try:
                    results[key] = future.result()
                except Exception as e:
                    log.error("Error in %s: %s", key, e, exc_info=not isinstance(e, StoreError))
                    results[key] = None
        return results
