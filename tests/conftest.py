"""
Shared pytest fixtures for the M77 AG test suite.

Every test gets its own temporary data directory, so each one starts from an
empty farming_proposals.db.
"""
import os
import sys

import pytest

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from m77ag.core.db import Database
from m77ag.core.schema import init_schema
from m77ag.core.proposals import ProposalStore

ADMIN_PASSWORD = "test-admin-secret"


# ── Temp data directory (per-test isolation) ──────────────────────────────────

@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    data = str(tmp_path / "databases")
    os.makedirs(data, exist_ok=True)
    monkeypatch.setenv("M77_DATA_DIR", data)
    monkeypatch.delenv("M77_EXTRA_DATABASES", raising=False)
    return data


@pytest.fixture
def db(data_dir):
    """Open proposal database with schema provisioned."""
    database = Database(os.path.join(data_dir, "farming_proposals.db"))
    with database:
        init_schema(database)
        yield database


@pytest.fixture
def store(db):
    return ProposalStore(db)


# ── Flask test client ─────────────────────────────────────────────────────────

@pytest.fixture
def app(data_dir):
    from m77ag.app import create_app
    _app = create_app(data_dir=data_dir, admin_password=ADMIN_PASSWORD,
                      configure_logging=False, close_at_exit=False)
    _app.config["TESTING"] = True
    yield _app
    _app.extensions["m77ag"]["router"].close_all()


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def admin_headers():
    return {"X-Admin-Password": ADMIN_PASSWORD}


# ── Sample data ───────────────────────────────────────────────────────────────

@pytest.fixture
def sample_payload():
    """A submission exactly as the quote form posts it."""
    return {
        "operation": "Hansen Family Farms",
        "fields": 4,
        "acres": 320.5,
        "crop": "Corn",
        "startDate": "2026-04-15",
        "finishDate": "2026-05-01",
        "email": "ops@hansenfarms.com",
        "phone": "555-201-7788",
        "services": [
            {"name": "Planting", "rate": "$28.00/ac", "cost": "$8,974.00"},
            {"name": "Spraying", "rate": "$9.50/ac", "cost": "$3,044.75"},
        ],
        "subtotal": "$12,018.75",
        "discount": "$600.94",
        "total": "$11,417.81",
    }


def make_payload(**overrides):
    base = {
        "operation": "Test Operation",
        "email": "test@example.com",
        "services": [],
        "total": "$0.00",
    }
    base.update(overrides)
    return base
