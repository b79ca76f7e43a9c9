"""
Integration tests for the Flask API.

Uses the X-Admin-Password header for the admin proposal list.
Tests every endpoint for its success and failure shapes.
"""
import json

import pytest

from m77ag.app import create_app
from m77ag.core.auth import CredentialVerifier
from m77ag.core.errors import StoreError
from conftest import make_payload


def _submit(client, payload):
    r = client.post("/api/proposals", json=payload)
    assert r.status_code == 200
    return r.get_json()["id"]


# ═══════════════════════════════════════════════════════════════════════════════
# SUBMIT
# ═══════════════════════════════════════════════════════════════════════════════

class TestSubmit:

    def test_submit(self, client, sample_payload):
        r = client.post("/api/proposals", json=sample_payload)
        assert r.status_code == 200
        data = r.get_json()
        assert data["success"] is True
        assert data["id"] == 1
        assert data["message"] == "Proposal submitted successfully"

    def test_missing_email_is_500(self, client):
        r = client.post("/api/proposals", json={"operation": "No Email"})
        assert r.status_code == 500
        assert "NOT NULL" in r.get_json()["error"]

    def test_empty_body_is_500(self, client):
        r = client.post("/api/proposals", data="not json", content_type="text/plain")
        assert r.status_code == 500

    def test_array_body_is_json_500(self, client):
        r = client.post("/api/proposals", json=[1, 2, 3])
        assert r.status_code == 500
        assert "NOT NULL" in r.get_json()["error"]

    def test_oversized_fields_is_json_500(self, client):
        r = client.post("/api/proposals", json=make_payload(fields=1e20))
        assert r.status_code == 500
        assert "too large" in r.get_json()["error"]

    def test_services_not_a_list(self, client):
        pid = _submit(client, make_payload(services=5))
        assert client.get(f"/api/proposals/{pid}").get_json()["services"] == []


# ═══════════════════════════════════════════════════════════════════════════════
# ADMIN LIST
# ═══════════════════════════════════════════════════════════════════════════════

class TestListProposals:

    def test_no_password_401(self, client):
        r = client.get("/api/proposals")
        assert r.status_code == 401
        assert r.get_json() == {"error": "Unauthorized"}

    def test_wrong_password_401(self, client):
        r = client.get("/api/proposals", headers={"X-Admin-Password": "nope"})
        assert r.status_code == 401

    def test_list_newest_first(self, client, admin_headers):
        a = _submit(client, make_payload(operation="A"))
        b = _submit(client, make_payload(operation="B"))
        r = client.get("/api/proposals", headers=admin_headers)
        assert r.status_code == 200
        assert [p["id"] for p in r.get_json()] == [b, a]

    def test_services_decoded(self, client, admin_headers, sample_payload):
        _submit(client, sample_payload)
        rows = client.get("/api/proposals", headers=admin_headers).get_json()
        assert rows[0]["services"] == sample_payload["services"]

    def test_unauthorized_runs_no_query(self, app, client):
        store = app.extensions["m77ag"]["store"]
        calls = []
        store.list_all = lambda: calls.append(1) or []
        client.get("/api/proposals", headers={"X-Admin-Password": "nope"})
        assert calls == []

    def test_custom_verifier(self, data_dir):
        class TokenVerifier(CredentialVerifier):
            def verify(self, credential):
                return credential == "token-123"

        app = create_app(data_dir=data_dir, verifier=TokenVerifier(),
                         configure_logging=False, close_at_exit=False)
        try:
            c = app.test_client()
            assert c.get("/api/proposals", headers={"X-Admin-Password": "token-123"}).status_code == 200
            assert c.get("/api/proposals", headers={"X-Admin-Password": "M77admin2024!"}).status_code == 401
        finally:
            app.extensions["m77ag"]["router"].close_all()


# ═══════════════════════════════════════════════════════════════════════════════
# SINGLE PROPOSAL
# ═══════════════════════════════════════════════════════════════════════════════

class TestGetProposal:

    def test_get(self, client, sample_payload):
        pid = _submit(client, sample_payload)
        r = client.get(f"/api/proposals/{pid}")
        assert r.status_code == 200
        data = r.get_json()
        assert data["operation_name"] == "Hansen Family Farms"
        assert data["services"] == sample_payload["services"]
        assert data["total"] == "$11,417.81"

    def test_unknown_404(self, client):
        r = client.get("/api/proposals/999")
        assert r.status_code == 404
        assert r.get_json() == {"error": "Proposal not found"}

    def test_id_beyond_integer_range_404(self, client):
        r = client.get("/api/proposals/99999999999999999999")
        assert r.status_code == 404
        assert r.get_json() == {"error": "Proposal not found"}

    def test_pdf(self, client, sample_payload):
        pid = _submit(client, sample_payload)
        r = client.get(f"/api/proposals/{pid}/pdf")
        assert r.status_code == 200
        assert r.mimetype == "application/pdf"
        assert r.data.startswith(b"%PDF")

    def test_pdf_unknown_404(self, client):
        assert client.get("/api/proposals/999/pdf").status_code == 404


# ═══════════════════════════════════════════════════════════════════════════════
# STATUS / DELETE
# ═══════════════════════════════════════════════════════════════════════════════

class TestStatusAndDelete:

    def test_update_status(self, client):
        pid = _submit(client, make_payload())
        r = client.patch(f"/api/proposals/{pid}/status",
                         json={"status": "approved", "notes": "Go ahead"})
        assert r.get_json() == {"success": True, "changes": 1}
        data = client.get(f"/api/proposals/{pid}").get_json()
        assert data["status"] == "approved"
        assert data["notes"] == "Go ahead"

    def test_update_unknown_reports_zero(self, client):
        r = client.patch("/api/proposals/555/status", json={"status": "approved"})
        assert r.status_code == 200
        assert r.get_json() == {"success": True, "changes": 0}

    def test_delete(self, client, sample_payload):
        pid = _submit(client, sample_payload)
        r = client.delete(f"/api/proposals/{pid}")
        assert r.get_json() == {"success": True, "deleted": 1}
        assert client.get(f"/api/proposals/{pid}").status_code == 404

    def test_delete_unknown(self, client):
        assert client.delete("/api/proposals/555").get_json()["deleted"] == 0

    def test_store_failure_is_500(self, app, client):
        def boom(*a, **kw):
            raise StoreError("database is locked")
        app.extensions["m77ag"]["store"].update_status = boom
        r = client.patch("/api/proposals/1/status", json={"status": "approved"})
        assert r.status_code == 500
        assert r.get_json() == {"error": "database is locked"}


# ═══════════════════════════════════════════════════════════════════════════════
# ANALYTICS / EXPORT / SEARCH / HEALTH
# ═══════════════════════════════════════════════════════════════════════════════

class TestReporting:

    def test_analytics(self, client):
        _submit(client, make_payload(total="$1,000.00", acres=50,
                                     services=[{"name": "Planting", "rate": "$1", "cost": "$1"}]))
        _submit(client, make_payload(total="abc", acres=150))
        data = client.get("/api/analytics").get_json()
        assert data["totalProposals"] == {"count": 2}
        assert data["totalValue"] == {"total": 1000.0}
        assert data["avgAcres"] == {"avg": 100.0}
        assert data["topServices"] == [{"service_name": "Planting", "count": 1}]
        assert len(data["recentProposals"]) == 2

    def test_analytics_non_finite_input_stays_strict_json(self, client):
        _submit(client, make_payload(total="$1,000.00", acres=50))
        _submit(client, make_payload(total="NaN", acres="inf"))
        _submit(client, make_payload(total="Infinity", acres="NaN"))

        def refuse(name):
            raise ValueError(name)

        r = client.get("/api/analytics")
        data = json.loads(r.get_data(as_text=True), parse_constant=refuse)
        assert data["totalValue"] == {"total": 1000.0}
        assert data["avgAcres"] == {"avg": 50.0}

    def test_export_csv(self, client):
        _submit(client, make_payload(operation="Alpha"))
        _submit(client, make_payload(operation="Beta"))
        r = client.get("/api/export/csv")
        assert r.status_code == 200
        assert r.mimetype == "text/csv"
        assert r.headers["Content-Disposition"] == "attachment; filename=proposals.csv"
        lines = r.get_data(as_text=True).split("\n")
        assert lines[0].startswith("ID,Timestamp,Operation")
        assert '"Beta"' in lines[1]
        assert '"Alpha"' in lines[2]

    def test_search(self, client):
        _submit(client, make_payload(email="one@example.com"))
        target = _submit(client, make_payload(email="grower@prairiefields.org"))
        data = client.get("/api/integrated/search?query=prairiefields").get_json()
        assert [p["id"] for p in data["farming"]] == [target]

    def test_search_unknown_database_500(self, app, client):
        router = app.extensions["m77ag"]["router"]
        router.databases.pop("farming")
        r = client.get("/api/integrated/search?query=x")
        assert r.status_code == 500
        assert r.get_json() == {"error": "Database farming not found"}
        router.databases["farming"] = app.extensions["m77ag"]["db"]

    def test_health(self, client):
        _submit(client, make_payload(services=[{"name": "Baling", "rate": "$1", "cost": "$1"}]))
        data = client.get("/api/health").get_json()
        assert data == {"ok": True, "databases": ["farming"], "proposals": 1, "services": 1}


# ═══════════════════════════════════════════════════════════════════════════════
# APP FACTORY
# ═══════════════════════════════════════════════════════════════════════════════

class TestCreateApp:

    def test_extra_databases_provisioned(self, data_dir, monkeypatch):
        monkeypatch.setenv("M77_EXTRA_DATABASES", "inventory=inventory.db")
        app = create_app(data_dir=data_dir, configure_logging=False, close_at_exit=False)
        try:
            assert app.extensions["m77ag"]["router"].names() == ["farming", "inventory"]
        finally:
            app.extensions["m77ag"]["router"].close_all()

    def test_store_shares_router_handle(self, app):
        ext = app.extensions["m77ag"]
        assert ext["router"].get("farming") is ext["db"]
        assert ext["store"].db is ext["db"]

    def test_unopenable_database_is_fatal(self, tmp_path):
        blocker = tmp_path / "file-not-dir"
        blocker.write_text("x")
        with pytest.raises((StoreError, OSError)):
            create_app(data_dir=str(blocker / "sub"), configure_logging=False,
                       close_at_exit=False)
