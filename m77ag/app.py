"""
M77 AG - Application Factory
Opens the proposal database, provisions the schema, wires the store,
analytics engine and database router into a Flask app.
"""

import os
import time
import atexit
import logging

from flask import Flask, request

from .core import config
from .core.paths import resolve_data_dir, db_path
from .core.logging_config import setup_logging
from .core.db import Database
from .core.schema import init_schema
from .core.proposals import ProposalStore
from .core.analytics import AnalyticsEngine
from .core.router import DatabaseManager, PRIMARY
from .core.auth import SharedSecretVerifier
from .core.errors import StoreError

log = logging.getLogger("m77ag")

ENDPOINTS = [
    ("POST",   "/api/proposals",             "Submit new proposal"),
    ("GET",    "/api/proposals",             "Get all proposals (requires password)"),
    ("GET",    "/api/proposals/:id",         "Get single proposal"),
    ("GET",    "/api/proposals/:id/pdf",     "Proposal quote sheet (PDF)"),
    ("PATCH",  "/api/proposals/:id/status",  "Update proposal status"),
    ("DELETE", "/api/proposals/:id",         "Delete proposal"),
    ("GET",    "/api/analytics",             "Get analytics data"),
    ("GET",    "/api/export/csv",            "Export as CSV"),
    ("GET",    "/api/integrated/search",     "Search across databases"),
    ("GET",    "/api/health",                "Database row counts"),
]


def create_app(data_dir=None, admin_password=None, verifier=None,
               configure_logging=True, close_at_exit=True):
    """Application factory.

    Failure to open the proposal database is fatal (StoreError propagates).
    Schema provisioning failures are logged and startup continues.
    """
    data_dir = resolve_data_dir(data_dir)
    if configure_logging:
        setup_logging(log_dir=os.path.join(data_dir, "logs"))
    config.startup_check()

    app = Flask(__name__)
    app.secret_key = config.get_setting("secret_key")

    db = Database(db_path(data_dir), name=PRIMARY).open()
    init_schema(db)

    router = DatabaseManager(data_dir)
    router.register(PRIMARY, db)
    for name, filename in config.parse_extra_databases().items():
        if name == PRIMARY:
            log.warning("Ignoring extra database entry that shadows %s", PRIMARY)
            continue
        try:
            router.add_database(name, filename)
        except StoreError as e:
            log.error("Could not open %s database: %s", name, e, extra={"db": name})

    if verifier is None:
        verifier = SharedSecretVerifier(admin_password or config.get_setting("admin_password"))

    app.extensions["m77ag"] = {
        "data_dir": data_dir,
        "db": db,
        "store": ProposalStore(db),
        "analytics": AnalyticsEngine(db),
        "router": router,
        "verifier": verifier,
    }
    if close_at_exit:
        atexit.register(router.close_all)

    from .api.routes import bp
    app.register_blueprint(bp)

    # ── Request-level logging ─────────────────────────────────────────────
    @app.before_request
    def _log_request_start():
        request._start_time = time.time()

    @app.after_request
    def _log_request_end(response):
        if hasattr(request, "_start_time"):
            duration_ms = round((time.time() - request._start_time) * 1000, 1)
            if request.path != "/api/health":
                log.info("%s %s → %d (%.0fms)",
                         request.method, request.path, response.status_code, duration_ms,
                         extra={"route": request.path, "method": request.method,
                                "status": response.status_code, "duration_ms": duration_ms})
        return response

    return app


def log_banner(app, port):
    """Startup banner with the database location and endpoint list."""
    ext = app.extensions["m77ag"]
    log.info("========================================")
    log.info("M77 AG System Started Successfully!")
    log.info("Server running on: http://localhost:%d", port)
    log.info("Database location: %s", ext["db"].path)
    log.info("Registered databases: %s", ", ".join(ext["router"].names()))
    for method, path, desc in ENDPOINTS:
        log.info("%-6s %-28s - %s", method, path, desc)
    log.info("========================================")
