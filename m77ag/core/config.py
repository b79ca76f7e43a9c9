"""
config.py - Centralized Settings for M77 AG

Single source of truth for every environment-driven setting.

Env vars:
  M77_ADMIN_PASSWORD     - Shared secret for the admin proposal list
  SECRET_KEY             - Flask session key
  M77_DATA_DIR           - Directory holding the SQLite files
  M77_DB_FILE            - Proposal database filename
  M77_EXTRA_DATABASES    - Extra logical databases, "name=file,name=file"
  PORT                   - Development server port
  LOG_LEVEL              - Root log level
  M77_JSON_LOGS          - Any non-empty value switches console logs to JSON

Security:
  - Sensitive values are never logged in full (masked)
  - Validate on startup, warn about missing required settings
"""

import os
import logging

log = logging.getLogger("m77ag.config")

# ─── Setting Definitions ────────────────────────────────────────────────────

_REGISTRY = {
    "admin_password": {
        "env": "M77_ADMIN_PASSWORD",
        "required": True,
        "desc": "Admin password for the proposal list",
        "default": "M77admin2024!",
        "sensitive": True,
    },
    "secret_key": {
        "env": "SECRET_KEY",
        "required": False,
        "desc": "Flask secret key",
        "default": "m77ag-dev",
        "sensitive": True,
    },
    "data_dir": {
        "env": "M77_DATA_DIR",
        "required": False,
        "desc": "Directory for database files",
    },
    "db_file": {
        "env": "M77_DB_FILE",
        "required": False,
        "desc": "Proposal database filename",
        "default": "farming_proposals.db",
    },
    "extra_databases": {
        "env": "M77_EXTRA_DATABASES",
        "required": False,
        "desc": "Additional project databases (name=file, comma separated)",
    },
    "port": {
        "env": "PORT",
        "required": False,
        "desc": "HTTP port for the development server",
        "default": "3000",
    },
    "log_level": {
        "env": "LOG_LEVEL",
        "required": False,
        "desc": "Log level",
        "default": "INFO",
    },
    "json_logs": {
        "env": "M77_JSON_LOGS",
        "required": False,
        "desc": "Emit JSON console logs",
    },
}


# ─── Public API ──────────────────────────────────────────────────────────────

def get_setting(name: str) -> str:
    """Get a setting by registry name. Returns empty string if not set."""
    entry = _REGISTRY.get(name)
    if not entry:
        log.warning("Unknown setting requested: %s", name)
        return ""

    val = os.environ.get(entry["env"], "")
    if not val and "default" in entry:
        val = entry["default"]
    return val


def get_port() -> int:
    try:
        return int(get_setting("port"))
    except ValueError:
        log.warning("Invalid PORT %r, using 3000", get_setting("port"))
        return 3000


def parse_extra_databases(raw: str = None) -> dict:
    """Parse "inventory=inventory.db,customers=customers.db" into {name: filename}."""
    if raw is None:
        raw = get_setting("extra_databases")
    result = {}
    for part in (raw or "").split(","):
        part = part.strip()
        if not part:
            continue
        name, sep, filename = part.partition("=")
        name, filename = name.strip(), filename.strip()
        if not sep or not name or not filename:
            log.warning("Ignoring malformed database entry: %r", part)
            continue
        result[name] = filename
    return result


def mask(value: str) -> str:
    """Mask a secret for safe logging."""
    if not value:
        return "(not set)"
    if len(value) <= 12:
        return value[:2] + "****"
    return value[:4] + "****" + f"({len(value)} chars)"


def validate_all() -> dict:
    """Validate all settings. Returns status report."""
    results = {}
    warnings = []
    for name, entry in _REGISTRY.items():
        val = get_setting(name)
        is_set = bool(val)
        results[name] = {
            "set": is_set,
            "env": entry["env"],
            "desc": entry["desc"],
            "value": mask(val) if entry.get("sensitive") else (val or "(not set)"),
            "required": entry.get("required", False),
            "from_default": is_set and not os.environ.get(entry["env"]),
        }
        if entry.get("required") and not is_set:
            warnings.append(f"REQUIRED setting missing: {entry['env']} ({entry['desc']})")
        if entry.get("sensitive") and results[name]["from_default"]:
            warnings.append(f"{entry['env']} is using the built-in default")

    return {
        "settings": results,
        "total": len(results),
        "set": sum(1 for r in results.values() if r["set"]),
        "missing": sum(1 for r in results.values() if not r["set"]),
        "warnings": warnings,
    }


def startup_check():
    """Run on startup. Logs warnings for missing or defaulted settings."""
    report = validate_all()
    log.info("Settings: %d/%d configured", report["set"], report["total"])
    for w in report["warnings"]:
        log.warning("CONFIG: %s", w)
    return report
