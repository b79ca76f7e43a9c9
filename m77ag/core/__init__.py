"""Shared data layer and configuration.

Modules:
    config          - Settings registry backed by environment variables
    paths           - Data directory resolution
    logging_config  - Console + rotating JSON file logging
    errors          - Store / lookup exception types
    db              - Owned SQLite handle with open/close lifecycle
    schema          - Idempotent table provisioning
    proposals       - Proposal CRUD and status transitions
    analytics       - Concurrent aggregate statistics
    router          - Named database registry + federated search
    auth            - Pluggable admin credential verification
"""
