"""
M77 AG - Farming Service Proposal System

Packages:
    api/        Flask routes for submission, admin, analytics and export
    forms/      CSV export and PDF quote sheets
    core/       Database handle, schema, proposal store, analytics, config, logging
"""

__version__ = "1.0.0"
