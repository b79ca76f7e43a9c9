#!/usr/bin/env python3
"""
M77 AG - Application Entry Point
Creates the Flask app for WSGI servers and runs the development server.
"""

from m77ag.app import create_app, log_banner
from m77ag.core.config import get_port

# For gunicorn: gunicorn app:app
app = create_app()

if __name__ == "__main__":
    port = get_port()
    log_banner(app, port)
    app.run(host="0.0.0.0", port=port, debug=False)
