"""
Admin credential verification.

The admin proposal list is gated by a CredentialVerifier. The default is a
single shared secret compared in constant time; a stronger scheme can be
swapped in through create_app(verifier=...) without touching the store.
"""

import secrets
import logging
import functools

from flask import request, jsonify, current_app

log = logging.getLogger("m77ag.auth")

ADMIN_HEADER = "X-Admin-Password"


class CredentialVerifier:
    """Interface: decide whether a caller-supplied credential is acceptable."""

    def verify(self, credential: str) -> bool:
        raise NotImplementedError


class SharedSecretVerifier(CredentialVerifier):
    """Accepts exactly one fixed secret."""

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("shared secret must not be empty")
        self._secret = secret

    def verify(self, credential: str) -> bool:
        if not credential:
            return False
        return secrets.compare_digest(credential.encode(), self._secret.encode())


def admin_required(f):
    """Reject the request with 401 unless the admin header verifies.

    Runs before the view, so no query executes on a mismatch.
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        verifier = current_app.extensions["m77ag"]["verifier"]
        if not verifier.verify(request.headers.get(ADMIN_HEADER, "")):
            log.warning("Unauthorized %s %s from %s",
                        request.method, request.path, request.remote_addr)
            return jsonify({"error": "Unauthorized"}), 401
        return f(*args, **kwargs)
    return decorated
