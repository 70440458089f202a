"""
Security utilities: bearer header parsing, token key generation, log redaction.
"""

import base64
import secrets

from core.errors import AuthFailure

TOKEN_KEY_BYTES = 32


def generate_token_key() -> str:
    """Base64-encoded key from a secure amount of random bytes."""
    return base64.b64encode(secrets.token_bytes(TOKEN_KEY_BYTES)).decode("ascii")


def parse_bearer(authorization: str | None) -> str | None:
    """
    Key from an Authorization header, or None when there is no header.
    A header that is present but not "Bearer <key>" is an AuthFailure.
    """
    if authorization is None:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthFailure("Invalid access token format")
    return parts[1]


def is_safe_for_log(value: str | None, visible: int = 4) -> str:
    """Redact secrets before logging; keeps a short prefix for correlation."""
    if not value:
        return ""
    if len(value) <= visible:
        return "(redacted)"
    return value[:visible] + "…"
