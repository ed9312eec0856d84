"""Security helpers shared by the token and verification components.

Opaque tokens (refresh tokens, password reset tokens) are stored only as a
SHA-256 digest so a database leak does not yield usable credentials. Log
helpers never emit more than a short prefix of a token or the local part of
an email address.
"""

import hashlib
import secrets
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def generate_urlsafe_token(num_bytes: int = 32) -> str:
    """Generate a URL-safe random token (256 bits by default)."""
    return secrets.token_urlsafe(num_bytes)


def generate_hex_token(num_bytes: int = 32) -> str:
    """Generate a random hex token; 32 bytes yields 64 characters."""
    return secrets.token_hex(num_bytes)


def hash_token(token: str) -> str:
    """Return the hex SHA-256 digest used to look up an opaque token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def token_prefix(token: str, length: int = 8) -> str:
    """Return a loggable prefix of a token."""
    if not token:
        return ""
    return token[:length] + "..."


def mask_email(email: str) -> str:
    """Mask an email address for logs: ``alice@example.com`` -> ``al***@example.com``."""
    if not email or "@" not in email:
        return "***"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"
