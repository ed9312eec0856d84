from __future__ import annotations

"""Subpackage aggregating individual auth route modules."""

__all__ = [
    "register",
    "login",
    "tokens",
    "social",
    "passwords",
    "keys",
    "sessions",
]
