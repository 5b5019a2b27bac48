"""Service for issuing guest capability tokens."""

from __future__ import annotations

import secrets

TOKEN_BYTES = 32  # 256 bits


def issue_token() -> str:
    """Return a fresh URL-safe capability token with 256 bits of entropy."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def capability_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/availability-request/{token}"


def redact(token: str) -> str:
    """Shorten a token for log output."""
    return f"{token[:6]}…" if len(token) > 6 else "…"
