"""Small helpers shared by the HTTP client and its errors."""

from __future__ import annotations

from collections.abc import Mapping

REDACTED = "***REDACTED***"

_REQUEST_ID_HEADERS = ("x-request-id", "x-correlation-id", "request-id")


def safe_snippet(content: bytes | None, limit: int) -> str:
    """Decode at most ``limit`` bytes of a body for error messages."""
    if not content:
        return ""
    return content[:limit].decode("utf-8", errors="replace")


def redact_headers(headers: Mapping[str, str], sensitive: tuple[str, ...]) -> dict[str, str]:
    """Copy of ``headers`` with sensitive values masked (names compared case-insensitively)."""
    masked = {name.lower() for name in sensitive}
    return {k: (REDACTED if k.lower() in masked else v) for k, v in headers.items()}


def get_request_id(headers: Mapping[str, str]) -> str | None:
    """First tracing id found among the common request-id headers."""
    lowered = {k.lower(): v for k, v in headers.items()}
    for name in _REQUEST_ID_HEADERS:
        if lowered.get(name):
            return lowered[name]
    return None
