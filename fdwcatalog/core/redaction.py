"""
Redaction of credential-bearing values before they reach a log line.

Key-based: any key whose name contains a sensitive substring is replaced.
Rendered SQL is never passed through here; callers log statement kinds only.
"""
from __future__ import annotations

from typing import Any, Mapping

_SENSITIVE_KEY_SUBSTRINGS = frozenset({
    "password", "passwd", "secret", "token", "apikey", "api_key",
    "authorization", "bearer", "private", "credential",
})

REDACTED = "[REDACTED]"


def is_sensitive_key(key: str) -> bool:
    """Check if a key name indicates a sensitive value."""
    lower = key.lower()
    return any(s in lower for s in _SENSITIVE_KEY_SUBSTRINGS)


def redact_options(options: Mapping[str, Any] | None) -> dict:
    """Return a copy of an option map with sensitive values replaced."""
    if not options:
        return {}
    return _redact(dict(options))


def _redact(obj: Any, parent_key: str = "") -> Any:
    if isinstance(obj, dict):
        return {k: _redact(v, k) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_redact(item, parent_key) for item in obj]
    if obj is not None and is_sensitive_key(parent_key):
        return REDACTED
    return obj
