"""Tests for the structlog processors that shape every log line."""

from fdwcatalog.core.redaction import REDACTED
from fdwcatalog.core.structured_logging import _inject_context, _mask_credentials, workspace_id_var


def test_credential_keys_are_masked():
    event = _mask_credentials(None, "info", {"event": "x", "password": "secret123", "api_key": "sk", "host": "db1"})
    assert event["password"] == REDACTED
    assert event["api_key"] == REDACTED
    assert event["host"] == "db1"
    assert event["event"] == "x"


def test_workspace_bound_from_context():
    token = workspace_id_var.set("ws-0001")
    try:
        event = _inject_context(None, "info", {"event": "x"})
    finally:
        workspace_id_var.reset(token)
    assert event["workspace_id"] == "ws-0001"
    assert event["service"] == "fdwcatalog"


def test_explicit_workspace_wins():
    token = workspace_id_var.set("ws-0001")
    try:
        event = _inject_context(None, "info", {"event": "x", "workspace_id": "ws-0002"})
    finally:
        workspace_id_var.reset(token)
    assert event["workspace_id"] == "ws-0002"
