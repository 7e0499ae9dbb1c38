"""Tests for the error registry and the exception hierarchy."""

import pytest

from fdwcatalog.core.errors import (
    ConfigurationError,
    FdwCatalogError,
    Forbidden,
    NotFound,
    ReconciliationRequired,
    TransactionFailure,
    ValidationError,
)
from fdwcatalog.core.errors.registry import ErrorRegistry, RegistryValidationError, error_registry


@pytest.mark.parametrize(
    "error_cls,status",
    [
        (ValidationError, 422),
        (ConfigurationError, 500),
        (NotFound, 404),
        (Forbidden, 403),
        (TransactionFailure, 500),
        (ReconciliationRequired, 500),
        (FdwCatalogError, 500),
    ],
)
def test_every_error_is_registered(error_cls, status):
    entry = error_registry.lookup(error_cls.default_code)
    assert entry.http_status == status


def test_transaction_failure_is_retryable_but_reconciliation_is_not():
    assert error_registry.lookup("FDW-TXN-001").retryable is True
    assert error_registry.lookup("FDW-TXN-002").retryable is False


def test_lookup_unknown_code():
    with pytest.raises(KeyError):
        error_registry.lookup("FDW-XXX-999")
    assert error_registry.get("FDW-XXX-999") is None


def test_invalid_code_format_rejected():
    with pytest.raises(ValueError):
        NotFound("x", code="not-a-code")


def test_error_carries_context():
    exc = Forbidden("blocked", context={"remote_table_count": 2})
    assert exc.code == "FDW-DEP-001"
    assert exc.context == {"remote_table_count": 2}
    assert str(exc) == "FDW-DEP-001: blocked"


def test_registry_rejects_domain_mismatch(tmp_path):
    path = tmp_path / "registry.yaml"
    path.write_text(
        "schema_version: 1\n"
        "errors:\n"
        "  - code: FDW-SRV-001\n"
        "    domain: DEP\n"
        "    title: t\n"
        "    severity: INFO\n"
        "    retryable: false\n"
        "    http_status: 404\n"
        "    safe_message: m\n"
        "    remediation: []\n"
    )
    with pytest.raises(RegistryValidationError):
        ErrorRegistry().load(str(path))


def test_registry_rejects_missing_fields(tmp_path):
    path = tmp_path / "registry.yaml"
    path.write_text("schema_version: 1\nerrors:\n  - code: FDW-SRV-001\n")
    with pytest.raises(RegistryValidationError):
        ErrorRegistry().load(str(path))


def test_every_exception_code_is_registered():
    error_registry.ensure_registered()


def test_ensure_registered_reports_missing_codes():
    with pytest.raises(RegistryValidationError):
        error_registry.ensure_registered(["FDW-SRV-001", "FDW-SRV-999"])


def test_unregistered_code_falls_back_to_internal_error():
    entry = error_registry.for_exception(NotFound("x", code="FDW-SRV-999"))
    assert entry.code == "FDW-SYS-001"
    assert entry.http_status == 500


def test_registry_rejects_non_error_status(tmp_path):
    path = tmp_path / "registry.yaml"
    path.write_text(
        "schema_version: 1\n"
        "errors:\n"
        "  - code: FDW-SRV-001\n"
        "    domain: SRV\n"
        "    title: t\n"
        "    severity: INFO\n"
        "    retryable: false\n"
        "    http_status: 200\n"
        "    safe_message: m\n"
        "    remediation: []\n"
    )
    with pytest.raises(RegistryValidationError):
        ErrorRegistry().load(str(path))
