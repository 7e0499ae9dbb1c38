"""
Error code system for the remote server catalog.

FdwCatalogError is the base exception for all structured errors. Each
subclass carries a default code from registry.yaml; the error middleware
turns any of them into a structured JSON response.

Usage:
    from fdwcatalog.core.errors import NotFound
    raise NotFound("Remote server does not exist", context={"remote_server_id": id})

Credential values must never be placed in ``detail`` or ``context``.
"""

from __future__ import annotations

import re

CODE_PATTERN = re.compile(r"^FDW-[A-Z]{2,6}-\d{3}$")


class FdwCatalogError(Exception):
    """Structured application error tied to the error registry.

    Args:
        detail: Internal-only detail message (never exposed to users).
        code: Registry error code, e.g. "FDW-SRV-001". Defaults to the
            subclass's ``default_code``.
        context: Arbitrary key-value context for structured logging.
    """

    default_code = "FDW-SYS-001"

    def __init__(
        self,
        detail: str | None = None,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        code = code or self.default_code
        if not CODE_PATTERN.match(code):
            raise ValueError(f"Invalid error code format: {code!r}")
        self.code = code
        self.detail = detail
        self.context = context or {}
        super().__init__(f"{code}: {detail}" if detail else code)


class ValidationError(FdwCatalogError):
    """Input contains injection-risk content or is structurally invalid."""

    default_code = "FDW-VAL-001"


class ConfigurationError(FdwCatalogError):
    """A required secret or setting is missing."""

    default_code = "FDW-CFG-001"


class NotFound(FdwCatalogError):
    """The record does not exist within the caller's workspace."""

    default_code = "FDW-SRV-001"


class Forbidden(FdwCatalogError):
    """The operation is blocked by live dependents."""

    default_code = "FDW-DEP-001"


class TransactionFailure(FdwCatalogError):
    """A step inside the transactional boundary failed; everything rolled back."""

    default_code = "FDW-TXN-001"


class ReconciliationRequired(FdwCatalogError):
    """The foreign object changed but the catalog commit did not.

    Only raised when the catalog database cannot roll back DDL. Operators
    must repair the foreign server out of band.
    """

    default_code = "FDW-TXN-002"
