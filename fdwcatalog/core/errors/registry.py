"""
Error registry for remote server errors.

registry.yaml maps each FDW-* code to the HTTP status, severity and
caller-safe message the API answers with. The file is validated on load, and
at startup every FdwCatalogError subclass must have its default code
registered, so a new exception type cannot ship without a response shape.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import yaml

from fdwcatalog.core.errors import CODE_PATTERN, FdwCatalogError

logger = logging.getLogger(__name__)

VALID_DOMAINS = {"VAL", "CFG", "SRV", "DEP", "TXN", "SYS"}
VALID_SEVERITIES = {"DEBUG", "INFO", "WARN", "ERROR", "CRITICAL"}
REQUIRED_FIELDS = {"code", "domain", "title", "severity", "retryable", "http_status", "safe_message", "remediation"}

FALLBACK_CODE = FdwCatalogError.default_code


@dataclass(frozen=True)
class ErrorEntry:
    code: str
    domain: str
    title: str
    severity: str
    retryable: bool
    http_status: int
    safe_message: str
    remediation: List[str] = field(default_factory=list)


class RegistryValidationError(Exception):
    """Raised when registry.yaml has structural errors."""


def _parse_entry(idx: int, raw: Dict[str, Any]) -> ErrorEntry:
    missing = REQUIRED_FIELDS - set(raw)
    if missing:
        raise RegistryValidationError(
            f"Entry {idx} ({raw.get('code', '?')}): missing fields {sorted(missing)}"
        )

    code = raw["code"]
    if not CODE_PATTERN.match(code):
        raise RegistryValidationError(f"Invalid code format: {code!r}")

    domain = raw["domain"]
    if domain != code.split("-")[1]:
        raise RegistryValidationError(f"{code}: domain {domain!r} doesn't match code prefix")
    if domain not in VALID_DOMAINS:
        raise RegistryValidationError(f"{code}: unknown domain {domain!r}")
    if raw["severity"] not in VALID_SEVERITIES:
        raise RegistryValidationError(f"{code}: unknown severity {raw['severity']!r}")

    http_status = int(raw["http_status"])
    if not 400 <= http_status <= 599:
        raise RegistryValidationError(f"{code}: http_status {http_status} is not an error status")

    return ErrorEntry(
        code=code,
        domain=domain,
        title=raw["title"],
        severity=raw["severity"],
        retryable=bool(raw["retryable"]),
        http_status=http_status,
        safe_message=raw["safe_message"],
        remediation=list(raw["remediation"] or []),
    )


def _exception_codes() -> List[str]:
    """Default codes of FdwCatalogError and every subclass, depth first."""
    codes = []
    pending = [FdwCatalogError]
    while pending:
        cls = pending.pop()
        if cls.default_code not in codes:
            codes.append(cls.default_code)
        pending.extend(cls.__subclasses__())
    return codes


class ErrorRegistry:
    """Validated code -> ErrorEntry lookup."""

    def __init__(self) -> None:
        self._entries: Dict[str, ErrorEntry] = {}
        self.schema_version: int = 0

    def load(self, path: str | None = None) -> None:
        if path is None:
            path = os.path.join(os.path.dirname(__file__), "registry.yaml")

        with open(path, "r") as f:
            data = yaml.safe_load(f)

        errors_list = data.get("errors", [])
        if not isinstance(errors_list, list):
            raise RegistryValidationError("'errors' must be a list")

        entries: Dict[str, ErrorEntry] = {}
        for idx, raw in enumerate(errors_list):
            entry = _parse_entry(idx, raw)
            if entry.code in entries:
                raise RegistryValidationError(f"Duplicate code: {entry.code}")
            entries[entry.code] = entry

        self.schema_version = data.get("schema_version", 0)
        self._entries = entries
        logger.info("error_registry_loaded", extra={"count": len(entries), "schema_version": self.schema_version})

    def ensure_registered(self, codes: Optional[Iterable[str]] = None) -> None:
        """Fail unless every code (default: all exception default codes) is loaded."""
        wanted = list(codes) if codes is not None else _exception_codes()
        missing = [c for c in wanted if c not in self._entries]
        if missing:
            raise RegistryValidationError(f"Codes raised by the service are not registered: {missing}")

    def get(self, code: str) -> ErrorEntry | None:
        return self._entries.get(code)

    def lookup(self, code: str) -> ErrorEntry:
        """Lookup by code, raising KeyError if not found."""
        entry = self._entries.get(code)
        if entry is None:
            raise KeyError(f"Unknown error code: {code!r}")
        return entry

    def for_exception(self, exc: FdwCatalogError) -> ErrorEntry:
        """Entry for *exc*, or the generic internal error entry."""
        return self._entries.get(exc.code) or self.lookup(FALLBACK_CODE)


# Module-level singleton, loaded once at startup
error_registry = ErrorRegistry()
