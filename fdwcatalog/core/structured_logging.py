"""
Structured logging with structlog.

JSON lines to stderr and a rotating file. Plain ``logging.getLogger()`` calls
go through the same processor chain, so service code logs with ``extra=``.

Every event is tagged with the workspace bound for the current request, and
any field whose key names a credential is masked before rendering.
"""
from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from contextvars import ContextVar

import structlog

from fdwcatalog import __version__
from fdwcatalog.core.redaction import REDACTED, is_sensitive_key

workspace_id_var: ContextVar[str | None] = ContextVar("workspace_id", default=None)

SERVICE_NAME = "fdwcatalog"

# Keys structlog itself sets; never treated as payload
_RESERVED_KEYS = frozenset({"event", "level", "logger", "ts", "service", "version"})


def _inject_context(logger_name: str, method_name: str, event_dict: dict) -> dict:
    event_dict["service"] = SERVICE_NAME
    event_dict["version"] = __version__
    wid = workspace_id_var.get(None)
    if wid and "workspace_id" not in event_dict:
        event_dict["workspace_id"] = wid
    return event_dict


def _mask_credentials(logger_name: str, method_name: str, event_dict: dict) -> dict:
    """Structlog processor: mask values under credential-like keys."""
    for key in list(event_dict):
        if key not in _RESERVED_KEYS and is_sensitive_key(key):
            event_dict[key] = REDACTED
    return event_dict


def setup_logging(
    log_dir: str = "logs",
    log_file: str = "fdwcatalog.jsonl",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    log_level: int | str = logging.INFO,
) -> None:
    """Initialize structlog + stdlib logging. Call once at startup."""
    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        _inject_context,
        _mask_credentials,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    try:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                os.path.join(log_dir, log_file),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )
    except OSError:
        # Read-only filesystem: stderr only
        pass

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    # Engine echo is controlled by settings.debug, not the root level
    for noisy in ("sqlalchemy.engine", "alembic"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
