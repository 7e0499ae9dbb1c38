"""
FastAPI exception handler for FdwCatalogError.

The response carries the registry's safe message and the error context.
Context keys that name a credential are masked before they are logged or
returned; ``detail`` is logged only.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from fdwcatalog.core.errors import FdwCatalogError
from fdwcatalog.core.errors.registry import error_registry
from fdwcatalog.core.redaction import redact_options

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


async def fdwcatalog_error_handler(request: Request, exc: FdwCatalogError) -> JSONResponse:
    entry = error_registry.for_exception(exc)
    context = redact_options(exc.context)

    if entry.code != exc.code:
        logger.error("unregistered_error_code", extra={"error.code": exc.code})

    logger.log(
        _LOG_LEVELS.get(entry.severity, logging.ERROR),
        entry.title,
        extra={
            "error.code": exc.code,
            "error.kind": type(exc).__name__,
            "error.message": exc.detail,
            "http.method": request.method,
            "http.route": request.url.path,
            **{f"error.ctx.{k}": v for k, v in context.items()},
        },
    )

    return JSONResponse(
        status_code=entry.http_status,
        content={
            "error": {
                "code": entry.code,
                "title": entry.title,
                "message": entry.safe_message,
                "context": context,
                "retryable": entry.retryable,
                "remediation": entry.remediation,
            }
        },
    )
