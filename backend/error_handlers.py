"""Translate errors into response envelopes.

ValidationError -> 400, UpstreamError / AggregationError -> 502,
request deadline exceeded -> 504, anything else -> 500 without internal details.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.models.responses import error_envelope, success_envelope
from defi_pulse.config import load_config
from defi_pulse.data_collection.models import as_payload
from defi_pulse.utils.decorators import timeout
from defi_pulse.utils.errors import AggregationError, DefiPulseError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)


def status_for(exc: Exception) -> int:
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, (UpstreamError, AggregationError)):
        return status.HTTP_502_BAD_GATEWAY
    if isinstance(exc, TimeoutError):
        return status.HTTP_504_GATEWAY_TIMEOUT
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def respond(call: Callable[[], Awaitable[Any]], failure: str) -> Any:
    """Run one service call under the request deadline and wrap its outcome.

    Args:
        call: zero-argument callable returning the service coroutine
        failure: the ``error`` text used when the call fails
    """
    deadline = timeout(load_config().request_timeout)(call)
    try:
        result = await deadline()
    except (DefiPulseError, TimeoutError) as exc:
        code = status_for(exc)
        log = logger.warning if code < 500 else logger.error
        log(f"{failure}: {exc}", extra={"status_code": code})
        return JSONResponse(status_code=code, content=error_envelope(failure, str(exc)))
    return success_envelope(as_payload(result))


def register_error_handlers(app: FastAPI) -> None:
    """Register global handlers for request validation and unexpected errors."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        details = [
            {
                "field": ".".join(str(loc) for loc in e["loc"]),
                "message": e["msg"],
                "type": e["type"],
            }
            for e in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_envelope("Invalid request", "Request validation failed", details),
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope("Internal error", "An unexpected error occurred"),
        )
