# hr_compliance/core/errors.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from hr_compliance.services.periods import InvalidPeriodIdentifier

log = logging.getLogger("hr_compliance.errors")

REQUEST_ID_HEADER = "X-Request-ID"


def request_trace_id(request: Request) -> str:
    """
    The id used to correlate logs and the error body for one request:
    the middleware's value, else the caller's X-Request-ID, else a new one.
    """
    trace_id = getattr(request.state, "trace_id", None) or request.headers.get(REQUEST_ID_HEADER)
    if not trace_id:
        trace_id = uuid.uuid4().hex
    request.state.trace_id = trace_id
    return str(trace_id)


def error_response(
    request: Request,
    *,
    status: int,
    typ: str,
    message: str,
    details: Optional[Any] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """
    Error envelope shared by every handler:
        {"ok": false, "error": {type, message, status, trace_id[, details]}}
    """
    trace_id = request_trace_id(request)
    error = {"type": typ, "message": message, "status": status, "trace_id": trace_id}
    if details is not None:
        error["details"] = jsonable_encoder(details)

    out_headers = dict(headers or {})
    out_headers[REQUEST_ID_HEADER] = trace_id
    return JSONResponse(status_code=status, content={"ok": False, "error": error}, headers=out_headers)


def _where(request: Request) -> str:
    return f"{request.method} {request.url.path}"


# ---- Handlers ----------------------------------------------------------------
async def _on_http_exception(request: Request, exc: HTTPException):
    status = int(exc.status_code)
    log.log(
        logging.ERROR if status >= 500 else logging.WARNING,
        "%s -> %s | %r",
        _where(request),
        status,
        exc.detail,
    )
    return error_response(
        request,
        status=status,
        typ="http_error",
        message=exc.detail if isinstance(exc.detail, str) else "HTTP error",
        details=exc.detail if isinstance(exc.detail, dict) else None,
        headers=exc.headers,
    )


async def _on_validation_error(request: Request, exc: RequestValidationError):
    log.warning("%s -> 422 | %s", _where(request), exc.errors())
    return error_response(
        request,
        status=422,
        typ="validation_error",
        message="Validation failed.",
        details=exc.errors(),
    )


async def _on_invalid_period(request: Request, exc: InvalidPeriodIdentifier):
    log.warning("%s -> 422 | %s", _where(request), exc)
    return error_response(
        request,
        status=422,
        typ="invalid_period",
        message=str(exc),
        details={"identifier": str(exc.identifier), "reason": exc.reason},
    )


async def _on_store_error(request: Request, exc: SQLAlchemyError):
    # routes translate the failures they expect; this catches the rest
    log.exception("%s -> 503 | compliance store unavailable", _where(request))
    return error_response(
        request,
        status=503,
        typ="store_unavailable",
        message="Compliance data store unavailable.",
    )


async def _on_unhandled(request: Request, exc: Exception):
    log.exception("%s -> 500 | unhandled", _where(request))
    return error_response(request, status=500, typ="internal_error", message="Internal server error.")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, _on_http_exception)
    app.add_exception_handler(RequestValidationError, _on_validation_error)
    app.add_exception_handler(InvalidPeriodIdentifier, _on_invalid_period)
    app.add_exception_handler(SQLAlchemyError, _on_store_error)
    app.add_exception_handler(Exception, _on_unhandled)
