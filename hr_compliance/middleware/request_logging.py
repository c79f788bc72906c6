# hr_compliance/middleware/request_logging.py
from __future__ import annotations

import logging
import time
from typing import Iterable, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from hr_compliance.core.errors import REQUEST_ID_HEADER, request_trace_id

logger = logging.getLogger("hr_compliance.request")

# Probes and docs are noisy; they still get an X-Request-ID but no log line
QUIET_PREFIXES: Tuple[str, ...] = ("/api/healthz", "/api/readyz", "/docs", "/redoc", "/openapi.json")


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    One log line per request: method, path (with the ?at= override if any),
    status and duration, keyed by the request's trace id.
    """

    def __init__(self, app, quiet_prefixes: Iterable[str] = QUIET_PREFIXES):
        super().__init__(app)
        self.quiet_prefixes = tuple(quiet_prefixes)

    def _is_quiet(self, request: Request) -> bool:
        return request.method == "OPTIONS" or request.url.path.startswith(self.quiet_prefixes)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        trace_id = request_trace_id(request)
        quiet = self._is_quiet(request)
        at = request.query_params.get("at")
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            if not quiet:
                logger.exception(
                    "%s %s crashed after %dms trace_id=%s",
                    request.method,
                    request.url.path,
                    (time.perf_counter() - started) * 1000,
                    trace_id,
                )
            raise

        response.headers[REQUEST_ID_HEADER] = trace_id
        if not quiet:
            logger.log(
                _level_for(response.status_code),
                "%s %s%s -> %s %dms trace_id=%s",
                request.method,
                request.url.path,
                f" at={at}" if at else "",
                response.status_code,
                (time.perf_counter() - started) * 1000,
                trace_id,
            )
        return response
