"""Request logging middleware.

Logs one event when a request starts and one when it completes (or fails),
with method, path, status code and duration. Query strings and bodies are
never logged; they may carry patient data.
"""

from __future__ import annotations

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from shared_kernel.middleware.request_context import get_request_context


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs request lifecycle events through the request-bound logger.

    Must run inside ``CorrelationIdMiddleware``.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        context = get_request_context(request)
        method = request.method
        path = request.url.path
        started = time.perf_counter()

        context.logger.debug("http_request_started", method=method, path=path)

        try:
            response = await call_next(request)
        except Exception:
            context.logger.exception(
                "http_request_failed",
                method=method,
                path=path,
                duration_ms=_elapsed_ms(started),
            )
            raise

        # Re-read: dependencies bind tenant and user after dispatch starts
        context.logger.info(
            "http_request_completed",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=_elapsed_ms(started),
        )
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
