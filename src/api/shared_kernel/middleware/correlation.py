"""Correlation id propagation.

Each request gets a correlation id: the caller's ``x-request-id`` (or
``x-correlation-id``) when it is usable, a fresh UUID4 otherwise. The id is
bound to the request's logger and echoed on the response under both header
names. Headers are written before the response is handed back to the
server; nothing touches them afterwards. An exception no handler mapped is
logged with the correlation id and answered with a generic 500 that still
carries both headers.
"""

from __future__ import annotations

import re
from uuid import uuid4

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from shared_kernel.middleware.request_context import (
    RequestContext,
    attach_request_context,
    get_request_context,
)

REQUEST_ID_HEADER = "x-request-id"
CORRELATION_ID_HEADER = "x-correlation-id"

MAX_CORRELATION_ID_LENGTH = 128

# Visible ASCII only; rejects whitespace and control characters
_CORRELATION_ID_PATTERN = re.compile(r"^[\x21-\x7e]+$")


def is_valid_correlation_id(value: str | None) -> bool:
    """True if ``value`` can be echoed back and written to logs as-is."""
    if not value or len(value) > MAX_CORRELATION_ID_LENGTH:
        return False
    return _CORRELATION_ID_PATTERN.match(value) is not None


def new_correlation_id() -> str:
    return str(uuid4())


def extract_correlation_id(request: Request) -> str:
    """Return the caller-supplied correlation id, or generate a new one.

    ``x-request-id`` wins over ``x-correlation-id``. An unusable value is
    replaced rather than rejected.
    """
    for header in (REQUEST_ID_HEADER, CORRELATION_ID_HEADER):
        value = request.headers.get(header)
        if value is not None:
            value = value.strip()
            if is_valid_correlation_id(value):
                return value
    return new_correlation_id()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Creates the RequestContext and echoes the correlation id.

    Must be the outermost application middleware so every other component
    sees the context.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = extract_correlation_id(request)
        context = RequestContext(correlation_id=correlation_id)
        attach_request_context(request, context)

        try:
            response = await call_next(request)
        except Exception as e:
            context.logger.exception(
                "unhandled_error",
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
            )
            response = JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "detail": "Internal server error",
                    "correlation_id": correlation_id,
                },
            )

        response.headers[REQUEST_ID_HEADER] = correlation_id
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response


def get_correlation_id(request: Request) -> str:
    """FastAPI dependency returning the current request's correlation id."""
    return get_request_context(request).correlation_id
