"""HTTP mapping for the shared error taxonomy.

Routes and dependencies normally translate domain errors into
``HTTPException`` themselves. These handlers cover anything from the
taxonomy that escapes a route.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from shared_kernel.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ClientError,
    DownstreamError,
)
from shared_kernel.middleware.request_context import REQUEST_CONTEXT_STATE_KEY


def _correlation_id(request: Request) -> str | None:
    context = getattr(request.state, REQUEST_CONTEXT_STATE_KEY, None)
    return context.correlation_id if context is not None else None


def _logger(request: Request) -> structlog.stdlib.BoundLogger:
    context = getattr(request.state, REQUEST_CONTEXT_STATE_KEY, None)
    return context.logger if context is not None else structlog.get_logger()


async def handle_client_error(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)},
    )


async def handle_authentication_error(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def handle_authorization_error(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"detail": str(exc)},
    )


async def handle_downstream_error(request: Request, exc: Exception) -> JSONResponse:
    """Log the failure with full context and return a generic body."""
    _logger(request).error(
        "downstream_error",
        error=str(exc),
        error_type=type(exc).__name__,
        operation=getattr(exc, "operation", None),
        path=request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "correlation_id": _correlation_id(request),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the taxonomy handlers on ``app``."""
    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(AuthenticationError, handle_authentication_error)
    app.add_exception_handler(AuthorizationError, handle_authorization_error)
    app.add_exception_handler(DownstreamError, handle_downstream_error)
