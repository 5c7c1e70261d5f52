"""Prometheus metrics for the HTTP surface.

Each application owns a ``CollectorRegistry`` so several apps (one per test)
never collide on metric names. ``MetricsMiddleware`` times every request
except the scrape itself, labelled by route template rather than raw path
so patient ids never become label values.
"""

from __future__ import annotations

import time

from fastapi import Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

METRICS_PATH = "/metrics"

# Label for requests no route matched (404s, scanners)
UNMATCHED_ROUTE = "unmatched"


class HttpMetrics:
    """Request duration histogram and login counters."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "Duration of HTTP requests in seconds",
            ["method", "route", "code"],
            registry=self.registry,
        )
        self.login_attempts = Counter(
            "login_attempts",
            "Login attempts",
            registry=self.registry,
        )
        self.login_failures = Counter(
            "login_failures",
            "Rejected login attempts",
            registry=self.registry,
        )

    def observe_request(
        self, method: str, route: str, status_code: int, duration: float
    ) -> None:
        self.request_duration.labels(
            method=method, route=route, code=str(status_code)
        ).observe(duration)

    def login_attempted(self) -> None:
        self.login_attempts.inc()

    def login_failed(self) -> None:
        self.login_failures.inc()

    def render(self) -> Response:
        """Current samples in the Prometheus text exposition format."""
        return Response(
            content=generate_latest(self.registry),
            media_type=CONTENT_TYPE_LATEST,
        )


def get_http_metrics(request: Request) -> HttpMetrics:
    """Get the application's HttpMetrics (FastAPI dependency)."""
    return request.app.state.metrics


def route_template(request: Request) -> str:
    """Path template of the matched route, e.g. ``/patients/{patient_id}``."""
    route = request.scope.get("route")
    return getattr(route, "path", UNMATCHED_ROUTE)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Records one duration sample per request.

    A request that raises is recorded as a 500 before the error propagates.
    """

    def __init__(self, app: ASGIApp, metrics: HttpMetrics) -> None:
        super().__init__(app)
        self._metrics = metrics

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path == METRICS_PATH:
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._record(request, 500, started)
            raise

        self._record(request, response.status_code, started)
        return response

    def _record(self, request: Request, status_code: int, started: float) -> None:
        self._metrics.observe_request(
            method=request.method,
            route=route_template(request),
            status_code=status_code,
            duration=time.perf_counter() - started,
        )
