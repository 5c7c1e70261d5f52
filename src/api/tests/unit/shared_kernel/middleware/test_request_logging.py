"""Unit tests for request logging middleware."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from structlog.testing import capture_logs

from shared_kernel.middleware import CorrelationIdMiddleware, RequestLoggingMiddleware


@pytest.fixture
def logging_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    @app.get("/patients")
    def patients() -> dict:
        return {"patients": []}

    @app.get("/boom")
    def boom() -> dict:
        raise RuntimeError("storage offline")

    return app


class TestRequestLoggingMiddleware:
    """Tests for RequestLoggingMiddleware."""

    def test_logs_completed_request(self, logging_app):
        with capture_logs() as logs:
            TestClient(logging_app).get(
                "/patients?name=Ana", headers={"x-request-id": "abc-1"}
            )

        completed = [log for log in logs if log["event"] == "http_request_completed"]
        assert len(completed) == 1
        event = completed[0]
        assert event["method"] == "GET"
        assert event["path"] == "/patients"
        assert event["status_code"] == 200
        assert event["correlation_id"] == "abc-1"
        assert event["duration_ms"] >= 0

    def test_never_logs_query_string(self, logging_app):
        """Query strings may carry patient data."""
        with capture_logs() as logs:
            TestClient(logging_app).get("/patients?name=Ana")

        assert all("Ana" not in str(log) for log in logs)

    def test_logs_failures_before_the_generic_500(self, logging_app):
        client = TestClient(logging_app, raise_server_exceptions=True)

        with capture_logs() as logs:
            response = client.get("/boom", headers={"x-request-id": "abc-500"})

        assert response.status_code == 500
        assert "storage offline" not in response.text

        failed = [log for log in logs if log["event"] == "http_request_failed"]
        assert len(failed) == 1
        assert failed[0]["path"] == "/boom"
        assert failed[0]["log_level"] == "error"
        assert failed[0]["correlation_id"] == "abc-500"

        unhandled = [log for log in logs if log["event"] == "unhandled_error"]
        assert len(unhandled) == 1
        assert unhandled[0]["error_type"] == "RuntimeError"
