"""Unit tests for structlog configuration."""

import pytest
import structlog

from infrastructure.logging import REDACTED, configure_logging, redact_sensitive_fields


@pytest.fixture(autouse=True)
def restore_structlog():
    yield
    structlog.reset_defaults()


def test_rejects_unknown_level():
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging("CHATTY")


def test_filters_below_configured_level(capsys):
    configure_logging("WARNING")
    logger = structlog.get_logger()

    logger.info("patient_listed")
    logger.warning("tenant_context_header_missing")

    output = capsys.readouterr().out
    assert "patient_listed" not in output
    assert "tenant_context_header_missing" in output


class TestRedactSensitiveFields:
    def test_masks_credential_values(self):
        event = {
            "event": "login_attempted",
            "password": "hunter22",
            "refresh_token": "abc",
            "email": "ana@clinic.test",
        }

        result = redact_sensitive_fields(None, "info", event)

        assert result["password"] == REDACTED
        assert result["refresh_token"] == REDACTED
        assert result["email"] == "ana@clinic.test"

    def test_keeps_none_values(self):
        result = redact_sensitive_fields(None, "info", {"event": "x", "token": None})

        assert result["token"] is None

    def test_configured_output_never_contains_secret(self, capsys, monkeypatch):
        monkeypatch.delenv("FORCE_COLOR", raising=False)
        configure_logging("INFO")

        structlog.get_logger().info("credential_refresh_failed", refresh_token="s3cr3t-value")

        output = capsys.readouterr().out
        assert "credential_refresh_failed" in output
        assert "s3cr3t-value" not in output
