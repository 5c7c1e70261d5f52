"""Unit tests for the single-shot tenant guard.

The guard runs at most once per request: a second run on the same
RequestContext returns the cached tenant or re-raises the recorded
failure without resolving again.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from shared_kernel.auth import Principal
from shared_kernel.exceptions import MissingTenantError
from shared_kernel.middleware.observability.tenant_context_probe import (
    TenantContextProbe,
)
from shared_kernel.middleware.request_context import RequestContext, TenantGuardState
from shared_kernel.middleware.tenant_guard import TenantGuard


@pytest.fixture
def mock_probe() -> MagicMock:
    """Create a mock tenant context probe that returns itself from with_context."""
    probe = MagicMock(spec=TenantContextProbe)
    probe.with_context.return_value = probe
    return probe


@pytest.fixture
def guard(mock_probe: MagicMock) -> TenantGuard:
    return TenantGuard(probe=mock_probe)


@pytest.fixture
def context() -> RequestContext:
    return RequestContext(correlation_id="corr-1")


class TestTenantGuardConstruction:
    """Tests for TenantGuard configuration."""

    def test_single_tenant_mode_requires_default(self):
        with pytest.raises(ValueError, match="default_tenant_id"):
            TenantGuard(single_tenant_mode=True, default_tenant_id=None)

    def test_default_is_ignored_outside_single_tenant_mode(self, context):
        """A configured default must not be substituted unless the mode is on."""
        guard = TenantGuard(single_tenant_mode=False, default_tenant_id="CLINICA_1")

        with pytest.raises(MissingTenantError):
            guard.resolve(context, {})

    def test_exposes_header_name(self):
        assert TenantGuard(header_name="x-tenant").header_name == "x-tenant"


class TestTenantGuardResolution:
    """Tests for the first run of the guard on a request."""

    def test_resolves_from_header_and_binds_context(self, guard, context, mock_probe):
        result = guard.resolve(context, {"x-clinic-id": "CLINICA_1"})

        assert result.tenant_id == "CLINICA_1"
        assert result.source == "header"
        assert context.tenant == result
        assert context.tenant_guard_state is TenantGuardState.RESOLVED
        mock_probe.tenant_resolved.assert_called_once_with(
            tenant_id="CLINICA_1", source="header"
        )

    def test_falls_back_to_bound_principal(self, guard, context):
        context.bind_principal(Principal(subject="u1", tenant_id="CLINICA_2"))

        result = guard.resolve(context, {})

        assert result.tenant_id == "CLINICA_2"
        assert result.source == "principal"

    def test_missing_tenant_marks_context_failed(self, guard, context, mock_probe):
        """Should record the failure on the context and notify the probe."""
        with pytest.raises(MissingTenantError):
            guard.resolve(context, {"x-clinic-id": "   "})

        assert context.tenant_guard_state is TenantGuardState.FAILED
        assert isinstance(context.tenant_guard_error, MissingTenantError)
        assert context.tenant is None
        mock_probe.tenant_header_missing.assert_called_once_with(
            header_name="x-clinic-id"
        )

    def test_single_tenant_mode_uses_default(self, mock_probe, context):
        guard = TenantGuard(
            single_tenant_mode=True,
            default_tenant_id=" CLINICA_1 ",
            probe=mock_probe,
        )

        result = guard.resolve(context, {})

        assert result.tenant_id == "CLINICA_1"
        assert result.source == "default"
        assert context.tenant_guard_state is TenantGuardState.RESOLVED

    def test_single_tenant_mode_still_prefers_header(self, mock_probe, context):
        guard = TenantGuard(
            single_tenant_mode=True,
            default_tenant_id="CLINICA_1",
            probe=mock_probe,
        )

        assert guard.resolve(context, {"x-clinic-id": "CLINICA_3"}).tenant_id == (
            "CLINICA_3"
        )


class TestTenantGuardRunsOnce:
    """Tests for repeated runs on the same request."""

    def test_second_run_returns_cached_tenant(self, guard, context, mock_probe):
        """Should not resolve again, even if the headers changed."""
        first = guard.resolve(context, {"x-clinic-id": "CLINICA_1"})

        with patch(
            "shared_kernel.middleware.tenant_guard.require_tenant_id"
        ) as mock_require:
            second = guard.resolve(context, {"x-clinic-id": "CLINICA_2"})

        assert second is first
        mock_require.assert_not_called()
        mock_probe.tenant_guard_replayed.assert_called_once_with(state="resolved")

    def test_second_run_replays_recorded_failure(self, guard, context, mock_probe):
        with pytest.raises(MissingTenantError) as first_error:
            guard.resolve(context, {})

        with pytest.raises(MissingTenantError) as second_error:
            guard.resolve(context, {"x-clinic-id": "CLINICA_1"})

        assert second_error.value is first_error.value
        assert context.tenant_guard_state is TenantGuardState.FAILED
        mock_probe.tenant_header_missing.assert_called_once()
        mock_probe.tenant_guard_replayed.assert_called_once_with(state="failed")

    def test_separate_requests_do_not_share_state(self, guard):
        """One guard instance serves many requests; state lives on each context."""
        failed = RequestContext(correlation_id="corr-a")
        with pytest.raises(MissingTenantError):
            guard.resolve(failed, {})

        other = RequestContext(correlation_id="corr-b")
        result = guard.resolve(other, {"x-clinic-id": "CLINICA_1"})

        assert result.tenant_id == "CLINICA_1"
        assert failed.tenant_guard_state is TenantGuardState.FAILED
