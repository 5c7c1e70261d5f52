"""Unit tests for CredentialService issue and validate.

Covers signature and expiry checks, role normalization and the tenant-match
check that keeps a credential issued for one clinic from being accepted by
another.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from jose import jwt

from shared_kernel.auth import (
    CredentialProbe,
    CredentialService,
    InMemoryRefreshTokenStore,
)
from shared_kernel.auth.credentials import normalize_roles
from shared_kernel.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InvalidCredentialError,
    TenantMismatchError,
)

TEST_SECRET = "unit-test-secret-key-0123456789abcdef"
OTHER_SECRET = "another-unit-test-secret-0123456789xyz"


@pytest.fixture
def mock_probe() -> MagicMock:
    return MagicMock(spec=CredentialProbe)


@pytest.fixture
def service(mock_probe: MagicMock) -> CredentialService:
    return CredentialService(
        secret_key=TEST_SECRET,
        refresh_store=InMemoryRefreshTokenStore(),
        probe=mock_probe,
    )


def _sign(claims: dict, secret: str = TEST_SECRET) -> str:
    now = int(datetime.now(timezone.utc).timestamp())
    payload = {"iat": now, "exp": now + 3600, "type": "access", **claims}
    return jwt.encode(payload, secret, algorithm="HS256")


class TestCredentialServiceConstruction:
    def test_rejects_empty_secret(self):
        with pytest.raises(ValueError, match="secret_key"):
            CredentialService(secret_key="", refresh_store=InMemoryRefreshTokenStore())


class TestIssue:
    """Tests for CredentialService.issue()."""

    def test_issue_then_validate_returns_principal(self, service, mock_probe):
        credential = service.issue(
            subject="u1", tenant_id="CLINICA_1", roles=("admin", "user")
        )

        principal = service.validate(credential.token)

        assert principal.subject == "u1"
        assert principal.tenant_id == "CLINICA_1"
        assert principal.roles == ("admin", "user")
        assert principal.credential_id == credential.credential_id
        mock_probe.credential_issued.assert_called_once_with(
            subject="u1", tenant_id="CLINICA_1"
        )

    def test_embeds_clinic_claim(self, service):
        credential = service.issue(subject="u1", tenant_id="CLINICA_1")

        claims = jwt.get_unverified_claims(credential.token)

        assert claims["clinicId"] == "CLINICA_1"
        assert claims["type"] == "access"

    def test_trims_tenant_before_embedding(self, service):
        credential = service.issue(subject="u1", tenant_id="  CLINICA_1 ")

        assert jwt.get_unverified_claims(credential.token)["clinicId"] == "CLINICA_1"

    def test_omits_clinic_claim_without_tenant(self, service):
        credential = service.issue(subject="u1")

        assert "clinicId" not in jwt.get_unverified_claims(credential.token)

    def test_rejects_blank_subject(self, service):
        with pytest.raises(ValueError, match="subject"):
            service.issue(subject="  ")

    def test_rejects_blank_tenant(self, service):
        with pytest.raises(ValueError):
            service.issue(subject="u1", tenant_id=" ")

    def test_expiry_follows_configured_ttl(self, clock):
        service = CredentialService(
            secret_key=TEST_SECRET,
            refresh_store=InMemoryRefreshTokenStore(),
            access_token_ttl=timedelta(minutes=15),
            clock=clock,
        )

        credential = service.issue(subject="u1")

        assert credential.expires_at == clock.now + timedelta(minutes=15)
        assert credential.expires_in(now=clock.now) == 15 * 60

    def test_each_credential_has_unique_id(self, service):
        first = service.issue(subject="u1")
        second = service.issue(subject="u1")

        assert first.credential_id != second.credential_id
        assert first.token != second.token


class TestValidate:
    """Tests for CredentialService.validate()."""

    def test_rejects_credential_signed_with_other_secret(self, service, mock_probe):
        other = CredentialService(
            secret_key=OTHER_SECRET, refresh_store=InMemoryRefreshTokenStore()
        )
        token = other.issue(subject="u1").token

        with pytest.raises(InvalidCredentialError, match="signature"):
            service.validate(token)

        mock_probe.credential_validation_failed.assert_called_once_with(
            reason="Invalid signature"
        )

    def test_rejects_expired_credential(self):
        """A credential issued two hours ago with a one-hour ttl has expired."""
        issued_at = datetime.now(timezone.utc) - timedelta(hours=2)
        service = CredentialService(
            secret_key=TEST_SECRET,
            refresh_store=InMemoryRefreshTokenStore(),
            clock=lambda: issued_at,
        )
        token = service.issue(subject="u1").token

        with pytest.raises(InvalidCredentialError, match="expired"):
            service.validate(token)

    def test_rejects_garbage(self, service):
        with pytest.raises(InvalidCredentialError):
            service.validate("not-a-jwt")

    def test_rejects_empty_token(self, service):
        with pytest.raises(InvalidCredentialError, match="empty"):
            service.validate("")

    def test_rejects_non_access_token_type(self, service):
        token = _sign({"sub": "u1", "type": "refresh"})

        with pytest.raises(InvalidCredentialError, match="access token"):
            service.validate(token)

    def test_rejects_missing_subject(self, service):
        with pytest.raises(InvalidCredentialError):
            service.validate(_sign({}))

    def test_rejects_malformed_clinic_claim(self, service):
        token = _sign({"sub": "u1", "clinicId": 42})

        with pytest.raises(InvalidCredentialError, match="clinicId"):
            service.validate(token)

    def test_folds_legacy_role_claim(self, service):
        """Older credentials carry a scalar ``role``; it joins the roles tuple."""
        token = _sign({"sub": "u1", "role": "admin", "roles": ["user"]})

        principal = service.validate(token)

        assert principal.roles == ("user", "admin")

    def test_verifies_issuer_when_configured(self):
        service = CredentialService(
            secret_key=TEST_SECRET,
            refresh_store=InMemoryRefreshTokenStore(),
            issuer="clinic-api",
        )

        with pytest.raises(InvalidCredentialError):
            service.validate(_sign({"sub": "u1", "iss": "someone-else"}))

        token = service.issue(subject="u1").token
        assert service.validate(token).subject == "u1"


class TestValidateTenantMatch:
    """Tests for the expected-tenant check in validate()."""

    def test_accepts_matching_tenant(self, service):
        token = service.issue(subject="u1", tenant_id="C1").token

        principal = service.validate(token, expected_tenant_id="C1")

        assert principal.tenant_id == "C1"

    def test_rejects_credential_for_other_clinic(self, service, mock_probe):
        """A credential for clinic C1 presented for C2 is an authorization failure."""
        token = service.issue(subject="u1", tenant_id="C1").token

        with pytest.raises(TenantMismatchError) as exc_info:
            service.validate(token, expected_tenant_id="C2")

        assert isinstance(exc_info.value, AuthorizationError)
        assert not isinstance(exc_info.value, AuthenticationError)
        assert exc_info.value.expected_tenant_id == "C2"
        assert exc_info.value.credential_tenant_id == "C1"
        mock_probe.tenant_mismatch.assert_called_once_with(
            subject="u1", expected_tenant_id="C2", credential_tenant_id="C1"
        )
        mock_probe.credential_validated.assert_not_called()

    def test_tenantless_credential_never_matches(self, service):
        token = service.issue(subject="u1").token

        with pytest.raises(TenantMismatchError):
            service.validate(token, expected_tenant_id="C1")

    def test_tenant_comparison_is_case_sensitive(self, service):
        token = service.issue(subject="u1", tenant_id="C1").token

        with pytest.raises(TenantMismatchError):
            service.validate(token, expected_tenant_id="c1")

    def test_expected_tenant_is_trimmed(self, service):
        token = service.issue(subject="u1", tenant_id="C1").token

        assert service.validate(token, expected_tenant_id=" C1 ").tenant_id == "C1"

    def test_without_expected_tenant_any_clinic_is_accepted(self, service):
        token = service.issue(subject="u1", tenant_id="C1").token

        assert service.validate(token).tenant_id == "C1"


class TestNormalizeRoles:
    """Tests for normalize_roles()."""

    def test_deduplicates_preserving_order(self):
        assert normalize_roles({"roles": ["user", "admin", "user"]}) == ("user", "admin")

    def test_accepts_scalar_roles_claim(self):
        assert normalize_roles({"roles": "admin"}) == ("admin",)

    def test_legacy_role_not_duplicated(self):
        assert normalize_roles({"roles": ["admin"], "role": "admin"}) == ("admin",)

    def test_missing_claims_yield_no_roles(self):
        assert normalize_roles({}) == ()

    @pytest.mark.parametrize(
        "claims", [{"roles": [1, 2]}, {"roles": {"a": 1}}, {"role": ["admin"]}]
    )
    def test_rejects_malformed_claims(self, claims):
        with pytest.raises(InvalidCredentialError):
            normalize_roles(claims)
