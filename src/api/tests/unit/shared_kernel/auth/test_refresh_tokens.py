"""Unit tests for refresh token issue, exchange and revocation."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from shared_kernel.auth import (
    CredentialProbe,
    CredentialService,
    InMemoryRefreshTokenStore,
    Principal,
)
from shared_kernel.auth.refresh_tokens import hash_refresh_token
from shared_kernel.exceptions import InvalidRefreshTokenError

TEST_SECRET = "unit-test-secret-key-0123456789abcdef"


@pytest.fixture
def store() -> InMemoryRefreshTokenStore:
    return InMemoryRefreshTokenStore()


@pytest.fixture
def mock_probe() -> MagicMock:
    return MagicMock(spec=CredentialProbe)


@pytest.fixture
def service(store, mock_probe, clock) -> CredentialService:
    return CredentialService(
        secret_key=TEST_SECRET,
        refresh_store=store,
        refresh_token_ttl=timedelta(days=7),
        probe=mock_probe,
        clock=clock,
    )


@pytest.fixture
def principal() -> Principal:
    return Principal(subject="u1", roles=("user",), tenant_id="CLINICA_1")


class TestIssueRefreshToken:
    """Tests for CredentialService.issue_refresh_token()."""

    @pytest.mark.asyncio
    async def test_stores_only_the_hash(self, service, store, principal):
        token = await service.issue_refresh_token(principal)

        record = await store.get(hash_refresh_token(token))
        assert record is not None
        assert record.subject == "u1"
        assert record.tenant_id == "CLINICA_1"
        assert record.roles == ("user",)
        assert await store.get(token) is None

    @pytest.mark.asyncio
    async def test_tokens_are_unique(self, service, principal):
        first = await service.issue_refresh_token(principal)
        second = await service.issue_refresh_token(principal)

        assert first != second


class TestRefresh:
    """Tests for CredentialService.refresh()."""

    @pytest.mark.asyncio
    async def test_returns_new_credential_for_same_identity(
        self, service, principal, clock
    ):
        original = service.issue(subject="u1", tenant_id="CLINICA_1", roles=("user",))
        refresh_token = await service.issue_refresh_token(principal)
        clock.advance(seconds=5)

        refreshed = await service.refresh(refresh_token)

        assert refreshed.token != original.token
        assert refreshed.credential_id != original.credential_id
        assert refreshed.expires_at > original.expires_at
        principal_after = service.validate(refreshed.token)
        assert principal_after.subject == "u1"
        assert principal_after.tenant_id == "CLINICA_1"
        assert principal_after.roles == ("user",)

    @pytest.mark.asyncio
    async def test_refresh_token_can_be_reused(self, service, principal):
        """Refresh tokens are not rotated."""
        refresh_token = await service.issue_refresh_token(principal)

        await service.refresh(refresh_token)
        second = await service.refresh(refresh_token)

        assert second.token

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", [None, ""])
    async def test_missing_token_is_rejected(self, service, mock_probe, token):
        with pytest.raises(InvalidRefreshTokenError, match="required"):
            await service.refresh(token)

        mock_probe.refresh_failed.assert_called_once_with(reason="missing")

    @pytest.mark.asyncio
    async def test_unknown_token_leaves_store_unchanged(
        self, service, store, principal
    ):
        await service.issue_refresh_token(principal)
        before = len(store)

        with pytest.raises(InvalidRefreshTokenError, match="Invalid"):
            await service.refresh("not-a-real-token")

        assert len(store) == before

    @pytest.mark.asyncio
    async def test_expired_token_is_rejected_and_kept(
        self, service, store, principal, clock
    ):
        refresh_token = await service.issue_refresh_token(principal)
        clock.advance(days=8)

        with pytest.raises(InvalidRefreshTokenError, match="expired"):
            await service.refresh(refresh_token)

        assert await store.get(hash_refresh_token(refresh_token)) is not None


class TestRevokeRefreshToken:
    """Tests for CredentialService.revoke_refresh_token()."""

    @pytest.mark.asyncio
    async def test_revoked_token_can_no_longer_refresh(self, service, principal):
        refresh_token = await service.issue_refresh_token(principal)

        assert await service.revoke_refresh_token(refresh_token) is True

        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh(refresh_token)

    @pytest.mark.asyncio
    async def test_revoking_unknown_token_returns_false(self, service, mock_probe):
        assert await service.revoke_refresh_token("unknown") is False
        mock_probe.refresh_token_revoked.assert_called_once_with(revoked=False)
