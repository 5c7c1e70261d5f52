"""Unit tests for UserAccountService (registration and bootstrap admin)."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from iam.application.observability import UserAccountServiceProbe
from iam.application.security import verify_password
from iam.application.services import UserAccountService
from iam.infrastructure.user_account_repository import InMemoryUserAccountRepository
from iam.ports.exceptions import DuplicateEmailError
from infrastructure.observability.startup_probe import StartupProbe
from shared_kernel.tenancy import TenantId


@pytest.fixture
def repository() -> InMemoryUserAccountRepository:
    return InMemoryUserAccountRepository()


@pytest.fixture
def mock_probe() -> MagicMock:
    return MagicMock(spec=UserAccountServiceProbe)


@pytest.fixture
def service(repository, mock_probe) -> UserAccountService:
    return UserAccountService(user_repository=repository, probe=mock_probe)


class TestRegister:
    """Tests for UserAccountService.register()."""

    @pytest.mark.asyncio
    async def test_stores_account_with_hashed_password(self, service, repository):
        account = await service.register(
            email="ana@clinic.test",
            password="s3cret-password",
            full_name="Ana",
            tenant_id=TenantId("CLINICA_1"),
        )

        stored = await repository.get_by_email("ana@clinic.test")
        assert stored == account
        assert stored.tenant_id == TenantId("CLINICA_1")
        assert stored.roles == ("user",)
        assert verify_password("s3cret-password", stored.password_hash)

    @pytest.mark.asyncio
    async def test_rejects_short_password(self, service, repository, mock_probe):
        with pytest.raises(ValueError, match="at least 8"):
            await service.register(
                email="ana@clinic.test", password="short", full_name="", tenant_id=None
            )

        assert len(repository) == 0
        mock_probe.registration_failed.assert_called_once_with(
            email="ana@clinic.test", reason="password_too_short"
        )

    @pytest.mark.asyncio
    async def test_rejects_duplicate_email_case_insensitively(self, service):
        await service.register(
            email="ana@clinic.test",
            password="s3cret-password",
            full_name="",
            tenant_id=None,
        )

        with pytest.raises(DuplicateEmailError):
            await service.register(
                email="ANA@clinic.test",
                password="other-password",
                full_name="",
                tenant_id=TenantId("CLINICA_2"),
            )


class TestEnsureBootstrapAdmin:
    """Tests for UserAccountService.ensure_bootstrap_admin()."""

    @pytest.mark.asyncio
    async def test_creates_admin_once(self, service, repository):
        startup_probe = MagicMock(spec=StartupProbe)

        first = await service.ensure_bootstrap_admin(
            email="admin@clinic.test",
            password="admin-password",
            tenant_id=None,
            startup_probe=startup_probe,
        )
        second = await service.ensure_bootstrap_admin(
            email="admin@clinic.test",
            password="admin-password",
            tenant_id=None,
            startup_probe=startup_probe,
        )

        assert first == second
        assert first.roles == ("admin", "user")
        assert len(repository) == 1
        startup_probe.bootstrap_admin_created.assert_called_once_with(
            email="admin@clinic.test", tenant_id=None
        )
        startup_probe.bootstrap_admin_already_exists.assert_called_once_with(
            email="admin@clinic.test"
        )
