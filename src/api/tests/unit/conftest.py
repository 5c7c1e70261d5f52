"""Unit test fixtures with isolated settings and in-memory storage."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import SecretStr

from infrastructure.settings import (
    AuthSettings,
    DatabaseSettings,
    Settings,
    TenancySettings,
)
from shared_kernel.auth import CredentialService, InMemoryRefreshTokenStore

TEST_SECRET = "unit-test-secret-key-0123456789abcdef"
OTHER_SECRET = "another-unit-test-secret-0123456789xyz"


class FrozenClock:
    """Controllable clock for credential expiry tests."""

    def __init__(self, now: datetime | None = None) -> None:
        # Whole seconds, matching the resolution of exp and iat claims
        self.now = now or datetime.now(timezone.utc).replace(microsecond=0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def refresh_store() -> InMemoryRefreshTokenStore:
    return InMemoryRefreshTokenStore()


@pytest.fixture
def credential_service(refresh_store: InMemoryRefreshTokenStore) -> CredentialService:
    """CredentialService with its own secret and refresh store."""
    return CredentialService(secret_key=TEST_SECRET, refresh_store=refresh_store)


@pytest.fixture
def settings() -> Settings:
    return Settings(app_name="Clinic API (test)", storage_backend="memory")


@pytest.fixture
def auth_settings() -> AuthSettings:
    return AuthSettings(
        secret_key=SecretStr(TEST_SECRET),
        bootstrap_admin_email="admin@clinic.test",
        bootstrap_admin_password=SecretStr("admin-password"),
        bootstrap_admin_tenant_id=None,
    )


@pytest.fixture
def tenancy_settings() -> TenancySettings:
    return TenancySettings(single_tenant_mode=False, default_tenant_id=None)


@pytest.fixture
def database_settings() -> DatabaseSettings:
    return DatabaseSettings(host="testhost", database="testdb")


@pytest.fixture
def app(
    settings: Settings,
    auth_settings: AuthSettings,
    tenancy_settings: TenancySettings,
    database_settings: DatabaseSettings,
) -> FastAPI:
    """Application on in-memory storage."""
    from main import create_app

    return create_app(
        settings=settings,
        auth_settings=auth_settings,
        tenancy_settings=tenancy_settings,
        database_settings=database_settings,
    )


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """TestClient with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def issue_token(app: FastAPI) -> Callable[..., str]:
    """Sign an access credential with the application's CredentialService."""

    def _issue(
        subject: str = "u1",
        tenant_id: str | None = None,
        roles: tuple[str, ...] = ("user",),
    ) -> str:
        service: CredentialService = app.state.credential_service
        return service.issue(subject=subject, tenant_id=tenant_id, roles=roles).token

    return _issue


@pytest.fixture
def auth_headers(issue_token: Callable[..., str]) -> Callable[..., dict[str, str]]:
    """Build request headers for a credential and an optional clinic header.

    Example:
        auth_headers(token_tenant="CLINICA_1", clinic="CLINICA_1", roles=("admin",))
    """

    def _headers(
        token_tenant: str | None = None,
        clinic: str | None = None,
        roles: tuple[str, ...] = ("user",),
        subject: str = "u1",
    ) -> dict[str, str]:
        token = issue_token(subject=subject, tenant_id=token_tenant, roles=roles)
        headers = {"Authorization": f"Bearer {token}"}
        if clinic is not None:
            headers["x-clinic-id"] = clinic
        return headers

    return _headers
