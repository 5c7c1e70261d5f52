"""Startup provisioning for IAM bounded context.

Creates the admin account configured through ``CLINIC_AUTH_BOOTSTRAP_ADMIN_*``
so a fresh deployment has someone who can log in and register others.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from iam.application.services import UserAccountService
from iam.infrastructure.user_account_repository import UserAccountRepository
from infrastructure.database.dependencies import session_scope
from infrastructure.observability.startup_probe import (
    DefaultStartupProbe,
    StartupProbe,
)
from shared_kernel.tenancy import TenantId

if TYPE_CHECKING:
    from iam.ports.repositories import IUserAccountRepository
    from infrastructure.settings import AuthSettings


async def ensure_bootstrap_admin(
    auth_settings: AuthSettings,
    memory_repository: IUserAccountRepository | None,
    probe: StartupProbe | None = None,
) -> None:
    """Create the bootstrap admin if one is configured and missing.

    Args:
        auth_settings: Auth settings holding the bootstrap admin fields
        memory_repository: Repository to use on the memory storage backend;
            None to use the database
        probe: Optional startup probe for observability
    """
    if not auth_settings.bootstrap_admin_email:
        return

    assert auth_settings.bootstrap_admin_password is not None
    probe = probe or DefaultStartupProbe()
    raw_tenant_id = auth_settings.bootstrap_admin_tenant_id
    tenant_id = TenantId.from_string(raw_tenant_id) if raw_tenant_id else None

    async def _ensure(repository: IUserAccountRepository) -> None:
        service = UserAccountService(user_repository=repository)
        await service.ensure_bootstrap_admin(
            email=auth_settings.bootstrap_admin_email,
            password=auth_settings.bootstrap_admin_password.get_secret_value(),
            tenant_id=tenant_id,
            startup_probe=probe,
        )

    if memory_repository is not None:
        await _ensure(memory_repository)
        return

    async with session_scope() as session:
        await _ensure(UserAccountRepository(session=session))
