"""User account application service for IAM bounded context.

Handles registration and the bootstrap admin account.
"""

from __future__ import annotations

from collections.abc import Iterable

from iam.application.observability import (
    DefaultUserAccountServiceProbe,
    UserAccountServiceProbe,
)
from iam.application.security import hash_password
from iam.domain.aggregates import UserAccount
from iam.domain.value_objects import Role
from iam.ports.exceptions import DuplicateEmailError
from iam.ports.repositories import IUserAccountRepository
from infrastructure.observability.startup_probe import (
    DefaultStartupProbe,
    StartupProbe,
)
from shared_kernel.tenancy import TenantId

MIN_PASSWORD_LENGTH = 8


class UserAccountService:
    """Application service for account management."""

    def __init__(
        self,
        user_repository: IUserAccountRepository,
        probe: UserAccountServiceProbe | None = None,
    ):
        """Initialize UserAccountService with dependencies.

        Args:
            user_repository: Repository for account persistence
            probe: Optional domain probe for observability
        """
        self._user_repository = user_repository
        self._probe = probe or DefaultUserAccountServiceProbe()

    async def register(
        self,
        email: str,
        password: str,
        full_name: str,
        tenant_id: TenantId | None,
        roles: Iterable[str] = (Role.USER,),
    ) -> UserAccount:
        """Register a new account.

        Args:
            email: Login email, unique across all clinics
            password: Plaintext password, hashed with bcrypt before storage
            full_name: Display name
            tenant_id: Clinic the account belongs to, or None for a platform account
            roles: Roles embedded in the account's credentials

        Returns:
            The new UserAccount

        Raises:
            ValueError: If the password is too short or the email is empty
            DuplicateEmailError: If the email is already registered
        """
        if len(password) < MIN_PASSWORD_LENGTH:
            self._probe.registration_failed(email=email, reason="password_too_short")
            raise ValueError(
                f"password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        if await self._user_repository.get_by_email(email) is not None:
            self._probe.registration_failed(email=email, reason="duplicate_email")
            raise DuplicateEmailError(f"Email already registered: {email}")

        account = UserAccount.register(
            email=email,
            password_hash=hash_password(password),
            full_name=full_name,
            tenant_id=tenant_id,
            roles=roles,
        )
        await self._user_repository.save(account)

        self._probe.account_registered(
            account_id=account.id.value,
            email=account.email,
            tenant_id=tenant_id.value if tenant_id else None,
            roles=list(account.roles),
        )
        return account

    async def ensure_bootstrap_admin(
        self,
        email: str,
        password: str,
        tenant_id: TenantId | None,
        startup_probe: StartupProbe | None = None,
    ) -> UserAccount:
        """Create the configured admin account unless it already exists.

        Idempotent: an existing account with the email is returned untouched.
        """
        probe = startup_probe or DefaultStartupProbe()

        existing = await self._user_repository.get_by_email(email)
        if existing is not None:
            probe.bootstrap_admin_already_exists(email=existing.email)
            return existing

        account = await self.register(
            email=email,
            password=password,
            full_name="Administrator",
            tenant_id=tenant_id,
            roles=(Role.ADMIN, Role.USER),
        )
        probe.bootstrap_admin_created(
            email=account.email,
            tenant_id=tenant_id.value if tenant_id else None,
        )
        return account
