"""User account repositories.

``UserAccountRepository`` stores accounts in PostgreSQL through the
request's session; ``InMemoryUserAccountRepository`` keeps them in process
memory for the ``memory`` storage backend and tests.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from iam.domain.aggregates import UserAccount
from iam.domain.aggregates.user_account import normalize_email
from iam.domain.value_objects import UserAccountId
from iam.infrastructure.models import UserAccountModel
from iam.infrastructure.observability import (
    DefaultUserAccountRepositoryProbe,
    UserAccountRepositoryProbe,
)
from iam.ports.exceptions import DuplicateEmailError
from iam.ports.repositories import IUserAccountRepository
from shared_kernel.exceptions import DownstreamError
from shared_kernel.tenancy import TenantId


class UserAccountRepository(IUserAccountRepository):
    """PostgreSQL-backed repository for UserAccount aggregates.

    Runs inside the caller's transaction; it flushes but never commits.
    """

    def __init__(
        self, session: AsyncSession, probe: UserAccountRepositoryProbe | None = None
    ) -> None:
        """Initialize repository with database session and probe.

        Args:
            session: AsyncSession from FastAPI dependency injection
            probe: Optional domain probe for observability
        """
        self._session = session
        self._probe = probe or DefaultUserAccountRepositoryProbe()

    async def save(self, account: UserAccount) -> None:
        """Persist an account aggregate.

        Creates a new account or updates an existing one.

        Raises:
            DuplicateEmailError: If another account already uses the email
            DownstreamError: If the database call fails
        """
        try:
            model = await self._session.get(UserAccountModel, account.id.value)

            if model is None:
                model = UserAccountModel(id=account.id.value)
                self._session.add(model)

            model.email = account.email
            model.password_hash = account.password_hash
            model.full_name = account.full_name
            model.tenant_id = account.tenant_id.value if account.tenant_id else None
            model.roles = list(account.roles)
            model.is_active = account.is_active

            await self._session.flush()
        except IntegrityError as e:
            self._probe.duplicate_email(account.email)
            raise DuplicateEmailError(f"Email already registered: {account.email}") from e
        except SQLAlchemyError as e:
            raise DownstreamError(
                f"Failed to save user account: {e}", operation="user_account_save"
            ) from e

        self._probe.account_saved(account.id.value, account.email)

    async def get_by_id(self, account_id: UserAccountId) -> UserAccount | None:
        """Retrieve an account by its ID."""
        stmt = select(UserAccountModel).where(UserAccountModel.id == account_id.value)
        return await self._fetch_one(stmt, lookup=account_id.value)

    async def get_by_email(self, email: str) -> UserAccount | None:
        """Retrieve an account by email (case-insensitive)."""
        stmt = select(UserAccountModel).where(
            UserAccountModel.email == normalize_email(email)
        )
        return await self._fetch_one(stmt, lookup=normalize_email(email))

    async def _fetch_one(self, stmt, lookup: str) -> UserAccount | None:
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise DownstreamError(
                f"Failed to load user account: {e}", operation="user_account_get"
            ) from e

        model = result.scalar_one_or_none()
        if model is None:
            self._probe.account_not_found(lookup)
            return None

        self._probe.account_retrieved(model.id)
        return _to_domain(model)


class InMemoryUserAccountRepository(IUserAccountRepository):
    """Process-local repository for the ``memory`` storage backend."""

    def __init__(self, probe: UserAccountRepositoryProbe | None = None) -> None:
        self._accounts: dict[str, UserAccount] = {}
        self._probe = probe or DefaultUserAccountRepositoryProbe()

    def __len__(self) -> int:
        return len(self._accounts)

    async def save(self, account: UserAccount) -> None:
        for existing in self._accounts.values():
            if existing.email == account.email and existing.id != account.id:
                self._probe.duplicate_email(account.email)
                raise DuplicateEmailError(f"Email already registered: {account.email}")

        self._accounts[account.id.value] = account
        self._probe.account_saved(account.id.value, account.email)

    async def get_by_id(self, account_id: UserAccountId) -> UserAccount | None:
        account = self._accounts.get(account_id.value)
        if account is None:
            self._probe.account_not_found(account_id.value)
        return account

    async def get_by_email(self, email: str) -> UserAccount | None:
        normalized = normalize_email(email)
        for account in self._accounts.values():
            if account.email == normalized:
                return account
        self._probe.account_not_found(normalized)
        return None


def _to_domain(model: UserAccountModel) -> UserAccount:
    return UserAccount(
        id=UserAccountId(value=model.id),
        email=model.email,
        password_hash=model.password_hash,
        full_name=model.full_name,
        tenant_id=TenantId.from_string(model.tenant_id) if model.tenant_id else None,
        roles=tuple(model.roles or ()),
        is_active=model.is_active,
    )
