"""Repository protocols (ports) for IAM bounded context.

Repository protocols define the interface for persisting and retrieving
aggregates.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from iam.domain.aggregates import UserAccount
from iam.domain.value_objects import UserAccountId


@runtime_checkable
class IUserAccountRepository(Protocol):
    """Repository for UserAccount aggregate persistence.

    Accounts are looked up by email at login, before any clinic is known,
    so this repository is not tenant-scoped.
    """

    async def save(self, account: UserAccount) -> None:
        """Persist an account.

        Creates a new account or updates an existing one.

        Raises:
            DuplicateEmailError: If another account already uses the email
        """
        ...

    async def get_by_id(self, account_id: UserAccountId) -> UserAccount | None:
        """Retrieve an account by its ID."""
        ...

    async def get_by_email(self, email: str) -> UserAccount | None:
        """Retrieve an account by email (case-insensitive)."""
        ...
