"""UserAccount aggregate for IAM context."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from iam.domain.value_objects import Role, UserAccountId
from shared_kernel.auth.principal import Principal
from shared_kernel.tenancy import TenantId


def normalize_email(email: str) -> str:
    """Emails are compared case-insensitively and without surrounding spaces."""
    return email.strip().lower()


@dataclass(frozen=True)
class UserAccount:
    """A person who can log in.

    An account belongs to at most one clinic. Accounts without a clinic are
    platform accounts: their credentials carry no ``clinicId`` and therefore
    only work where no clinic header is sent.
    """

    id: UserAccountId
    email: str
    password_hash: str
    full_name: str
    tenant_id: TenantId | None
    roles: tuple[str, ...]
    is_active: bool = True

    @classmethod
    def register(
        cls,
        email: str,
        password_hash: str,
        full_name: str,
        tenant_id: TenantId | None,
        roles: Iterable[str] = (Role.USER,),
    ) -> UserAccount:
        """Create a new active account.

        Raises:
            ValueError: If email is empty or no role is given.
        """
        normalized = normalize_email(email)
        if not normalized:
            raise ValueError("email must not be empty")

        unique_roles = tuple(dict.fromkeys(str(role) for role in roles))
        if not unique_roles:
            raise ValueError("at least one role is required")

        return cls(
            id=UserAccountId.generate(),
            email=normalized,
            password_hash=password_hash,
            full_name=full_name.strip(),
            tenant_id=tenant_id,
            roles=unique_roles,
        )

    def deactivate(self) -> UserAccount:
        return replace(self, is_active=False)

    def to_principal(self) -> Principal:
        """Principal for credentials issued to this account."""
        return Principal(
            subject=self.id.value,
            roles=self.roles,
            tenant_id=self.tenant_id.value if self.tenant_id else None,
        )

    def __str__(self) -> str:
        """Return string representation."""
        return f"UserAccount({self.email})"

    def __eq__(self, other: object) -> bool:
        """Accounts are equal if they have the same ID (identity-based equality)."""
        if not isinstance(other, UserAccount):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        """Hash based on ID for use in sets and dicts."""
        return hash(self.id)
