"""Value objects for IAM domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for identifiers and domain concepts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from ulid import ULID


@dataclass(frozen=True)
class UserAccountId:
    """Identifier for a UserAccount aggregate.

    Uses ULID for sortability and distribution-friendly generation. It is
    also the ``sub`` claim of every credential issued for the account.
    """

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> UserAccountId:
        """Generate a new UserAccountId using ULID."""
        return cls(value=str(ULID()))

    @classmethod
    def from_string(cls, value: str) -> UserAccountId:
        """Create UserAccountId from string value.

        Args:
            value: ULID string

        Returns:
            UserAccountId instance

        Raises:
            ValueError: If value is not a valid ULID
        """
        try:
            ULID.from_str(value)
        except ValueError as e:
            raise ValueError(f"Invalid UserAccountId: {value}") from e

        return cls(value=value)


class Role(StrEnum):
    """Roles known to the application.

    Credentials may carry other role names; these are the ones routes check.
    """

    ADMIN = "admin"
    USER = "user"
