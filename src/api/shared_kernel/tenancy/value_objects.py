"""Value objects for tenant identity.

A tenant is a clinic whose data must never be visible to another clinic.
Tenant identifiers are opaque, case-sensitive strings; the only format rule
is that they are non-empty once surrounding whitespace is removed.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TenantId:
    """Identifier for a clinic (tenant).

    Construct through ``from_string`` when the value comes from untrusted
    input; direct construction validates as well.
    """

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError(
                f"TenantId value must be a string, got {type(self.value).__name__}"
            )
        if not self.value.strip():
            raise ValueError("TenantId must not be empty")
        if self.value != self.value.strip():
            raise ValueError(f"TenantId must be trimmed: '{self.value}'")

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def from_string(cls, value: str) -> TenantId:
        """Create TenantId from a raw string, trimming surrounding whitespace.

        Args:
            value: Raw tenant identifier (header value, claim, column)

        Returns:
            TenantId instance

        Raises:
            ValueError: If value is empty or whitespace-only
        """
        if not isinstance(value, str):
            raise ValueError(f"Invalid TenantId: {value!r}")
        return cls(value=value.strip())
