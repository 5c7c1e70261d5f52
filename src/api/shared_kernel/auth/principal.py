"""Authenticated principal value object."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Principal:
    """The authenticated actor behind a request.

    Attributes:
        subject: Stable identifier of the user (``sub`` claim).
        roles: Roles granted to the user, normalised to a tuple.
        tenant_id: Clinic the credential was issued for, if any.
        credential_id: Unique id of the credential (``jti`` claim).
        issued_at: When the credential was issued.
        expires_at: When the credential stops being accepted.
    """

    subject: str
    roles: tuple[str, ...] = ()
    tenant_id: str | None = None
    credential_id: str | None = None
    issued_at: datetime | None = None
    expires_at: datetime | None = None

    def has_any_role(self, *roles: str) -> bool:
        """Return True if the principal holds at least one of ``roles``."""
        return any(role in self.roles for role in roles)
