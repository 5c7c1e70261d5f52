"""Refresh token storage.

Refresh tokens are opaque random strings handed to clients at login. Only a
SHA-256 hash of each token is kept server-side, together with the identity it
was issued for, so a leaked store cannot be replayed.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable


def generate_refresh_token() -> str:
    """Generate a URL-safe refresh token with 32 bytes of entropy."""
    return secrets.token_urlsafe(32)


def hash_refresh_token(token: str) -> str:
    """Return the hex SHA-256 digest used as the storage key for a token."""
    return hashlib.sha256(token.encode()).hexdigest()


@dataclass(frozen=True)
class RefreshTokenRecord:
    """Server-side record of an issued refresh token.

    Attributes:
        token_hash: SHA-256 hash of the raw token.
        subject: Subject the token was issued for.
        roles: Roles to embed in access credentials minted from this token.
        tenant_id: Clinic to embed, if the original credential had one.
        expires_at: When the refresh token stops being accepted.
    """

    token_hash: str
    subject: str
    roles: tuple[str, ...]
    tenant_id: str | None
    expires_at: datetime


@runtime_checkable
class RefreshTokenStore(Protocol):
    """Persistence port for refresh token records."""

    async def save(self, record: RefreshTokenRecord) -> None:
        """Store a record, replacing any record with the same hash."""
        ...

    async def get(self, token_hash: str) -> RefreshTokenRecord | None:
        """Return the record for ``token_hash`` or None."""
        ...

    async def delete(self, token_hash: str) -> bool:
        """Remove the record for ``token_hash``. Returns True if it existed."""
        ...


class InMemoryRefreshTokenStore:
    """Process-local refresh token store.

    Records live for the lifetime of the process; a restart logs every
    client out at its next refresh.
    """

    def __init__(self) -> None:
        self._records: dict[str, RefreshTokenRecord] = {}

    async def save(self, record: RefreshTokenRecord) -> None:
        self._records[record.token_hash] = record

    async def get(self, token_hash: str) -> RefreshTokenRecord | None:
        return self._records.get(token_hash)

    async def delete(self, token_hash: str) -> bool:
        return self._records.pop(token_hash, None) is not None

    def __len__(self) -> int:
        return len(self._records)
