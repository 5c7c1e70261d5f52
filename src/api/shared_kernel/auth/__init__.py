"""Authentication shared kernel module."""

from shared_kernel.auth.credentials import (
    CredentialService,
    IssuedCredential,
)
from shared_kernel.auth.observability import (
    CredentialProbe,
    DefaultCredentialProbe,
)
from shared_kernel.auth.principal import Principal
from shared_kernel.auth.refresh_tokens import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RefreshTokenStore,
)

__all__ = [
    "CredentialProbe",
    "CredentialService",
    "DefaultCredentialProbe",
    "InMemoryRefreshTokenStore",
    "IssuedCredential",
    "Principal",
    "RefreshTokenRecord",
    "RefreshTokenStore",
]
