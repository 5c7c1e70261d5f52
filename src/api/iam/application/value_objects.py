"""Application-layer value objects for IAM bounded context.

These are value objects specific to the application layer, representing
results of use cases rather than core business entities.
"""

from __future__ import annotations

from dataclasses import dataclass

from iam.domain.aggregates import UserAccount
from shared_kernel.auth import IssuedCredential


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login.

    Attributes:
        account: The account that logged in.
        credential: Signed access credential.
        refresh_token: Raw refresh token; only its hash is stored server-side.
    """

    account: UserAccount
    credential: IssuedCredential
    refresh_token: str
