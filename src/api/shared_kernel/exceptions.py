"""Error taxonomy shared across bounded contexts.

Four kinds of failure cross the request pipeline:

- client errors: the request itself is unusable (e.g. missing tenant header)
- authentication errors: the credential is invalid, malformed or expired
- authorization errors: the credential is valid but not for this tenant or role
- downstream errors: persistence, signing or network failures

Presentation code maps each kind to an HTTP status; see
``infrastructure.error_handlers``.
"""

from __future__ import annotations


class ClientError(Exception):
    """Raised when a request is malformed. Never retried."""

    pass


class MissingTenantError(ClientError):
    """Raised when a tenant-scoped operation cannot resolve a tenant identifier."""

    def __init__(self, header_name: str = "x-clinic-id") -> None:
        super().__init__(f"{header_name} header is required")
        self.header_name = header_name


class AuthenticationError(Exception):
    """Raised when a credential cannot be verified."""

    pass


class InvalidCredentialError(AuthenticationError):
    """Raised on bad signature, malformed payload or expired access credential."""

    pass


class InvalidRefreshTokenError(AuthenticationError):
    """Raised when a refresh token is missing, unknown or expired."""

    pass


class AuthorizationError(Exception):
    """Raised when an authenticated principal may not perform an operation."""

    pass


class TenantMismatchError(AuthorizationError):
    """Raised when a credential's embedded tenant differs from the expected one.

    Attributes:
        expected_tenant_id: Tenant the request is bound to.
        credential_tenant_id: Tenant embedded in the credential (may be None).
    """

    def __init__(
        self,
        expected_tenant_id: str,
        credential_tenant_id: str | None,
    ) -> None:
        super().__init__("Credential is not valid for the requested clinic")
        self.expected_tenant_id = expected_tenant_id
        self.credential_tenant_id = credential_tenant_id


class InsufficientRoleError(AuthorizationError):
    """Raised when a principal holds none of the roles an operation requires."""

    pass


class DownstreamError(Exception):
    """Raised when a persistence, signing or network dependency fails.

    The message is meant for logs only; callers receive a generic response.
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
