"""Authentication application service for IAM bounded context.

Handles password login, access credential refresh and logout.
"""

from __future__ import annotations

from iam.application.observability import AuthServiceProbe, DefaultAuthServiceProbe
from iam.application.security import verify_password
from iam.application.value_objects import LoginResult
from iam.domain.value_objects import UserAccountId
from iam.ports.repositories import IUserAccountRepository
from shared_kernel.auth import CredentialService, IssuedCredential
from shared_kernel.exceptions import InvalidCredentialError, InvalidRefreshTokenError

# Same message for every failure so callers cannot probe which emails exist
INVALID_LOGIN_MESSAGE = "Invalid email or password"
INVALID_REFRESH_MESSAGE = "Invalid refresh token"


class AuthService:
    """Application service for credential lifecycle."""

    def __init__(
        self,
        user_repository: IUserAccountRepository,
        credential_service: CredentialService,
        probe: AuthServiceProbe | None = None,
    ):
        """Initialize AuthService with dependencies.

        Args:
            user_repository: Repository for account lookup
            credential_service: Issues and refreshes credentials
            probe: Optional domain probe for observability
        """
        self._user_repository = user_repository
        self._credential_service = credential_service
        self._probe = probe or DefaultAuthServiceProbe()

    async def login(self, email: str, password: str) -> LoginResult:
        """Check a password and issue an access credential plus refresh token.

        Args:
            email: Account email (case-insensitive)
            password: Plaintext password

        Returns:
            LoginResult for the account

        Raises:
            InvalidCredentialError: If the account is unknown, inactive or the
                password does not match
        """
        account = await self._user_repository.get_by_email(email)

        if account is None:
            self._probe.login_failed(email=email, reason="unknown_account")
            raise InvalidCredentialError(INVALID_LOGIN_MESSAGE)

        if not account.is_active:
            self._probe.login_failed(email=email, reason="inactive_account")
            raise InvalidCredentialError(INVALID_LOGIN_MESSAGE)

        if not verify_password(password, account.password_hash):
            self._probe.login_failed(email=email, reason="wrong_password")
            raise InvalidCredentialError(INVALID_LOGIN_MESSAGE)

        principal = account.to_principal()
        credential = self._credential_service.issue(
            subject=principal.subject,
            tenant_id=principal.tenant_id,
            roles=principal.roles,
        )
        refresh_token = await self._credential_service.issue_refresh_token(principal)

        self._probe.login_succeeded(
            account_id=account.id.value,
            tenant_id=principal.tenant_id,
        )
        return LoginResult(
            account=account,
            credential=credential,
            refresh_token=refresh_token,
        )

    async def refresh(self, refresh_token: str | None) -> IssuedCredential:
        """Exchange a refresh token for a new access credential.

        Raises:
            InvalidRefreshTokenError: If the token is missing, unknown or
                expired, or its account was removed or deactivated
        """
        record = await self._credential_service.resolve_refresh_token(refresh_token)

        account = await self._user_repository.get_by_id(UserAccountId(record.subject))
        if account is None:
            self._probe.refresh_rejected(subject=record.subject, reason="unknown_account")
            raise InvalidRefreshTokenError(INVALID_REFRESH_MESSAGE)

        if not account.is_active:
            self._probe.refresh_rejected(subject=record.subject, reason="inactive_account")
            raise InvalidRefreshTokenError(INVALID_REFRESH_MESSAGE)

        return self._credential_service.issue_from_refresh(record)

    async def logout(self, refresh_token: str) -> None:
        """Revoke a refresh token. Unknown tokens are ignored."""
        revoked = await self._credential_service.revoke_refresh_token(refresh_token)
        self._probe.logged_out(revoked=revoked)
