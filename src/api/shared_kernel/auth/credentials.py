"""Credential issuing and validation.

Issues HS256-signed access credentials that embed a subject, its roles and an
optional clinic (tenant) binding, validates them statelessly, and exchanges
long-lived refresh tokens for fresh access credentials.

The tenant check in ``validate`` is the credential-layer half of tenant
isolation: a credential issued for one clinic is never accepted for another.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError

from shared_kernel.auth.observability import DefaultCredentialProbe
from shared_kernel.auth.principal import Principal
from shared_kernel.auth.refresh_tokens import (
    RefreshTokenRecord,
    RefreshTokenStore,
    generate_refresh_token,
    hash_refresh_token,
)
from shared_kernel.exceptions import (
    DownstreamError,
    InvalidCredentialError,
    InvalidRefreshTokenError,
    TenantMismatchError,
)
from shared_kernel.tenancy import TenantId

if TYPE_CHECKING:
    from shared_kernel.auth.observability import CredentialProbe

TENANT_CLAIM = "clinicId"
ROLES_CLAIM = "roles"
LEGACY_ROLE_CLAIM = "role"
ACCESS_TOKEN_TYPE = "access"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class IssuedCredential:
    """A freshly signed access credential.

    Attributes:
        token: The encoded credential, sent as ``Authorization: Bearer``.
        credential_id: Unique id of the credential (``jti``).
        expires_at: Expiry embedded in the credential.
    """

    token: str
    credential_id: str
    expires_at: datetime

    def expires_in(self, now: datetime | None = None) -> int:
        """Seconds until expiry, floored at zero."""
        now = now or _utc_now()
        return max(0, int((self.expires_at - now).total_seconds()))


def normalize_roles(claims: dict[str, Any]) -> tuple[str, ...]:
    """Fold the ``roles`` list and the legacy scalar ``role`` claim into one tuple.

    ``roles`` is authoritative; a scalar ``role`` is appended when it is not
    already present. Non-string entries are rejected.

    Raises:
        InvalidCredentialError: If either claim has an unexpected shape.
    """
    raw_roles = claims.get(ROLES_CLAIM, [])
    if isinstance(raw_roles, str):
        raw_roles = [raw_roles]
    if not isinstance(raw_roles, list) or not all(
        isinstance(role, str) for role in raw_roles
    ):
        raise InvalidCredentialError("Malformed roles claim")

    roles = list(dict.fromkeys(raw_roles))

    legacy_role = claims.get(LEGACY_ROLE_CLAIM)
    if legacy_role is not None:
        if not isinstance(legacy_role, str):
            raise InvalidCredentialError("Malformed role claim")
        if legacy_role not in roles:
            roles.append(legacy_role)

    return tuple(roles)


class CredentialService:
    """Issues and validates signed credentials.

    All configuration is injected at construction so tests can run isolated
    instances with distinct secrets.
    """

    def __init__(
        self,
        secret_key: str,
        refresh_store: RefreshTokenStore,
        algorithm: str = "HS256",
        access_token_ttl: timedelta = timedelta(hours=1),
        refresh_token_ttl: timedelta = timedelta(days=7),
        issuer: str | None = None,
        probe: CredentialProbe | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """Initialize the credential service.

        Args:
            secret_key: Process-wide signing secret.
            refresh_store: Storage for refresh token records.
            algorithm: JWS algorithm (HMAC family).
            access_token_ttl: Lifetime of access credentials.
            refresh_token_ttl: Lifetime of refresh tokens.
            issuer: Optional ``iss`` claim, verified when set.
            probe: Observability probe for logging events.
            clock: Source of the current time for issued-at and expiry.
        """
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self._refresh_store = refresh_store
        self._algorithm = algorithm
        self._access_token_ttl = access_token_ttl
        self._refresh_token_ttl = refresh_token_ttl
        self._issuer = issuer
        self._probe = probe or DefaultCredentialProbe()
        self._clock = clock

    @property
    def access_token_ttl(self) -> timedelta:
        return self._access_token_ttl

    def issue(
        self,
        subject: str,
        tenant_id: str | None = None,
        roles: Iterable[str] = (),
    ) -> IssuedCredential:
        """Sign a new access credential.

        Args:
            subject: Identifier of the user.
            tenant_id: Clinic to bind the credential to, if any.
            roles: Roles to embed.

        Returns:
            IssuedCredential with the encoded token and its expiry.

        Raises:
            ValueError: If subject or tenant_id is empty.
            DownstreamError: If signing fails.
        """
        if not subject or not subject.strip():
            raise ValueError("subject must not be empty")

        now = self._clock()
        expires_at = now + self._access_token_ttl
        credential_id = uuid4().hex
        claims: dict[str, Any] = {
            "sub": subject,
            ROLES_CLAIM: list(dict.fromkeys(roles)),
            "type": ACCESS_TOKEN_TYPE,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": credential_id,
        }
        if tenant_id is not None:
            claims[TENANT_CLAIM] = TenantId.from_string(tenant_id).value
        if self._issuer is not None:
            claims["iss"] = self._issuer

        try:
            token = jwt.encode(claims, self._secret_key, algorithm=self._algorithm)
        except JWTError as e:
            raise DownstreamError(
                f"Failed to sign credential: {e}", operation="credential_sign"
            ) from e

        self._probe.credential_issued(subject=subject, tenant_id=claims.get(TENANT_CLAIM))

        return IssuedCredential(
            token=token,
            credential_id=credential_id,
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )

    def validate(
        self,
        token: str,
        expected_tenant_id: str | None = None,
    ) -> Principal:
        """Verify a credential and return its principal.

        Args:
            token: The encoded credential.
            expected_tenant_id: When given, the credential's embedded clinic
                must equal it exactly. A credential without a clinic never
                matches.

        Returns:
            Principal decoded from the credential.

        Raises:
            InvalidCredentialError: On bad signature, malformed payload,
                wrong token type or expiry.
            TenantMismatchError: If the embedded clinic differs from
                ``expected_tenant_id``.
            ValueError: If ``expected_tenant_id`` is blank.
        """
        claims = self._decode(token)

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject.strip():
            self._probe.credential_validation_failed(reason="Missing sub claim")
            raise InvalidCredentialError("Missing required claim: sub")

        if claims.get("type") != ACCESS_TOKEN_TYPE:
            self._probe.credential_validation_failed(reason="Wrong token type")
            raise InvalidCredentialError("Credential is not an access token")

        tenant_id = self._tenant_from_claims(claims)
        roles = normalize_roles(claims)

        if expected_tenant_id is not None:
            expected = TenantId.from_string(expected_tenant_id).value
            if tenant_id != expected:
                self._probe.tenant_mismatch(
                    subject=subject,
                    expected_tenant_id=expected,
                    credential_tenant_id=tenant_id,
                )
                raise TenantMismatchError(
                    expected_tenant_id=expected,
                    credential_tenant_id=tenant_id,
                )

        self._probe.credential_validated(subject=subject, tenant_id=tenant_id)

        return Principal(
            subject=subject,
            roles=roles,
            tenant_id=tenant_id,
            credential_id=claims.get("jti"),
            issued_at=_timestamp(claims.get("iat")),
            expires_at=_timestamp(claims.get("exp")),
        )

    async def issue_refresh_token(self, principal: Principal) -> str:
        """Create and store a long-lived refresh token for ``principal``.

        Returns:
            The raw refresh token. Only its hash is stored.
        """
        token = generate_refresh_token()
        record = RefreshTokenRecord(
            token_hash=hash_refresh_token(token),
            subject=principal.subject,
            roles=principal.roles,
            tenant_id=principal.tenant_id,
            expires_at=self._clock() + self._refresh_token_ttl,
        )
        await self._refresh_store.save(record)
        self._probe.refresh_token_issued(subject=principal.subject)
        return token

    async def resolve_refresh_token(
        self, refresh_token: str | None
    ) -> RefreshTokenRecord:
        """Look up a refresh token without issuing anything.

        Raises:
            InvalidRefreshTokenError: If the token is missing, unknown or expired.
        """
        if not refresh_token:
            self._probe.refresh_failed(reason="missing")
            raise InvalidRefreshTokenError("Refresh token is required")

        record = await self._refresh_store.get(hash_refresh_token(refresh_token))
        if record is None:
            self._probe.refresh_failed(reason="unknown")
            raise InvalidRefreshTokenError("Invalid refresh token")

        if record.expires_at <= self._clock():
            self._probe.refresh_failed(reason="expired")
            raise InvalidRefreshTokenError("Refresh token has expired")

        return record

    async def refresh(self, refresh_token: str | None) -> IssuedCredential:
        """Exchange a refresh token for a new access credential.

        The refresh token itself is not rotated and the store is not
        modified, whether or not the exchange succeeds.

        Raises:
            InvalidRefreshTokenError: If the token is missing, unknown or expired.
        """
        record = await self.resolve_refresh_token(refresh_token)
        return self.issue_from_refresh(record)

    def issue_from_refresh(self, record: RefreshTokenRecord) -> IssuedCredential:
        """Issue an access credential for a resolved refresh token."""
        credential = self.issue(
            subject=record.subject,
            tenant_id=record.tenant_id,
            roles=record.roles,
        )
        self._probe.credential_refreshed(subject=record.subject)
        return credential

    async def revoke_refresh_token(self, refresh_token: str) -> bool:
        """Forget a refresh token (logout). Access credentials stay valid until expiry."""
        revoked = await self._refresh_store.delete(hash_refresh_token(refresh_token))
        self._probe.refresh_token_revoked(revoked=revoked)
        return revoked

    def with_probe(self, probe: CredentialProbe) -> CredentialService:
        """Return a service sharing configuration and store but logging via ``probe``."""
        return CredentialService(
            secret_key=self._secret_key,
            refresh_store=self._refresh_store,
            algorithm=self._algorithm,
            access_token_ttl=self._access_token_ttl,
            refresh_token_ttl=self._refresh_token_ttl,
            issuer=self._issuer,
            probe=probe,
            clock=self._clock,
        )

    @property
    def probe(self) -> CredentialProbe:
        return self._probe

    def _decode(self, token: str) -> dict[str, Any]:
        if not isinstance(token, str) or not token:
            self._probe.credential_validation_failed(reason="Empty token")
            raise InvalidCredentialError("Credential is empty")

        try:
            return jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={
                    "verify_signature": True,
                    "verify_exp": True,
                    "verify_iat": True,
                    "verify_aud": False,
                    "require_exp": True,
                    "require_iat": True,
                    "require_sub": True,
                },
            )
        except ExpiredSignatureError as e:
            self._probe.credential_validation_failed(reason="Credential expired")
            raise InvalidCredentialError("Credential has expired") from e
        except JWTClaimsError as e:
            self._probe.credential_validation_failed(reason=f"Claims error: {e}")
            raise InvalidCredentialError(f"Invalid credential claims: {e}") from e
        except JWTError as e:
            error_msg = str(e).lower()
            if "signature" in error_msg:
                self._probe.credential_validation_failed(reason="Invalid signature")
                raise InvalidCredentialError("Invalid credential signature") from e
            self._probe.credential_validation_failed(reason=f"Malformed credential: {e}")
            raise InvalidCredentialError(f"Invalid credential: {e}") from e

    def _tenant_from_claims(self, claims: dict[str, Any]) -> str | None:
        raw = claims.get(TENANT_CLAIM)
        if raw is None:
            return None
        if not isinstance(raw, str) or not raw.strip():
            self._probe.credential_validation_failed(reason="Malformed clinicId claim")
            raise InvalidCredentialError(f"Malformed {TENANT_CLAIM} claim")
        return raw


def _timestamp(value: Any) -> datetime | None:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return None
