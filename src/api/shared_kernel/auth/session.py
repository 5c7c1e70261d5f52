"""Client-side credential session.

Holds the access credential and refresh token of a logged-in client and
keeps the access credential fresh. A credential whose expiry falls inside a
safety buffer is treated as already expired so it cannot lapse mid-request.
If a refresh fails the session drops to the logged-out state and surfaces
``SessionExpiredError``; the stale credential is never retried.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Protocol

import httpx
import structlog
from jose import JWTError, jwt

from shared_kernel.exceptions import AuthenticationError

DEFAULT_REFRESH_BUFFER = timedelta(seconds=60)


class RefreshFailedError(Exception):
    """Raised when a refresh token could not be exchanged for a new credential."""

    pass


class SessionExpiredError(AuthenticationError):
    """Raised when the session can no longer produce a valid credential.

    The session is logged out by the time this is raised; the caller must
    authenticate again.
    """

    pass


class SessionState(StrEnum):
    """Lifecycle of a credential session."""

    LOGGED_OUT = "logged_out"
    AUTHENTICATED = "authenticated"


class TokenStore(Protocol):
    """Storage for the client's tokens."""

    def get_access_token(self) -> str | None: ...

    def get_refresh_token(self) -> str | None: ...

    def set_access_token(self, token: str) -> None: ...

    def set_tokens(self, access_token: str, refresh_token: str | None) -> None: ...

    def clear(self) -> None: ...


class InMemoryTokenStore:
    """Token store kept in process memory."""

    def __init__(
        self,
        access_token: str | None = None,
        refresh_token: str | None = None,
    ) -> None:
        self._access_token = access_token
        self._refresh_token = refresh_token

    def get_access_token(self) -> str | None:
        return self._access_token

    def get_refresh_token(self) -> str | None:
        return self._refresh_token

    def set_access_token(self, token: str) -> None:
        self._access_token = token

    def set_tokens(self, access_token: str, refresh_token: str | None) -> None:
        self._access_token = access_token
        self._refresh_token = refresh_token

    def clear(self) -> None:
        self._access_token = None
        self._refresh_token = None


class TokenRefresher(Protocol):
    """Exchanges a refresh token for a new access credential."""

    async def __call__(self, refresh_token: str) -> str: ...


class HttpTokenRefresher:
    """Token refresher calling the API's ``POST /auth/refresh`` endpoint."""

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        path: str = "/auth/refresh",
        timeout: float = 10.0,
    ):
        """Initialize the refresher.

        Args:
            base_url: API base URL (e.g. ``https://api.example.com``).
            client: Optional shared client; one is created per call otherwise.
            path: Refresh endpoint path.
            timeout: Request timeout in seconds when creating a client.
        """
        self._url = f"{base_url.rstrip('/')}{path}"
        self._client = client
        self._timeout = timeout

    async def __call__(self, refresh_token: str) -> str:
        """Return a new access credential.

        Raises:
            RefreshFailedError: On transport failure, non-2xx status or an
                unexpected response body.
        """
        try:
            if self._client is not None:
                response = await self._client.post(
                    self._url, json={"refresh_token": refresh_token}
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(
                        self._url, json={"refresh_token": refresh_token}
                    )
            response.raise_for_status()
            access_token = response.json()["access_token"]
        except httpx.HTTPError as e:
            raise RefreshFailedError(f"Refresh request failed: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise RefreshFailedError("Refresh response did not contain access_token") from e

        if not isinstance(access_token, str) or not access_token:
            raise RefreshFailedError("Refresh response did not contain access_token")
        return access_token


def seconds_until_expiry(token: str, now: datetime | None = None) -> float | None:
    """Read ``exp`` without verifying the signature and return seconds left.

    Client-side decoding is only used for scheduling refreshes; the server
    remains the authority on validity.

    Returns:
        Seconds until expiry (negative if past), or None if unreadable.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None

    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        return None

    now = now or datetime.now(timezone.utc)
    return exp - now.timestamp()


class CredentialSession:
    """Keeps a client's access credential fresh."""

    def __init__(
        self,
        store: TokenStore,
        refresher: TokenRefresher,
        buffer: timedelta = DEFAULT_REFRESH_BUFFER,
        logger: structlog.stdlib.BoundLogger | None = None,
    ):
        self._store = store
        self._refresher = refresher
        self._buffer = buffer
        self._logger = logger or structlog.get_logger()
        self._refresh_lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        if self._store.get_access_token():
            return SessionState.AUTHENTICATED
        return SessionState.LOGGED_OUT

    def login(self, access_token: str, refresh_token: str | None) -> None:
        """Store the tokens returned by a successful login."""
        self._store.set_tokens(access_token, refresh_token)

    def logout(self) -> None:
        """Forget all tokens."""
        self._store.clear()

    def needs_refresh(self, token: str, now: datetime | None = None) -> bool:
        """True if ``token`` expires within the buffer window or cannot be read."""
        remaining = seconds_until_expiry(token, now=now)
        if remaining is None:
            return True
        return remaining <= self._buffer.total_seconds()

    async def refresh(self) -> str:
        """Exchange the stored refresh token for a new access credential.

        Stored tokens are only replaced on success.

        Raises:
            RefreshFailedError: If there is no refresh token or the exchange fails.
        """
        refresh_token = self._store.get_refresh_token()
        if not refresh_token:
            raise RefreshFailedError("No refresh token")

        access_token = await self._refresher(refresh_token)
        self._store.set_access_token(access_token)
        self._logger.debug("session_credential_refreshed")
        return access_token

    async def get_access_token(self, now: datetime | None = None) -> str:
        """Return a credential that is valid beyond the buffer window.

        Raises:
            SessionExpiredError: If the session is logged out or the refresh
                failed; the session is logged out afterwards.
        """
        token = self._store.get_access_token()
        if token is None:
            raise SessionExpiredError("Session expired. Please log in again.")

        if not self.needs_refresh(token, now=now):
            return token

        async with self._refresh_lock:
            # Another caller may have refreshed while we waited
            current = self._store.get_access_token()
            if current is not None and current != token and not self.needs_refresh(
                current, now=now
            ):
                return current

            try:
                return await self.refresh()
            except RefreshFailedError as e:
                self._logger.warning("session_refresh_failed", reason=str(e))
                self.logout()
                raise SessionExpiredError(
                    "Session expired. Please log in again."
                ) from e
