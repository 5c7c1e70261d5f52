"""IAM service dependencies."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from iam.application.observability import (
    DefaultAuthServiceProbe,
    DefaultUserAccountServiceProbe,
)
from iam.application.services import AuthService, UserAccountService
from iam.dependencies.authentication import get_credential_service
from iam.infrastructure.observability import DefaultUserAccountRepositoryProbe
from iam.infrastructure.user_account_repository import UserAccountRepository
from iam.ports.repositories import IUserAccountRepository
from infrastructure.database.dependencies import get_write_session
from shared_kernel.auth import CredentialService
from shared_kernel.middleware import get_request_context


def get_user_account_repository(
    request: Request,
    session: Annotated[AsyncSession | None, Depends(get_write_session)],
) -> IUserAccountRepository:
    """Get the account repository for the configured storage backend."""
    if session is None:
        return request.app.state.user_accounts

    context = get_request_context(request)
    return UserAccountRepository(
        session=session,
        probe=DefaultUserAccountRepositoryProbe().with_context(context.observation()),
    )


def get_auth_service(
    request: Request,
    user_repository: Annotated[
        IUserAccountRepository, Depends(get_user_account_repository)
    ],
    credential_service: Annotated[CredentialService, Depends(get_credential_service)],
) -> AuthService:
    """Get AuthService instance."""
    context = get_request_context(request)
    return AuthService(
        user_repository=user_repository,
        credential_service=credential_service,
        probe=DefaultAuthServiceProbe().with_context(context.observation()),
    )


def get_user_account_service(
    request: Request,
    user_repository: Annotated[
        IUserAccountRepository, Depends(get_user_account_repository)
    ],
) -> UserAccountService:
    """Get UserAccountService instance."""
    context = get_request_context(request)
    return UserAccountService(
        user_repository=user_repository,
        probe=DefaultUserAccountServiceProbe().with_context(context.observation()),
    )
