"""Main FastAPI application entry point.

Run with:
    uvicorn main:create_app --factory
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Response

from iam.bootstrap import ensure_bootstrap_admin
from iam.infrastructure.user_account_repository import InMemoryUserAccountRepository
from iam.presentation import router as auth_router
from infrastructure.database.dependencies import (
    close_database_connections,
    configure_database,
    create_schema,
)
from infrastructure.error_handlers import register_exception_handlers
from infrastructure.logging import configure_logging
from infrastructure.metrics import METRICS_PATH, HttpMetrics, MetricsMiddleware
from infrastructure.observability.startup_probe import (
    DefaultStartupProbe,
    StartupProbe,
)
from infrastructure.persistence import InMemoryPersistenceGateway
from infrastructure.settings import (
    AuthSettings,
    DatabaseSettings,
    Settings,
    TenancySettings,
    get_auth_settings,
    get_database_settings,
    get_settings,
    get_tenancy_settings,
)
from infrastructure.version import __version__
from patients.presentation import router as patients_router
from shared_kernel.auth import CredentialService, InMemoryRefreshTokenStore
from shared_kernel.middleware import (
    CorrelationIdMiddleware,
    RequestLoggingMiddleware,
    TenantGuard,
)


def create_app(
    settings: Settings | None = None,
    auth_settings: AuthSettings | None = None,
    tenancy_settings: TenancySettings | None = None,
    database_settings: DatabaseSettings | None = None,
    startup_probe: StartupProbe | None = None,
) -> FastAPI:
    """Build the application.

    Settings not passed in are read from the environment. Every component
    receives its configuration here; nothing below reads settings itself.

    Args:
        settings: Application settings
        auth_settings: Credential settings
        tenancy_settings: Tenant resolution settings
        database_settings: Database settings (postgres backend only)
        startup_probe: Optional startup probe for observability

    Returns:
        Configured FastAPI application

    Raises:
        ValueError: If the postgres backend is selected while credentials
            would be signed with the built-in development secret.
    """
    settings = settings or get_settings()
    auth_settings = auth_settings or get_auth_settings()
    tenancy_settings = tenancy_settings or get_tenancy_settings()
    database_settings = database_settings or get_database_settings()
    probe = startup_probe or DefaultStartupProbe()

    configure_logging(settings.log_level)

    uses_database = settings.storage_backend == "postgres"
    if uses_database:
        if auth_settings.uses_development_secret:
            raise ValueError(
                "CLINIC_AUTH_SECRET_KEY must be set when storage_backend is postgres"
            )
        configure_database(database_settings)

    @asynccontextmanager
    async def clinic_lifespan(app: FastAPI):
        """Application lifespan context.

        Manages:
        - Schema creation (postgres backend, opt-in)
        - Bootstrap admin provisioning
        - Engine disposal on shutdown
        """
        if uses_database and database_settings.create_schema:
            await create_schema()

        await ensure_bootstrap_admin(
            auth_settings,
            memory_repository=None if uses_database else app.state.user_accounts,
            probe=probe,
        )
        probe.application_started(
            app_name=settings.app_name,
            version=__version__,
            storage_backend=settings.storage_backend,
            single_tenant_mode=tenancy_settings.single_tenant_mode,
        )

        yield

        await close_database_connections()
        probe.application_stopped(app_name=settings.app_name)

    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant clinic API",
        version=__version__,
        debug=settings.debug,
        lifespan=clinic_lifespan,
    )

    app.state.settings = settings
    app.state.credential_service = CredentialService(
        secret_key=auth_settings.secret_key.get_secret_value(),
        refresh_store=InMemoryRefreshTokenStore(),
        algorithm=auth_settings.algorithm,
        access_token_ttl=auth_settings.access_token_ttl,
        refresh_token_ttl=auth_settings.refresh_token_ttl,
        issuer=auth_settings.issuer,
    )
    app.state.tenant_guard = TenantGuard(
        header_name=tenancy_settings.header_name,
        single_tenant_mode=tenancy_settings.single_tenant_mode,
        default_tenant_id=tenancy_settings.default_tenant_id,
    )
    app.state.memory_gateway = InMemoryPersistenceGateway()
    app.state.user_accounts = InMemoryUserAccountRepository()
    app.state.metrics = HttpMetrics()

    register_exception_handlers(app)

    # Last added runs first: correlation must wrap request logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(MetricsMiddleware, metrics=app.state.metrics)
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(auth_router)
    app.include_router(patients_router)

    @app.get("/health")
    def health() -> dict:
        """Basic health check endpoint."""
        return {"status": "ok", "version": __version__}

    @app.get(METRICS_PATH, include_in_schema=False)
    def metrics() -> Response:
        """Prometheus scrape endpoint."""
        return app.state.metrics.render()

    return app
