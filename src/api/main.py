"""Main FastAPI application entry point."""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from infrastructure.logging import configure_logging
from infrastructure.observability import DefaultStartupProbe
from infrastructure.settings import Settings, get_settings
from infrastructure.version import __version__
from tenancy import presentation as tenancy_presentation
from tenancy.cookies import SessionCookies
from tenancy.dependencies import get_tenancy_runtime
from tenancy.runtime import TenancyRuntime
from todos import presentation as todos_presentation

RuntimeFactory = Callable[[Settings], TenancyRuntime]


def _runtime_from_settings(settings: Settings) -> TenancyRuntime:
    return TenancyRuntime.from_settings(settings.database, settings.tenancy)


def create_app(
    settings: Settings | None = None,
    runtime_factory: RuntimeFactory = _runtime_from_settings,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Application settings, loaded from the environment if omitted
        runtime_factory: Builds the tenancy runtime at startup; tests pass
            one wired to substitute stores

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    probe = DefaultStartupProbe()

    @asynccontextmanager
    async def todos_lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application lifespan context.

        Manages:
        - Logging configuration
        - Tenancy runtime startup (fails fast if the registry or admin
          database is unreachable) and shutdown (closes every pool)
        """
        configure_logging(settings.log_level)
        probe.application_starting(settings.app_name, settings.environment)

        runtime = runtime_factory(settings)
        try:
            await runtime.start()
        except Exception as e:
            probe.tenancy_runtime_failed(e)
            await runtime.shutdown()
            raise
        probe.tenancy_runtime_ready(reaper_enabled=runtime.reaper is not None)

        app.state.tenancy = runtime
        try:
            yield
        finally:
            app.state.tenancy = None
            pools_closed = await runtime.shutdown()
            probe.application_stopped(pools_closed)

    app = FastAPI(
        title=settings.app_name,
        description="Todo lists with one isolated database per user or guest session",
        version=__version__,
        lifespan=todos_lifespan,
        debug=settings.debug,
    )
    app.state.session_cookies = SessionCookies(settings.session)
    app.state.tenancy = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    tenancy_presentation.register_exception_handlers(app)
    app.include_router(tenancy_presentation.router)
    app.include_router(todos_presentation.router)

    @app.get("/health")
    def health():
        """Basic health check endpoint."""
        return {"status": "ok"}

    @app.get("/health/db")
    async def health_db(
        runtime: Annotated[TenancyRuntime, Depends(get_tenancy_runtime)],
    ) -> dict:
        """Check registry database connection health.

        Also reports how many tenant pools are currently open.
        """
        try:
            await runtime.registry.ping()
            return {
                "status": "ok",
                "connected": True,
                "open_pools": len(runtime.cache),
            }
        except Exception as e:
            return {
                "status": "error",
                "connected": False,
                "error": str(e),
            }

    return app


app = create_app()
