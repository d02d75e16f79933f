"""Tenancy runtime: the explicitly constructed owner of process-wide state.

One runtime is built per application instance (in the FastAPI lifespan)
and stored on ``app.state``. It owns the registry and admin engines, the
pool cache and the idle reaper, and wires every tenancy component with
the same cache, locks and store-pool factory. Tests build their own
runtime around substitute ports, so no state leaks between them.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from infrastructure.database.engines import create_admin_engine, create_registry_engine
from infrastructure.database.exceptions import DatabaseConnectionError
from infrastructure.observability import ConnectionProbe, DefaultConnectionProbe
from infrastructure.settings import DatabaseSettings, TenancySettings
from tenancy.application.locks import KeyedLocks
from tenancy.application.observability import DefaultTenancyProbe, TenancyProbe
from tenancy.application.provisioner import Provisioner
from tenancy.application.reaper import IdlePoolReaper
from tenancy.application.reconciler import PoolReconciler
from tenancy.application.security import BcryptPasswordHasher
from tenancy.application.service import TenancyService
from tenancy.application.session_lifecycle import SessionLifecycleManager
from tenancy.infrastructure.observability import DefaultStoreProbe, StoreProbe
from tenancy.infrastructure.pool_cache import PoolCache
from tenancy.infrastructure.store_admin import PostgresStoreAdmin
from tenancy.infrastructure.store_pool import SqlAlchemyStorePoolFactory
from tenancy.infrastructure.tenant_registry import TenantRegistry
from tenancy.ports.repositories import (
    IPasswordHasher,
    IStoreAdmin,
    IStorePoolFactory,
    ITenantRegistry,
)


class TenancyRuntime:
    """Wires and owns the tenancy components for one application."""

    def __init__(
        self,
        registry: ITenantRegistry,
        store_admin: IStoreAdmin,
        pool_factory: IStorePoolFactory,
        hasher: IPasswordHasher,
        settings: TenancySettings,
        engines: Mapping[str, AsyncEngine] | None = None,
        tenancy_probe: TenancyProbe | None = None,
        store_probe: StoreProbe | None = None,
        connection_probe: ConnectionProbe | None = None,
    ):
        """Wire the tenancy components.

        Args:
            registry: Tenant registry
            store_admin: Catalog and store DDL capability
            pool_factory: Store-pool factory
            hasher: Password hashing capability
            settings: Provisioning and reaper settings
            engines: Engines owned by the runtime, by role; disposed on
                shutdown
            tenancy_probe: Optional probe for application events
            store_probe: Optional probe for cache events
            connection_probe: Optional probe for connectivity events
        """
        self._settings = settings
        self._engines = dict(engines or {})
        self._connection_probe = connection_probe or DefaultConnectionProbe()
        probe = tenancy_probe or DefaultTenancyProbe()

        self.registry = registry
        self.store_admin = store_admin
        self.cache = PoolCache(probe=store_probe or DefaultStoreProbe())

        locks = KeyedLocks()
        timeout = settings.provisioning_timeout_seconds
        self.provisioner = Provisioner(
            store_admin, pool_factory, timeout, probe=probe, locks=locks
        )
        self.reconciler = PoolReconciler(
            self.cache,
            registry,
            store_admin,
            self.provisioner,
            timeout,
            probe=probe,
            locks=locks,
        )
        self.sessions = SessionLifecycleManager(
            self.cache,
            store_admin,
            self.provisioner,
            timeout,
            probe=probe,
            locks=locks,
        )
        self.service = TenancyService(
            registry=registry,
            hasher=hasher,
            provisioner=self.provisioner,
            reconciler=self.reconciler,
            sessions=self.sessions,
            cache=self.cache,
            probe=probe,
        )
        self.reaper: IdlePoolReaper | None = None
        if settings.reaper_enabled:
            self.reaper = IdlePoolReaper(
                self.cache,
                idle_timeout_seconds=settings.pool_idle_timeout_seconds,
                interval_seconds=settings.reaper_interval_seconds,
                probe=probe,
            )

    @classmethod
    def from_settings(
        cls,
        database: DatabaseSettings,
        tenancy: TenancySettings,
    ) -> TenancyRuntime:
        """Build the PostgreSQL-backed runtime.

        No connection is opened until start().
        """
        registry_engine = create_registry_engine(database)
        admin_engine = create_admin_engine(database)
        session_factory = async_sessionmaker(registry_engine, expire_on_commit=False)
        hasher = BcryptPasswordHasher()
        store_probe = DefaultStoreProbe()

        return cls(
            registry=TenantRegistry(session_factory, hasher),
            store_admin=PostgresStoreAdmin(admin_engine, probe=store_probe),
            pool_factory=SqlAlchemyStorePoolFactory(database, probe=store_probe),
            hasher=hasher,
            settings=tenancy,
            engines={"registry": registry_engine, "admin": admin_engine},
            store_probe=store_probe,
        )

    async def start(self) -> None:
        """Verify connectivity and start background work.

        Raises:
            DatabaseConnectionError: If the registry or the admin database
                is unreachable
        """
        checks: dict[str, Callable[[], Awaitable[None]]] = {
            "registry": self.registry.ping,
            "admin": self.store_admin.ping,
        }
        for role, check in checks.items():
            await self._verify(role, check)

        if self.reaper is not None:
            await self.reaper.start()

    async def shutdown(self) -> int:
        """Stop background work and release every connection.

        Returns:
            Number of tenant pools closed
        """
        if self.reaper is not None:
            await self.reaper.stop()

        closed = await self.cache.close_all()

        for role, engine in self._engines.items():
            await engine.dispose()
            self._connection_probe.engine_disposed(role)

        return closed

    async def _verify(self, role: str, check: Callable[[], Awaitable[None]]) -> None:
        engine = self._engines.get(role)
        host = (engine.url.host if engine is not None else None) or "local"
        database = (engine.url.database if engine is not None else None) or "unknown"

        try:
            await check()
        except (SQLAlchemyError, OSError) as e:
            self._connection_probe.connection_failed(role, host, database, e)
            raise DatabaseConnectionError(
                f"Cannot connect to {role} database {database} on {host}: {e}"
            ) from e

        self._connection_probe.connection_verified(role, host, database)
