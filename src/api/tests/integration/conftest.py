"""Integration test fixtures for PostgreSQL tests.

These fixtures require a running PostgreSQL server whose user may create
and drop databases. Connection details come from TODOS_DB_* environment
variables; the registry lives in a dedicated test database.
"""

import os

import pytest
import pytest_asyncio
from pydantic import SecretStr
from sqlalchemy import text
from sqlalchemy.ext.asyncio import async_sessionmaker

from infrastructure.database.engines import create_admin_engine, create_registry_engine
from infrastructure.database.models import Base
from infrastructure.settings import DatabaseSettings, TenancySettings
from tenancy.application.security import BcryptPasswordHasher
from tenancy.domain.value_objects import StoreName
from tenancy.infrastructure import models  # noqa: F401
from tenancy.infrastructure.store_admin import PostgresStoreAdmin
from tenancy.infrastructure.store_pool import SqlAlchemyStorePoolFactory
from tenancy.infrastructure.tenant_registry import TenantRegistry
from tenancy.runtime import TenancyRuntime


@pytest.fixture(scope="session")
def integration_db_settings() -> DatabaseSettings:
    """Database settings for integration tests.

    Override with environment variables:
        TODOS_DB_HOST, TODOS_DB_PORT, TODOS_DB_USERNAME, TODOS_DB_PASSWORD
    """
    return DatabaseSettings(
        host=os.getenv("TODOS_DB_HOST", "localhost"),
        port=int(os.getenv("TODOS_DB_PORT", "5432")),
        username=os.getenv("TODOS_DB_USERNAME", "todos"),
        password=SecretStr(os.getenv("TODOS_DB_PASSWORD", "todos_dev_password")),
        registry_database="todos_users_integration",
        admin_database=os.getenv("TODOS_DB_ADMIN_DATABASE", "postgres"),
    )


@pytest_asyncio.fixture
async def admin_engine(integration_db_settings):
    engine = create_admin_engine(integration_db_settings)
    yield engine
    await engine.dispose()


class TrackingStoreAdmin(PostgresStoreAdmin):
    """PostgresStoreAdmin remembering which stores it created."""

    def __init__(self, engine):
        super().__init__(engine)
        self.created: list[StoreName] = []

    async def create_store(self, store_name: StoreName) -> bool:
        created = await super().create_store(store_name)
        if created:
            self.created.append(store_name)
        return created


@pytest_asyncio.fixture
async def store_admin(admin_engine):
    """Store admin dropping every store it created once the test ends."""
    admin = TrackingStoreAdmin(admin_engine)
    yield admin
    for store_name in admin.created:
        await admin.drop_store(store_name)


@pytest_asyncio.fixture
async def clean_registry(integration_db_settings, admin_engine):
    """Create the registry test database if needed and empty its table."""
    quoted = admin_engine.dialect.identifier_preparer.quote_identifier(
        integration_db_settings.registry_database
    )
    async with admin_engine.connect() as conn:
        exists = await conn.scalar(
            text("SELECT 1 FROM pg_database WHERE datname = :name"),
            {"name": integration_db_settings.registry_database},
        )
        if not exists:
            await conn.execute(text(f"CREATE DATABASE {quoted}"))

    engine = create_registry_engine(integration_db_settings)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            await conn.execute(text("DELETE FROM users"))
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def postgres_runtime(integration_db_settings, clean_registry, store_admin):
    """A started runtime over PostgreSQL, sharing the tracking store admin."""
    registry_engine = create_registry_engine(integration_db_settings)
    hasher = BcryptPasswordHasher(rounds=4)
    runtime = TenancyRuntime(
        registry=TenantRegistry(
            async_sessionmaker(registry_engine, expire_on_commit=False), hasher
        ),
        store_admin=store_admin,
        pool_factory=SqlAlchemyStorePoolFactory(integration_db_settings),
        hasher=hasher,
        settings=TenancySettings(pool_idle_timeout_seconds=0),
        engines={"registry": registry_engine},
    )
    await runtime.start()
    yield runtime
    await runtime.shutdown()
