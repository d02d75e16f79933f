"""Unit test fixtures.

Tenant stores are SQLite files (one file per store) behind the same
ports the PostgreSQL implementations satisfy, so routing, provisioning
and isolation scenarios run real SQL without a database server.
"""

from __future__ import annotations

from http.cookiejar import CookieJar, DefaultCookiePolicy
from pathlib import Path

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from infrastructure.database.models import Base
from infrastructure.settings import Settings, TenancySettings
from main import create_app
from tenancy.application.security import BcryptPasswordHasher
from tenancy.domain.value_objects import StoreName
from tenancy.infrastructure import models  # noqa: F401
from tenancy.infrastructure.store_pool import EnginePoolHandle
from tenancy.infrastructure.tenant_registry import TenantRegistry
from tenancy.runtime import TenancyRuntime


class SqliteStoreAdmin:
    """IStoreAdmin over a directory holding one SQLite file per store."""

    def __init__(self, root: Path):
        self.root = root
        self.created: list[str] = []
        self.dropped: list[str] = []

    def path_for(self, store_name: StoreName) -> Path:
        return self.root / f"{store_name.value}.db"

    async def store_exists(self, store_name: StoreName) -> bool:
        return self.path_for(store_name).exists()

    async def create_store(self, store_name: StoreName) -> bool:
        path = self.path_for(store_name)
        if path.exists():
            return False
        path.touch()
        self.created.append(store_name.value)
        return True

    async def drop_store(self, store_name: StoreName) -> None:
        self.path_for(store_name).unlink(missing_ok=True)
        self.dropped.append(store_name.value)

    async def ping(self) -> None:
        return None


class SqlitePoolFactory:
    """IStorePoolFactory creating aiosqlite-backed pool handles."""

    def __init__(self, admin: SqliteStoreAdmin):
        self._admin = admin
        self.created: list[EnginePoolHandle] = []

    def create_pool(self, store_name: StoreName) -> EnginePoolHandle:
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{self._admin.path_for(store_name)}"
        )
        handle = EnginePoolHandle(store_name.value, engine)
        self.created.append(handle)
        return handle


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    """Directory holding the SQLite store files of one test."""
    root = tmp_path / "stores"
    root.mkdir()
    return root


@pytest.fixture
def sqlite_store_admin(store_root: Path) -> SqliteStoreAdmin:
    return SqliteStoreAdmin(store_root)


@pytest.fixture
def sqlite_pool_factory(sqlite_store_admin: SqliteStoreAdmin) -> SqlitePoolFactory:
    return SqlitePoolFactory(sqlite_store_admin)


@pytest.fixture
def fast_hasher() -> BcryptPasswordHasher:
    """bcrypt at the minimum work factor, to keep tests fast."""
    return BcryptPasswordHasher(rounds=4)


@pytest.fixture
def tenancy_settings() -> TenancySettings:
    return TenancySettings(
        provisioning_timeout_seconds=5,
        pool_idle_timeout_seconds=0,
        reaper_interval_seconds=60,
    )


@pytest_asyncio.fixture
async def registry_session_factory(tmp_path: Path):
    """Session factory over a SQLite registry with the users table created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'registry.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def sqlite_registry(registry_session_factory, fast_hasher) -> TenantRegistry:
    return TenantRegistry(registry_session_factory, fast_hasher)


@pytest_asyncio.fixture
async def tenancy_runtime(
    sqlite_registry,
    sqlite_store_admin,
    sqlite_pool_factory,
    fast_hasher,
    tenancy_settings,
):
    """Fully wired tenancy runtime over SQLite stores and registry."""
    runtime = TenancyRuntime(
        registry=sqlite_registry,
        store_admin=sqlite_store_admin,
        pool_factory=sqlite_pool_factory,
        hasher=fast_hasher,
        settings=tenancy_settings,
    )
    await runtime.start()
    yield runtime
    await runtime.shutdown()


@pytest.fixture
def api_runtime(
    sqlite_registry,
    sqlite_store_admin,
    sqlite_pool_factory,
    fast_hasher,
    tenancy_settings,
) -> TenancyRuntime:
    """Runtime served by api_client; the application lifespan starts it."""
    return TenancyRuntime(
        registry=sqlite_registry,
        store_admin=sqlite_store_admin,
        pool_factory=sqlite_pool_factory,
        hasher=fast_hasher,
        settings=tenancy_settings,
    )


@pytest_asyncio.fixture
async def api_client(api_runtime):
    """HTTP client for an application whose runtime uses SQLite stores.

    The client never stores cookies; tests send them explicitly and
    inspect Set-Cookie headers.
    """
    app = create_app(settings=Settings(), runtime_factory=lambda settings: api_runtime)
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        jar = CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))
        async with AsyncClient(
            transport=transport, base_url="http://test", cookies=jar
        ) as client:
            yield client


def _cookie_header(**cookies: str) -> dict[str, str]:
    """Build a Cookie header from name=value pairs."""
    return {"Cookie": "; ".join(f"{name}={value}" for name, value in cookies.items())}


@pytest.fixture
def cookies_for():
    return _cookie_header


@pytest.fixture
def set_cookies():
    """Parse a response's Set-Cookie headers into {name: header}."""

    def parse(response) -> dict[str, str]:
        return {
            header.split("=", 1)[0]: header
            for header in response.headers.get_list("set-cookie")
        }

    return parse
