"""Unit tests for engine-backed pool handles and the store-pool factory."""

from unittest.mock import create_autospec

import pytest
from pydantic import SecretStr
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from infrastructure.settings import DatabaseSettings
from tenancy.domain.value_objects import StoreName
from tenancy.infrastructure.observability import StoreProbe
from tenancy.infrastructure.store_pool import (
    EnginePoolHandle,
    SqlAlchemyStorePoolFactory,
)
from tenancy.ports.exceptions import PoolClosedError
from tenancy.ports.handles import PoolHandle


@pytest.fixture
def mock_probe():
    return create_autospec(StoreProbe, instance=True)


@pytest.fixture
def handle(tmp_path, mock_probe):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    ticks = iter(range(100))
    return EnginePoolHandle(
        "todos_user_" + "a" * 32,
        engine,
        probe=mock_probe,
        clock=lambda: float(next(ticks)),
    )


class TestEnginePoolHandle:
    """Tests for EnginePoolHandle."""

    def test_satisfies_pool_handle_protocol(self, handle):
        assert isinstance(handle, PoolHandle)

    @pytest.mark.asyncio
    async def test_begin_runs_statements(self, handle):
        async with handle.begin() as conn:
            result = await conn.execute(text("SELECT 1"))
            assert result.scalar_one() == 1
        await handle.close()

    @pytest.mark.asyncio
    async def test_begin_touches_handle(self, handle):
        before = handle.last_used
        async with handle.begin():
            pass
        assert handle.last_used > before
        await handle.close()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, handle, mock_probe):
        await handle.close()
        await handle.close()

        assert handle.closed
        mock_probe.pool_closed.assert_called_once_with(handle.store_name)

    @pytest.mark.asyncio
    async def test_begin_after_close_raises(self, handle):
        await handle.close()

        with pytest.raises(PoolClosedError):
            async with handle.begin():
                pass


class TestSqlAlchemyStorePoolFactory:
    """Tests for SqlAlchemyStorePoolFactory."""

    @pytest.mark.asyncio
    async def test_creates_bounded_pool_for_store(self, mock_probe):
        settings = DatabaseSettings(
            host="localhost",
            port=5432,
            username="todos",
            password=SecretStr("secret"),
            tenant_pool_max_connections=3,
        )
        factory = SqlAlchemyStorePoolFactory(settings, probe=mock_probe)
        store_name = StoreName.for_user("a@x.com")

        handle = factory.create_pool(store_name)

        assert handle.store_name == store_name.value
        assert not handle.closed
        mock_probe.pool_created.assert_called_once_with(
            store_name=store_name.value, max_connections=3
        )
        await handle.close()
