"""Unit tests for TodoRepository over a SQLite tenant store."""

import itertools

import pytest
import pytest_asyncio

from tenancy.application.provisioner import Provisioner
from tenancy.domain.value_objects import StoreName
from todos.domain import TodoChanges
from todos.infrastructure.todo_repository import TodoRepository
from todos.ports.exceptions import EmptyUpdateError, TodoNotFoundError
from todos.ports.repositories import ITodoRepository


@pytest_asyncio.fixture
async def store_handle(sqlite_store_admin, sqlite_pool_factory):
    provisioner = Provisioner(sqlite_store_admin, sqlite_pool_factory, timeout_seconds=5)
    handle = await provisioner.ensure_tenant_store(StoreName.for_user("a@x.com"))
    yield handle
    await handle.close()


@pytest.fixture
def repo(store_handle):
    return TodoRepository(store_handle, clock=itertools.count(1_000).__next__)


class TestCreateAndGet:
    """Tests for create and get."""

    def test_implements_port(self, repo):
        assert isinstance(repo, ITodoRepository)

    @pytest.mark.asyncio
    async def test_create_applies_defaults(self, repo):
        todo = await repo.create("buy milk")

        assert todo.id is not None
        assert todo.title == "buy milk"
        assert todo.description == ""
        assert todo.completed is False
        assert todo.created == todo.updated

    @pytest.mark.asyncio
    async def test_get_returns_stored_row(self, repo):
        created = await repo.create("a", description="details", completed=True)

        fetched = await repo.get(created.id)

        assert fetched == created

    @pytest.mark.asyncio
    async def test_get_missing(self, repo):
        with pytest.raises(TodoNotFoundError) as exc_info:
            await repo.get(404)
        assert exc_info.value.todo_id == 404


class TestList:
    """Tests for list ordering."""

    @pytest.mark.asyncio
    async def test_empty(self, repo):
        assert await repo.list() == []

    @pytest.mark.asyncio
    async def test_open_first_then_most_recently_updated(self, repo):
        first = await repo.create("first")
        await repo.create("second")
        await repo.create("done", completed=True)
        assert [t.title for t in await repo.list()] == ["second", "first", "done"]

        await repo.update(first.id, TodoChanges(description="touched"))

        assert [t.title for t in await repo.list()] == ["first", "second", "done"]


class TestUpdate:
    """Tests for partial updates."""

    @pytest.mark.asyncio
    async def test_only_supplied_fields_change(self, repo):
        created = await repo.create("x", description="keep")

        updated = await repo.update(created.id, TodoChanges(completed=True))

        assert updated.title == "x"
        assert updated.description == "keep"
        assert updated.completed is True
        assert updated.updated > created.updated
        assert updated.created == created.created

    @pytest.mark.asyncio
    async def test_can_reopen(self, repo):
        created = await repo.create("x", completed=True)

        updated = await repo.update(created.id, TodoChanges(completed=False))

        assert updated.completed is False

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, repo):
        created = await repo.create("x")

        with pytest.raises(EmptyUpdateError):
            await repo.update(created.id, TodoChanges())

    @pytest.mark.asyncio
    async def test_missing(self, repo):
        with pytest.raises(TodoNotFoundError):
            await repo.update(99, TodoChanges(title="y"))


class TestDelete:
    """Tests for delete."""

    @pytest.mark.asyncio
    async def test_delete(self, repo):
        created = await repo.create("x")

        await repo.delete(created.id)

        assert await repo.list() == []

    @pytest.mark.asyncio
    async def test_delete_missing(self, repo):
        with pytest.raises(TodoNotFoundError):
            await repo.delete(99)
