"""End-to-end tenancy scenarios against a live PostgreSQL server."""

import asyncio

import pytest

from tenancy.domain.value_objects import CredentialClaims
from tenancy.ports.exceptions import DuplicateRegistrationError, StaleCredentialError
from todos.domain import TodoChanges
from todos.infrastructure.todo_repository import TodoRepository

pytestmark = pytest.mark.integration


def _ignore(kind) -> None:
    return None


async def _repo(runtime, **claims) -> TodoRepository:
    attachment = await runtime.service.resolve_and_attach(
        CredentialClaims(**claims), _ignore
    )
    return TodoRepository(attachment.handle)


class TestUserStores:
    """Registered users get a durable private store."""

    @pytest.mark.asyncio
    async def test_register_login_round_trip(self, postgres_runtime):
        await postgres_runtime.service.register("a@x.com", "pw1")
        record = await postgres_runtime.service.authenticate("a@x.com", "pw1")

        repo = await _repo(postgres_runtime, user_id=str(record.tenant_id))
        await repo.create("buy milk")

        todos = await repo.list()
        assert [(t.title, t.completed) for t in todos] == [("buy milk", False)]

    @pytest.mark.asyncio
    async def test_duplicate_registration(self, postgres_runtime):
        await postgres_runtime.service.register("a@x.com", "pw1")

        with pytest.raises(DuplicateRegistrationError):
            await postgres_runtime.service.register("a@x.com", "pw2")

    @pytest.mark.asyncio
    async def test_reconciles_after_cache_loss(self, postgres_runtime):
        record = await postgres_runtime.service.register("a@x.com", "pw1")
        repo = await _repo(postgres_runtime, user_id=str(record.tenant_id))
        todo = await repo.create("x")

        await postgres_runtime.cache.close_all()
        repo = await _repo(postgres_runtime, user_id=str(record.tenant_id))
        updated = await repo.update(todo.id, TodoChanges(completed=True))

        assert updated.title == "x"
        assert updated.completed is True


class TestGuestStores:
    """Guest stores are isolated and destroyed on session end."""

    @pytest.mark.asyncio
    async def test_guests_are_isolated(self, postgres_runtime):
        first, second = await asyncio.gather(
            postgres_runtime.service.start_guest(),
            postgres_runtime.service.start_guest(),
        )

        await (await _repo(postgres_runtime, guest_token=first.token)).create("one")

        assert await (await _repo(postgres_runtime, guest_token=second.token)).list() == []

    @pytest.mark.asyncio
    async def test_ended_session_is_stale(self, postgres_runtime, store_admin):
        guest = await postgres_runtime.service.start_guest()
        await postgres_runtime.service.end_guest(guest.token)

        with pytest.raises(StaleCredentialError):
            await _repo(postgres_runtime, guest_token=guest.token)

        assert not await store_admin.store_exists(store_admin.created[0])
