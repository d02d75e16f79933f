"""Todo repository over a tenant store handle.

Every statement runs on a connection checked out of the handle the
request was attached to, so a repository instance can only ever see the
store of the tenant it was built for.
"""

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy import Row, delete, insert, select, update

from infrastructure.database.models import epoch_millis
from shared_kernel.middleware import StoreHandle
from shared_kernel.store_schema import todos_table
from todos.domain import Todo, TodoChanges
from todos.ports.exceptions import EmptyUpdateError, TodoNotFoundError
from todos.ports.repositories import ITodoRepository


class TodoRepository(ITodoRepository):
    """SQLAlchemy Core implementation of ITodoRepository."""

    def __init__(
        self,
        handle: StoreHandle,
        clock: Callable[[], int] = epoch_millis,
    ):
        """Initialize the repository.

        Args:
            handle: Store handle of the current tenant
            clock: Millisecond-epoch clock for timestamps
        """
        self._handle = handle
        self._clock = clock

    async def list(self) -> list[Todo]:
        stmt = select(todos_table).order_by(
            todos_table.c.completed.asc(),
            todos_table.c.updated.desc(),
            todos_table.c.id.desc(),
        )
        async with self._handle.begin() as conn:
            result = await conn.execute(stmt)
            return [self._to_domain(row) for row in result]

    async def get(self, todo_id: int) -> Todo:
        async with self._handle.begin() as conn:
            result = await conn.execute(
                select(todos_table).where(todos_table.c.id == todo_id)
            )
            row = result.one_or_none()

        if row is None:
            raise TodoNotFoundError(todo_id)
        return self._to_domain(row)

    async def create(
        self, title: str, description: str = "", completed: bool = False
    ) -> Todo:
        now = self._clock()
        async with self._handle.begin() as conn:
            result = await conn.execute(
                insert(todos_table).values(
                    title=title,
                    description=description,
                    created=now,
                    updated=now,
                    completed=completed,
                )
            )
            todo_id = result.inserted_primary_key[0]

        return Todo(
            id=todo_id,
            title=title,
            description=description,
            created=now,
            updated=now,
            completed=completed,
        )

    async def update(self, todo_id: int, changes: TodoChanges) -> Todo:
        if changes.is_empty:
            raise EmptyUpdateError("No fields to update")

        stmt = (
            update(todos_table)
            .where(todos_table.c.id == todo_id)
            .values(**changes.as_values(), updated=self._clock())
        )
        async with self._handle.begin() as conn:
            result = await conn.execute(stmt)
            if result.rowcount == 0:
                raise TodoNotFoundError(todo_id)
            row = (
                await conn.execute(
                    select(todos_table).where(todos_table.c.id == todo_id)
                )
            ).one()

        return self._to_domain(row)

    async def delete(self, todo_id: int) -> None:
        async with self._handle.begin() as conn:
            result = await conn.execute(
                delete(todos_table).where(todos_table.c.id == todo_id)
            )
            if result.rowcount == 0:
                raise TodoNotFoundError(todo_id)

    @staticmethod
    def _to_domain(row: Row) -> Todo:
        return Todo(
            id=row.id,
            title=row.title,
            description=row.description or "",
            created=row.created,
            updated=row.updated,
            completed=bool(row.completed),
        )
