"""Repository protocol for the todos bounded context."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from todos.domain import Todo, TodoChanges


@runtime_checkable
class ITodoRepository(Protocol):
    """Todo persistence within exactly one tenant store."""

    async def list(self) -> list[Todo]:
        """List all todos, open ones first, most recently updated first."""
        ...

    async def get(self, todo_id: int) -> Todo:
        """Get one todo.

        Raises:
            TodoNotFoundError: If the id does not exist
        """
        ...

    async def create(
        self, title: str, description: str = "", completed: bool = False
    ) -> Todo:
        """Insert a todo."""
        ...

    async def update(self, todo_id: int, changes: TodoChanges) -> Todo:
        """Apply a partial update and bump the modification timestamp.

        Raises:
            EmptyUpdateError: If the update changes nothing
            TodoNotFoundError: If the id does not exist
        """
        ...

    async def delete(self, todo_id: int) -> None:
        """Delete a todo.

        Raises:
            TodoNotFoundError: If the id does not exist
        """
        ...
