"""Exceptions for the todos bounded context.

Errors here are local to one tenant's data and never affect pool routing.
"""

from __future__ import annotations


class TodoNotFoundError(Exception):
    """Raised when a todo id does not exist in the tenant's store."""

    def __init__(self, todo_id: int):
        super().__init__(f"Todo {todo_id} not found")
        self.todo_id = todo_id


class EmptyUpdateError(Exception):
    """Raised when a partial update changes nothing."""

    pass
