"""Todos domain layer."""

from todos.domain.todo import Todo, TodoChanges

__all__ = ["Todo", "TodoChanges"]
