"""Todo item as stored in a tenant's store."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Todo:
    """A single todo item.

    Timestamps are integer milliseconds since the epoch. ``updated`` is
    bumped by every change, including one that only toggles completion.
    """

    id: int
    title: str
    description: str
    created: int
    updated: int
    completed: bool


@dataclass(frozen=True)
class TodoChanges:
    """A partial update. Fields left as None are not touched."""

    title: str | None = None
    description: str | None = None
    completed: bool | None = None

    @property
    def is_empty(self) -> bool:
        return self.title is None and self.description is None and self.completed is None

    def as_values(self) -> dict[str, str | bool]:
        """Return only the fields that change, keyed by column name."""
        values: dict[str, str | bool] = {}
        if self.title is not None:
            values["title"] = self.title
        if self.description is not None:
            values["description"] = self.description
        if self.completed is not None:
            values["completed"] = self.completed
        return values
