"""Pydantic models for todo API requests and responses."""

from __future__ import annotations

from pydantic import BaseModel, Field

from todos.domain import Todo, TodoChanges


class CreateTodoRequest(BaseModel):
    """Request model for creating a todo."""

    title: str = Field(..., description="Todo title", min_length=1)
    description: str = Field(default="", description="Free-form details")
    completed: bool = Field(default=False)


class UpdateTodoRequest(BaseModel):
    """Request model for partially updating a todo.

    Omitted or null fields are left unchanged.
    """

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    completed: bool | None = None

    def to_domain(self) -> TodoChanges:
        return TodoChanges(
            title=self.title,
            description=self.description,
            completed=self.completed,
        )


class TodoResponse(BaseModel):
    """Response model for a todo."""

    id: int
    title: str
    description: str
    created: int = Field(..., description="Creation time, ms since epoch")
    updated: int = Field(..., description="Last modification, ms since epoch")
    completed: bool

    @classmethod
    def from_domain(cls, todo: Todo) -> TodoResponse:
        return cls(
            id=todo.id,
            title=todo.title,
            description=todo.description,
            created=todo.created,
            updated=todo.updated,
            completed=todo.completed,
        )
