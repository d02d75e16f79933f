"""HTTP routes for the current tenant's todos."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from todos.dependencies import get_todo_repository
from todos.infrastructure.todo_repository import TodoRepository
from todos.ports.exceptions import EmptyUpdateError, TodoNotFoundError
from todos.presentation.models import (
    CreateTodoRequest,
    TodoResponse,
    UpdateTodoRequest,
)

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
)


@router.get("")
async def list_todos(
    repository: Annotated[TodoRepository, Depends(get_todo_repository)],
) -> list[TodoResponse]:
    """List todos, open ones first, most recently updated first."""
    todos = await repository.list()
    return [TodoResponse.from_domain(todo) for todo in todos]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_todo(
    body: CreateTodoRequest,
    repository: Annotated[TodoRepository, Depends(get_todo_repository)],
) -> TodoResponse:
    """Create a todo."""
    todo = await repository.create(
        title=body.title,
        description=body.description,
        completed=body.completed,
    )
    return TodoResponse.from_domain(todo)


@router.get("/{todo_id}")
async def get_todo(
    todo_id: int,
    repository: Annotated[TodoRepository, Depends(get_todo_repository)],
) -> TodoResponse:
    """Get a todo by id.

    Raises:
        HTTPException: 404 if the todo does not exist
    """
    try:
        todo = await repository.get(todo_id)
    except TodoNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e
    return TodoResponse.from_domain(todo)


@router.patch("/{todo_id}")
async def update_todo(
    todo_id: int,
    body: UpdateTodoRequest,
    repository: Annotated[TodoRepository, Depends(get_todo_repository)],
) -> TodoResponse:
    """Partially update a todo.

    Raises:
        HTTPException: 400 if the body changes nothing
        HTTPException: 404 if the todo does not exist
    """
    try:
        todo = await repository.update(todo_id, body.to_domain())
    except EmptyUpdateError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    except TodoNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e
    return TodoResponse.from_domain(todo)


@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_todo(
    todo_id: int,
    repository: Annotated[TodoRepository, Depends(get_todo_repository)],
) -> None:
    """Delete a todo.

    Raises:
        HTTPException: 404 if the todo does not exist
    """
    try:
        await repository.delete(todo_id)
    except TodoNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e
