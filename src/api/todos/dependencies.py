"""FastAPI dependencies for the todos bounded context."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from tenancy.application.service import TenantAttachment
from tenancy.dependencies import get_tenant_attachment
from todos.infrastructure.todo_repository import TodoRepository


def get_todo_repository(
    attachment: Annotated[TenantAttachment, Depends(get_tenant_attachment)],
) -> TodoRepository:
    """Get a todo repository bound to the current tenant's store.

    Resolution failures surface as 401 through the tenancy error handler,
    before any route body runs.
    """
    return TodoRepository(attachment.handle)
