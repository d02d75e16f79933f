"""Database infrastructure - shared connection primitives."""

from infrastructure.database.exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    StoreOperationError,
)

__all__ = [
    "DatabaseConnectionError",
    "DatabaseError",
    "StoreOperationError",
]
