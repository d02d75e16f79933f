"""Database-specific exceptions shared across bounded contexts."""


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when a database connection cannot be established."""

    pass


class StoreOperationError(DatabaseError):
    """Raised when a database-level operation on a tenant store fails."""

    def __init__(self, message: str, store_name: str | None = None):
        super().__init__(message)
        self.store_name = store_name
