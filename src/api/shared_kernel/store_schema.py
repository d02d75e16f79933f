"""Schema of a tenant store.

Every tenant (registered user or guest) owns one physical database holding
a single ``todos`` table. The table is defined with SQLAlchemy Core so the
provisioning code and the todo repository share one definition.

Timestamps are integer milliseconds since the epoch.
"""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Integer,
    MetaData,
    Table,
    Text,
    false,
)
from sqlalchemy.schema import CreateTable

store_metadata = MetaData()

todos_table = Table(
    "todos",
    store_metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text, nullable=False),
    Column("description", Text, nullable=True),
    Column("created", BigInteger, nullable=False),
    Column("updated", BigInteger, nullable=False),
    Column("completed", Boolean, nullable=False, server_default=false()),
)


def create_todos_table_ddl() -> CreateTable:
    """Return an idempotent CREATE TABLE IF NOT EXISTS statement for todos."""
    return CreateTable(todos_table, if_not_exists=True)
