"""Create the registry database and its users table for local development.

Usage: python scripts/setup_dev_db.py [--no-test-user]

Idempotent. Outside production it also registers a test user for the
current TODOS_ENVIRONMENT (password "dev-password") and provisions that
user's store. In real deployments, run ``alembic upgrade head`` from
src/api instead.
"""

import asyncio
import sys
from pathlib import Path

import structlog
from sqlalchemy import text

root_path = Path(__file__).parent.parent
sys.path.insert(0, str(root_path / "src" / "api"))

from infrastructure.database.engines import (  # noqa: E402
    create_admin_engine,
    create_registry_engine,
)
from infrastructure.database.models import Base  # noqa: E402
from infrastructure.logging import configure_logging  # noqa: E402
from infrastructure.settings import get_settings  # noqa: E402
from tenancy.infrastructure import models  # noqa: E402, F401
from tenancy.ports.exceptions import DuplicateRegistrationError  # noqa: E402
from tenancy.runtime import TenancyRuntime  # noqa: E402

TEST_USER_PASSWORD = "dev-password"

logger = structlog.get_logger()


async def create_registry_database() -> None:
    settings = get_settings().database
    admin_engine = create_admin_engine(settings)
    try:
        async with admin_engine.connect() as conn:
            exists = await conn.scalar(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": settings.registry_database},
            )
            if exists:
                logger.info("registry_database_exists", database=settings.registry_database)
                return
            quoted = admin_engine.dialect.identifier_preparer.quote_identifier(
                settings.registry_database
            )
            await conn.execute(text(f"CREATE DATABASE {quoted} ENCODING 'UTF8'"))
            logger.info("registry_database_created", database=settings.registry_database)
    finally:
        await admin_engine.dispose()


async def create_registry_tables() -> None:
    registry_engine = create_registry_engine(get_settings().database)
    try:
        async with registry_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("registry_tables_created")
    finally:
        await registry_engine.dispose()


async def register_test_user() -> None:
    settings = get_settings()
    suffix = "dev" if settings.environment == "development" else settings.environment
    email = f"test@{suffix}.local"

    runtime = TenancyRuntime.from_settings(settings.database, settings.tenancy)
    try:
        await runtime.start()
        record = await runtime.service.register(email, TEST_USER_PASSWORD)
        logger.info(
            "test_user_registered",
            email=email,
            store_name=record.store_name.value,
        )
    except DuplicateRegistrationError:
        logger.info("test_user_exists", email=email)
    finally:
        await runtime.shutdown()


async def main(with_test_user: bool) -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("dev_db_setup_starting", environment=settings.environment)

    await create_registry_database()
    await create_registry_tables()

    if with_test_user and settings.environment != "production":
        await register_test_user()

    logger.info("dev_db_setup_finished", environment=settings.environment)


if __name__ == "__main__":
    asyncio.run(main(with_test_user="--no-test-user" not in sys.argv[1:]))
