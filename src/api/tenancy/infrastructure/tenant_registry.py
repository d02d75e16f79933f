"""PostgreSQL implementation of ITenantRegistry.

The registry is the durable source of truth for which store belongs to
which registered user. Uniqueness of emails is enforced by the table's
unique constraint, not by pre-checking.
"""

from __future__ import annotations

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tenancy.domain.value_objects import (
    StoreName,
    TenantRecord,
    is_valid_user_id,
    normalize_email,
)
from tenancy.infrastructure.models import UserModel
from tenancy.infrastructure.observability import (
    DefaultRegistryProbe,
    RegistryProbe,
)
from tenancy.ports.exceptions import (
    DuplicateRegistrationError,
    InvalidCredentialsError,
)
from tenancy.ports.repositories import IPasswordHasher, ITenantRegistry


class TenantRegistry(ITenantRegistry):
    """Registry of users backed by the central users database.

    Opens a short-lived session per operation from the injected session
    factory, so a single instance can be shared by concurrent requests.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        hasher: IPasswordHasher,
        probe: RegistryProbe | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            session_factory: Sessionmaker bound to the registry engine
            hasher: Password verification capability
            probe: Optional domain probe for observability
        """
        self._session_factory = session_factory
        self._hasher = hasher
        self._probe = probe or DefaultRegistryProbe()

    async def register(
        self, email: str, password_hash: str, store_name: StoreName
    ) -> TenantRecord:
        """Insert a new registry row.

        Args:
            email: Email address (stored normalized)
            password_hash: Opaque password hash
            store_name: Store derived from the email

        Returns:
            The created TenantRecord

        Raises:
            DuplicateRegistrationError: If the email is already registered
        """
        model = UserModel(
            email=normalize_email(email),
            password_hash=password_hash,
            store_name=store_name.value,
        )
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    session.add(model)
                    await session.flush()
                    record = self._to_record(model)
            except IntegrityError as e:
                self._probe.duplicate_email()
                raise DuplicateRegistrationError("Email is already registered") from e

        self._probe.tenant_registered(record.tenant_id, record.store_name.value)
        return record

    async def lookup_by_id(self, tenant_id: str) -> TenantRecord | None:
        """Retrieve a registry row by its id.

        Args:
            tenant_id: Id as carried by the user credential, in canonical
                decimal form

        Returns:
            The TenantRecord, or None if not found or not a canonical id
        """
        if not is_valid_user_id(tenant_id):
            self._probe.tenant_not_found("id")
            return None
        numeric_id = int(tenant_id)

        async with self._session_factory() as session:
            model = await session.get(UserModel, numeric_id)
            record = self._to_record(model) if model is not None else None

        if record is None:
            self._probe.tenant_not_found("id")
            return None

        self._probe.tenant_retrieved(record.tenant_id)
        return record

    async def lookup_by_email(self, email: str) -> TenantRecord | None:
        """Retrieve a registry row by email.

        Returns:
            The TenantRecord, or None if not found
        """
        found = await self._find_by_email(email)
        return found[0] if found is not None else None

    async def verify_credentials(self, email: str, password: str) -> TenantRecord:
        """Authenticate an email/password pair.

        An unknown email still costs one password verification, and both
        failure modes raise the same error.

        Returns:
            The TenantRecord of the authenticated user

        Raises:
            InvalidCredentialsError: If the email is unknown or the password
                does not match
        """
        found = await self._find_by_email(email)
        if found is None:
            await self._hasher.burn_async(password)
            raise InvalidCredentialsError("Invalid email or password")

        record, password_hash = found
        if not await self._hasher.verify_async(password, password_hash):
            raise InvalidCredentialsError("Invalid email or password")

        return record

    async def ping(self) -> None:
        """Run a trivial query to verify the registry is reachable."""
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))

    async def _find_by_email(self, email: str) -> tuple[TenantRecord, str] | None:
        stmt = select(UserModel).where(UserModel.email == normalize_email(email))
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            found = (
                (self._to_record(model), model.password_hash)
                if model is not None
                else None
            )

        if found is None:
            self._probe.tenant_not_found("email")
            return None

        self._probe.tenant_retrieved(found[0].tenant_id)
        return found

    @staticmethod
    def _to_record(model: UserModel) -> TenantRecord:
        return TenantRecord(
            tenant_id=model.id,
            email=model.email,
            store_name=StoreName(value=model.store_name),
            created_at=model.created,
        )
