"""Tenancy application service.

The single facade route handlers talk to. It strings identity resolution,
pool reconciliation, registration, login and the guest lifecycle
together, and turns unresolvable requests into authentication errors
that carry the credentials to clear.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from shared_kernel.middleware import TenantContext
from tenancy.application.identity_resolver import ClearCredential, resolve_identity
from tenancy.application.observability import DefaultTenancyProbe, TenancyProbe
from tenancy.application.provisioner import Provisioner
from tenancy.application.reconciler import PoolReconciler
from tenancy.application.session_lifecycle import (
    GuestSession,
    SessionLifecycleManager,
)
from tenancy.domain.value_objects import (
    CredentialClaims,
    CredentialKind,
    NoIdentity,
    ResolvedGuest,
    ResolvedUser,
    StoreName,
    TenantRecord,
    TenantType,
)
from tenancy.ports.exceptions import (
    AuthenticationRequiredError,
    DuplicateRegistrationError,
    InvalidCredentialsError,
    StaleCredentialError,
)
from tenancy.ports.handles import PoolHandle
from tenancy.ports.repositories import IPasswordHasher, IPoolCache, ITenantRegistry


@dataclass(frozen=True)
class TenantAttachment:
    """A request successfully routed to its tenant's store."""

    context: TenantContext
    handle: PoolHandle


@dataclass(frozen=True)
class SessionValidation:
    """Outcome of validating the credentials a request carries."""

    valid: bool
    tenant_type: TenantType | None = None
    user_id: str | None = None
    email: str | None = None
    guest_token: str | None = None


class _ClearingRecorder:
    """Forwards credential clears and remembers which ones happened."""

    def __init__(self, clear_credential: ClearCredential):
        self._clear_credential = clear_credential
        self.cleared: list[CredentialKind] = []

    def __call__(self, kind: CredentialKind) -> None:
        if kind not in self.cleared:
            self.cleared.append(kind)
        self._clear_credential(kind)


class TenancyService:
    """Application service for session routing and tenant lifecycle."""

    def __init__(
        self,
        registry: ITenantRegistry,
        hasher: IPasswordHasher,
        provisioner: Provisioner,
        reconciler: PoolReconciler,
        sessions: SessionLifecycleManager,
        cache: IPoolCache,
        probe: TenancyProbe | None = None,
    ):
        """Initialize TenancyService with dependencies.

        Args:
            registry: Durable user to store mapping
            hasher: Password hashing capability
            provisioner: Idempotent store provisioning
            reconciler: Cache-miss recovery from durable state
            sessions: Guest session lifecycle
            cache: Process-wide pool cache
            probe: Optional domain probe for observability
        """
        self._registry = registry
        self._hasher = hasher
        self._provisioner = provisioner
        self._reconciler = reconciler
        self._sessions = sessions
        self._cache = cache
        self._probe = probe or DefaultTenancyProbe()

    async def resolve_and_attach(
        self,
        claims: CredentialClaims,
        clear_credential: ClearCredential,
    ) -> TenantAttachment:
        """Route a request to exactly one tenant store.

        Args:
            claims: Identity claims read from the request
            clear_credential: Callback deleting a transport credential

        Returns:
            TenantAttachment with a handle bound to the tenant's store

        Raises:
            AuthenticationRequiredError: If the request carries no identity
            StaleCredentialError: If the identity no longer resolves; the
                offending credential has already been cleared
            ProvisioningError: If the tenant's store cannot be provisioned
        """
        recorder = _ClearingRecorder(clear_credential)
        identity = resolve_identity(claims, recorder, self._probe)

        if isinstance(identity, NoIdentity):
            raise AuthenticationRequiredError(
                "Not authenticated", cleared=tuple(recorder.cleared)
            )

        handle = await self._reconciler.reconcile(identity)
        if handle is None:
            self._clear_stale(recorder, identity.credential)
            raise StaleCredentialError(
                "Session is no longer valid", cleared=tuple(recorder.cleared)
            )

        return TenantAttachment(
            context=TenantContext(
                tenant_type=identity.tenant_type,
                tenant_key=identity.tenant_key,
                store_name=handle.store_name,
            ),
            handle=handle,
        )

    async def register(self, email: str, password: str) -> TenantRecord:
        """Register a user and eagerly provision their store.

        Returns:
            The new TenantRecord

        Raises:
            DuplicateRegistrationError: If the email is already registered
            ProvisioningError: If the user's store cannot be provisioned
        """
        password_hash = await self._hasher.hash_async(password)
        try:
            record = await self._registry.register(
                email, password_hash, StoreName.for_user(email)
            )
        except DuplicateRegistrationError:
            self._probe.registration_rejected_duplicate()
            raise

        handle = await self._provisioner.ensure_tenant_store(record.store_name)
        await self._cache.put(
            ResolvedUser(user_id=str(record.tenant_id)).tenant_key, handle
        )

        self._probe.user_registered(record.tenant_id, record.store_name.value)
        return record

    async def authenticate(self, email: str, password: str) -> TenantRecord:
        """Check an email/password pair.

        Returns:
            The authenticated user's TenantRecord

        Raises:
            InvalidCredentialsError: If the pair does not authenticate
        """
        try:
            record = await self._registry.verify_credentials(email, password)
        except InvalidCredentialsError:
            self._probe.login_failed()
            raise

        self._probe.login_succeeded(record.tenant_id)
        return record

    def logout(self, clear_credential: ClearCredential) -> None:
        """End a user session by clearing the user credential.

        Never starts a guest session, and leaves the user's store and
        cached pool untouched.
        """
        clear_credential(CredentialKind.USER)
        self._probe.credential_cleared(CredentialKind.USER, reason="logout")

    async def start_guest(self, existing_token: str | None = None) -> GuestSession:
        """Start a guest session, reusing an active token if one is given."""
        return await self._sessions.start_guest_session(existing_token)

    async def end_guest(self, token: str | None) -> bool:
        """End a guest session and destroy its store.

        Raises:
            GuestSessionNotActiveError: If no token was supplied
        """
        return await self._sessions.end_guest_session(token)

    async def validate(
        self,
        claims: CredentialClaims,
        clear_credential: ClearCredential,
    ) -> SessionValidation:
        """Report which session, if any, the request's credentials carry.

        Unlike resolve_and_attach, a request without credentials is a
        valid question with a negative answer rather than an error.

        Raises:
            StaleCredentialError: If a credential is present but no longer
                resolves; it has already been cleared
        """
        recorder = _ClearingRecorder(clear_credential)
        identity = resolve_identity(claims, recorder, self._probe)

        if isinstance(identity, NoIdentity):
            return SessionValidation(valid=False)

        if isinstance(identity, ResolvedGuest):
            if await self._sessions.is_active(identity.token):
                return SessionValidation(
                    valid=True,
                    tenant_type=TenantType.GUEST,
                    guest_token=identity.token,
                )
        else:
            record = await self._lookup_user(identity)
            if record is not None:
                return SessionValidation(
                    valid=True,
                    tenant_type=TenantType.USER,
                    user_id=str(record.tenant_id),
                    email=record.email,
                )

        self._clear_stale(recorder, identity.credential)
        raise StaleCredentialError(
            "Session is no longer valid", cleared=tuple(recorder.cleared)
        )

    async def _lookup_user(self, identity: ResolvedUser) -> TenantRecord | None:
        try:
            return await self._registry.lookup_by_id(identity.user_id)
        except (SQLAlchemyError, OSError) as e:
            self._probe.registry_lookup_failed(e)
            return None

    def _clear_stale(
        self, recorder: _ClearingRecorder, credential: CredentialKind
    ) -> None:
        recorder(credential)
        self._probe.credential_cleared(credential, reason="stale")
