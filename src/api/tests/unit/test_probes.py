"""Unit tests for domain probes.

Tests that domain probes correctly capture domain events
following the Domain Oriented Observability pattern.
"""

from unittest.mock import MagicMock

import structlog

from infrastructure.observability import (
    DefaultConnectionProbe,
    DefaultStartupProbe,
    ObservationContext,
)
from tenancy.application.observability import DefaultTenancyProbe
from tenancy.infrastructure.observability import (
    DefaultRegistryProbe,
    DefaultStoreProbe,
)

USER_KEY = "user_42"
GUEST_KEY = "0123456789abcdef0123456789abcdef"
GUEST_STORE = "todos_guest_" + "a" * 32


class TestConnectionProbe:
    """Tests for ConnectionProbe protocol and implementation."""

    def test_default_probe_creates_with_default_logger(self):
        """Default probe should work without explicit logger."""
        probe = DefaultConnectionProbe()
        assert probe._logger is not None

    def test_default_probe_accepts_custom_logger(self):
        """Default probe should accept a custom logger."""
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultConnectionProbe(logger=mock_logger)
        assert probe._logger is mock_logger

    def test_connection_verified_logs_info(self):
        """connection_verified should log with role, host and database."""
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultConnectionProbe(logger=mock_logger)

        probe.connection_verified(role="registry", host="localhost", database="db")

        mock_logger.info.assert_called_once_with(
            "database_connection_verified",
            role="registry",
            host="localhost",
            database="db",
        )

    def test_connection_failed_logs_error(self):
        """connection_failed should log error with the error message."""
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultConnectionProbe(logger=mock_logger)
        error = Exception("Connection refused")

        probe.connection_failed(
            role="admin", host="localhost", database="postgres", error=error
        )

        mock_logger.error.assert_called_once_with(
            "database_connection_failed",
            role="admin",
            host="localhost",
            database="postgres",
            error="Connection refused",
        )

    def test_engine_disposed_logs_info(self):
        """engine_disposed should log the engine role."""
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultConnectionProbe(logger=mock_logger)

        probe.engine_disposed(role="registry")

        mock_logger.info.assert_called_once_with(
            "database_engine_disposed", role="registry"
        )


class TestStartupProbe:
    """Tests for StartupProbe implementation."""

    def test_application_starting_logs_info(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultStartupProbe(logger=mock_logger)

        probe.application_starting(app_name="todos", environment="development")

        mock_logger.info.assert_called_once_with(
            "application_starting", app_name="todos", environment="development"
        )

    def test_tenancy_runtime_failed_logs_error_with_hint(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultStartupProbe(logger=mock_logger)

        probe.tenancy_runtime_failed(ConnectionError("refused"))

        call_kwargs = mock_logger.error.call_args.kwargs
        assert mock_logger.error.call_args.args == ("tenancy_runtime_failed",)
        assert call_kwargs["error"] == "refused"
        assert call_kwargs["error_type"] == "ConnectionError"
        assert "message" in call_kwargs

    def test_application_stopped_logs_pool_count(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultStartupProbe(logger=mock_logger)

        probe.application_stopped(pools_closed=3)

        mock_logger.info.assert_called_once_with(
            "application_stopped", pools_closed=3
        )


class TestTenancyProbe:
    """Tests for TenancyProbe implementation."""

    def test_identity_conflict_logs_warning(self):
        """A request carrying both claims is worth a warning."""
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultTenancyProbe(logger=mock_logger)

        probe.identity_conflict(user_id="42")

        mock_logger.warning.assert_called_once_with(
            "identity_conflict_guest_discarded", user_id="42"
        )

    def test_credential_cleared_logs_credential_kind_and_reason(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultTenancyProbe(logger=mock_logger)

        probe.credential_cleared(credential="guest", reason="store_missing")

        mock_logger.info.assert_called_once_with(
            "credential_cleared", credential="guest", reason="store_missing"
        )

    def test_provisioning_failed_logs_error_type(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultTenancyProbe(logger=mock_logger)

        probe.provisioning_failed(GUEST_STORE, TimeoutError("too slow"))

        mock_logger.error.assert_called_once_with(
            "tenant_store_provisioning_failed",
            store_name=GUEST_STORE,
            error="too slow",
            error_type="TimeoutError",
        )

    def test_login_failed_does_not_log_which_check_failed(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultTenancyProbe(logger=mock_logger)

        probe.login_failed()

        mock_logger.warning.assert_called_once_with("login_failed")


class TestStoreProbe:
    """Tests for StoreProbe implementation."""

    def test_user_keys_are_logged(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultStoreProbe(logger=mock_logger)

        probe.pool_evicted(USER_KEY, "todos_user_" + "b" * 32)

        mock_logger.info.assert_called_once_with(
            "tenant_pool_evicted",
            tenant_key=USER_KEY,
            store_name="todos_user_" + "b" * 32,
        )

    def test_guest_keys_are_never_logged(self):
        """Guest keys are bearer tokens; only the store name identifies them."""
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultStoreProbe(logger=mock_logger)

        probe.pool_cached(GUEST_KEY, GUEST_STORE)
        probe.duplicate_pool_discarded(GUEST_KEY, GUEST_STORE)
        probe.pool_evicted_idle(GUEST_KEY, GUEST_STORE, idle_seconds=12.345)

        for call in mock_logger.debug.call_args_list + mock_logger.info.call_args_list:
            assert GUEST_KEY not in call.kwargs.values()
            assert call.kwargs["tenant_key"] == "guest"

        assert mock_logger.info.call_args.kwargs["idle_seconds"] == 12.3

    def test_store_operation_failed_logs_operation(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultStoreProbe(logger=mock_logger)

        probe.store_operation_failed(GUEST_STORE, "drop", RuntimeError("in use"))

        mock_logger.error.assert_called_once_with(
            "tenant_store_operation_failed",
            store_name=GUEST_STORE,
            operation="drop",
            error="in use",
            error_type="RuntimeError",
        )


class TestRegistryProbe:
    """Tests for RegistryProbe implementation."""

    def test_duplicate_email_logs_event_only(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultRegistryProbe(logger=mock_logger)

        probe.duplicate_email()

        mock_logger.info.assert_called_once_with(
            "tenant_registration_duplicate_email"
        )

    def test_tenant_registered_logs_id_and_store(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultRegistryProbe(logger=mock_logger)

        probe.tenant_registered(tenant_id=7, store_name="todos_user_" + "c" * 32)

        mock_logger.info.assert_called_once_with(
            "tenant_registered",
            tenant_id=7,
            store_name="todos_user_" + "c" * 32,
        )


class TestObservationContext:
    """Tests for ObservationContext and probe context binding."""

    def test_as_dict_omits_none_values(self):
        context = ObservationContext(request_id="req-1")

        assert context.as_dict() == {"request_id": "req-1"}

    def test_as_dict_includes_user_tenant_key(self):
        context = ObservationContext(tenant_type="user", tenant_key=USER_KEY)

        assert context.as_dict() == {"tenant_type": "user", "tenant_key": USER_KEY}

    def test_as_dict_never_includes_guest_tenant_key(self):
        context = ObservationContext(tenant_type="guest", tenant_key=GUEST_KEY)

        assert context.as_dict() == {"tenant_type": "guest"}

    def test_with_store_and_extra_return_new_contexts(self):
        base = ObservationContext(request_id="req-1")

        derived = base.with_store(GUEST_STORE).with_extra(attempt=2)

        assert base.store_name is None
        assert derived.as_dict() == {
            "request_id": "req-1",
            "store_name": GUEST_STORE,
            "attempt": 2,
        }

    def test_with_context_keeps_logger_and_merges_context(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultStoreProbe(logger=mock_logger)
        context = ObservationContext(request_id="req-9", tenant_type="guest")

        bound = probe.with_context(context)
        bound.store_dropped(GUEST_STORE)

        assert bound is not probe
        assert bound._logger is mock_logger
        mock_logger.info.assert_called_once_with(
            "tenant_store_dropped",
            store_name=GUEST_STORE,
            request_id="req-9",
            tenant_type="guest",
        )

    def test_tenancy_probe_with_context(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultTenancyProbe(logger=mock_logger).with_context(
            ObservationContext(request_id="req-3")
        )

        probe.no_identity()

        mock_logger.debug.assert_called_once_with(
            "identity_missing", request_id="req-3"
        )
