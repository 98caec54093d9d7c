"""Unit tests for custom exception classes."""

import pytest

from flowkit.exceptions import (
    AccountCreateFailed,
    AmbiguousDeployment,
    BadKeyConfig,
    ConfigMissing,
    FlowkitError,
    GatewayError,
    ImportCycle,
    MissingCredentials,
    MissingTargetAccount,
    NotFoundError,
    OutdatedFormat,
    ParseError,
    ProjectDeployError,
    RoleMismatch,
    UnpreparedTransaction,
    UnresolvedImport,
    ValidationError,
)


class TestExceptionCatching:
    """Test that exceptions can be caught as their builtin types."""

    def test_catch_config_missing_as_file_not_found_error(self):
        """Test that ConfigMissing can be caught as FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            raise ConfigMissing("test")

    @pytest.mark.parametrize(
        "exc_class",
        [
            OutdatedFormat,
            ParseError,
            ValidationError,
            BadKeyConfig,
            AmbiguousDeployment,
            RoleMismatch,
        ],
    )
    def test_catch_as_value_error(self, exc_class):
        """Test that configuration and input errors are ValueErrors."""
        with pytest.raises(ValueError):
            raise exc_class("test")

    @pytest.mark.parametrize("exc_class", [NotFoundError, UnresolvedImport, MissingTargetAccount])
    def test_catch_as_lookup_error(self, exc_class):
        """Test that lookup failures are LookupErrors."""
        with pytest.raises(LookupError):
            raise exc_class("test")

    @pytest.mark.parametrize(
        "exc_class",
        [UnpreparedTransaction, GatewayError, AccountCreateFailed, MissingCredentials],
    )
    def test_catch_as_runtime_error(self, exc_class):
        """Test that runtime failures are RuntimeErrors."""
        with pytest.raises(RuntimeError):
            raise exc_class("test")

    def test_catch_all_as_flowkit_error(self):
        """Test that all custom exceptions can be caught as FlowkitError."""
        exceptions = [
            ConfigMissing("test"),
            ParseError("test"),
            NotFoundError("test"),
            ImportCycle("test", ["A", "B"]),
            GatewayError("test"),
            ProjectDeployError(),
        ]

        for exc in exceptions:
            with pytest.raises(FlowkitError):
                raise exc


class TestImportCycle:
    """Test the cycle carried by ImportCycle."""

    def test_keeps_cycle(self):
        """Test that the cycle members are available on the error."""
        err = ImportCycle("cycle", ["Foo", "Bar"])
        assert err.cycle == ["Foo", "Bar"]
        assert str(err) == "cycle"

    def test_defaults_to_empty_cycle(self):
        """Test that the cycle defaults to an empty list."""
        assert ImportCycle("cycle").cycle == []


class TestProjectDeployError:
    """Test aggregation of per-contract deployment errors."""

    def test_empty_is_falsy(self):
        """Test that an error without contracts is falsy."""
        assert not ProjectDeployError()

    def test_add_wraps_cause(self):
        """Test that added errors are wrapped with their context message."""
        err = ProjectDeployError()
        cause = GatewayError("boom")
        err.add("Kibble", cause, "failed to send deployment transaction")

        assert err
        wrapped = err.contracts["Kibble"]
        assert str(wrapped) == "failed to send deployment transaction: boom"
        assert wrapped.__cause__ is cause

    def test_str_lists_every_contract(self):
        """Test that the message names every failed contract."""
        err = ProjectDeployError()
        err.add("Foo", ValueError("a"), "first")
        err.add("Bar", ValueError("b"), "second")

        assert str(err) == "Foo: first: a, Bar: second: b"
