"""Tests for trove exception classes."""

import pytest

from trove.exceptions import (
    TroveConfigCorruptError,
    TroveConfigurationError,
    TroveConflictError,
    TroveError,
    TroveFileOperationError,
    TroveInvalidArgumentError,
    TroveIOError,
    TroveNotFoundError,
    TroveNotInitializedError,
    TroveUnresolvedTemplateError,
)


class TestExceptionHierarchy:
    """Test exception class hierarchy and behavior."""

    def test_base_exception(self):
        """Test base TroveError exception."""
        error = TroveError("Test error")
        assert str(error) == "Test error"
        assert isinstance(error, Exception)

    @pytest.mark.parametrize(
        "cls",
        [
            TroveNotFoundError,
            TroveConflictError,
            TroveIOError,
        ],
    )
    def test_file_operation_errors(self, cls):
        """Filesystem errors share a common base."""
        error = cls("boom")
        assert isinstance(error, TroveFileOperationError)
        assert isinstance(error, TroveError)

    @pytest.mark.parametrize(
        "cls", [TroveConfigCorruptError, TroveNotInitializedError]
    )
    def test_configuration_errors(self, cls):
        """Config and locator failures share a common base."""
        assert isinstance(cls("bad"), TroveConfigurationError)

    def test_standalone_errors_are_trove_errors(self):
        assert isinstance(TroveInvalidArgumentError("x"), TroveError)
        assert isinstance(TroveUnresolvedTemplateError("x"), TroveError)


class TestExceptionUsage:
    """Test exception usage patterns."""

    def test_exception_inheritance_catching(self):
        """Test that specific exceptions can be caught as base TroveError."""
        with pytest.raises(TroveError):
            raise TroveConflictError("Specific error")

        with pytest.raises(TroveError):
            raise TroveNotInitializedError("Another specific error")

    def test_io_error_keeps_cause(self):
        """Wrapped OSErrors stay reachable through __cause__."""
        cause = OSError("permission denied")
        try:
            try:
                raise cause
            except OSError as e:
                raise TroveIOError("Could not write") from e
        except TroveIOError as error:
            assert error.__cause__ is cause
