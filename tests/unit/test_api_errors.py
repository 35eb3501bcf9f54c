"""Tests for API error classes: HTTP status codes and error codes."""

import pytest

from jobmarket.core.errors import (
    APIError,
    ConfigurationError,
    InternalError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)


class TestAPIError:
    """Tests for base APIError class."""

    def test_api_error_has_required_attributes(self):
        """APIError should have code, message, status_code, details."""
        error = APIError(
            code="TEST_ERROR",
            message="Test message",
            status_code=418,
            details=[{"field": "test"}],
        )
        assert error.code == "TEST_ERROR"
        assert error.message == "Test message"
        assert error.status_code == 418
        assert error.details == [{"field": "test"}]

    def test_api_error_defaults_to_500_without_details(self):
        """APIError should default to 500 with no details."""
        error = APIError(code="TEST", message="Test")
        assert error.status_code == 500
        assert error.details is None
        assert str(error) == "Test"


@pytest.mark.parametrize(
    ("error", "code", "status_code"),
    [
        (ValidationError("bad"), "VALIDATION_ERROR", 400),
        (UnauthorizedError(), "UNAUTHORIZED", 401),
        (NotFoundError("Listing"), "NOT_FOUND", 404),
        (InvalidStateError("nope"), "INVALID_STATE_TRANSITION", 422),
        (InternalError(), "INTERNAL_ERROR", 500),
        (ConfigurationError("RESEND_API_KEY"), "CONFIGURATION_ERROR", 503),
    ],
)
def test_error_codes_and_statuses(error, code, status_code):
    """Each error class carries its code and HTTP status."""
    assert error.code == code
    assert error.status_code == status_code


class TestNotFoundError:
    """Tests for NotFoundError (404)."""

    def test_message_includes_resource_and_id(self):
        """The message names the resource and the missing ID."""
        error = NotFoundError("Listing", "abc-123")
        assert error.message == "Listing with id 'abc-123' not found"

    def test_message_without_id(self):
        """Without an ID the message names only the resource."""
        assert NotFoundError("Listing").message == "Listing not found"


class TestInvalidStateError:
    """Tests for InvalidStateError (422)."""

    def test_custom_code(self):
        """Callers can supply a domain-specific code."""
        error = InvalidStateError("Failed to extend job.", code="EXTENSION_FAILED")
        assert error.code == "EXTENSION_FAILED"
        assert error.status_code == 422


class TestConfigurationError:
    """Tests for ConfigurationError (503)."""

    def test_names_setting_without_value(self):
        """The message names the missing setting only."""
        error = ConfigurationError("RESEND_API_KEY")
        assert error.message == "RESEND_API_KEY is not configured"


class TestInternalError:
    """Tests for InternalError (500)."""

    def test_custom_code_and_message(self):
        """Scheduled runs report their own failure code."""
        error = InternalError(message="Sweep failed", code="EXPIRATION_FAILED")
        assert error.code == "EXPIRATION_FAILED"
        assert error.message == "Sweep failed"
