"""Tests for shared/exceptions.py."""

from shared.exceptions import (
    EmoteMarketError,
    NotFoundError,
    ValidationError,
    ConflictError,
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
)


class TestEmoteMarketError:
    def test_stores_message(self):
        """EmoteMarketError should store message."""
        error = EmoteMarketError("Test error")
        assert error.message == "Test error"
        assert str(error) == "Test error"

    def test_default_code(self):
        """EmoteMarketError should default code to class name."""
        error = EmoteMarketError("Test error")
        assert error.code == "EmoteMarketError"

    def test_custom_code(self):
        """EmoteMarketError should accept custom code."""
        error = EmoteMarketError("Test error", code="CUSTOM_ERROR")
        assert error.code == "CUSTOM_ERROR"

    def test_default_details(self):
        """EmoteMarketError should default details to empty dict."""
        error = EmoteMarketError("Test error")
        assert error.details == {}

    def test_to_dict(self):
        """EmoteMarketError should convert to dict."""
        error = EmoteMarketError("Test error", code="TEST_ERROR", details={"key": "value"})
        result = error.to_dict()

        assert result["error"] == "TEST_ERROR"
        assert result["message"] == "Test error"
        assert result["details"]["key"] == "value"


class TestSubclasses:
    def test_not_found_error_inherits(self):
        """NotFoundError should inherit from EmoteMarketError."""
        error = NotFoundError("Resource not found")
        assert isinstance(error, EmoteMarketError)
        assert error.code == "NotFoundError"

    def test_validation_error_with_details(self):
        """ValidationError should support field-level details."""
        error = ValidationError(
            "Validation failed",
            details={"fields": {"price": "Too low"}}
        )
        assert isinstance(error, EmoteMarketError)
        assert error.details["fields"]["price"] == "Too low"

    def test_conflict_error_inherits(self):
        """ConflictError should inherit from EmoteMarketError."""
        assert isinstance(ConflictError("Already owned"), EmoteMarketError)

    def test_auth_errors_inherit(self):
        """Authentication and authorization errors share the base."""
        assert isinstance(AuthenticationError("Invalid token"), EmoteMarketError)
        assert isinstance(AuthorizationError("Forbidden"), EmoteMarketError)


class TestExternalServiceError:
    def test_stores_service(self):
        """ExternalServiceError should store service name."""
        error = ExternalServiceError("Connection failed", service="stripe")
        assert isinstance(error, EmoteMarketError)
        assert error.service == "stripe"

    def test_includes_service_in_details(self):
        """ExternalServiceError should include service in details."""
        error = ExternalServiceError("Connection failed", service="openai")
        assert error.to_dict()["details"]["service"] == "openai"

    def test_preserves_other_details(self):
        """ExternalServiceError should keep caller-supplied details."""
        error = ExternalServiceError(
            "Connection failed", service="s3", details={"key": "emotes/a.png"}
        )
        assert error.details == {"key": "emotes/a.png", "service": "s3"}
