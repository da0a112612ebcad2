"""Unit tests for the exceptions module.

Covers the ErrorCode and Severity enums, the RelayError base class with its
context and fingerprinting, and the request parameter error family.
"""

import pytest

from src.core.exceptions import (
    ErrorCode,
    InvalidRequestParameterError,
    MalformedParameterError,
    MissingParameterError,
    ParameterOutOfBoundsError,
    RelayError,
    RequestDecodingError,
    Severity,
    ValidationError,
)


@pytest.mark.unit
class TestErrorCode:
    """Test the ErrorCode enum functionality."""

    @pytest.mark.parametrize(
        ("enum_value", "expected_string"),
        [
            (ErrorCode.INTERNAL_ERROR, "INTERNAL_ERROR"),
            (ErrorCode.NOT_FOUND, "NOT_FOUND"),
            (ErrorCode.VALIDATION_ERROR, "VALIDATION_ERROR"),
            (ErrorCode.MISSING_PARAMETER, "MISSING_PARAMETER"),
            (ErrorCode.MALFORMED_PARAMETER, "MALFORMED_PARAMETER"),
            (ErrorCode.PARAMETER_OUT_OF_BOUNDS, "PARAMETER_OUT_OF_BOUNDS"),
            (ErrorCode.REQUEST_DECODING_ERROR, "REQUEST_DECODING_ERROR"),
        ],
    )
    def test_error_code_enum_values(
        self, enum_value: ErrorCode, expected_string: str
    ) -> None:
        """Verify all ErrorCode enum values are correctly defined."""
        assert enum_value.value == expected_string


@pytest.mark.unit
class TestRelayError:
    """Test the base exception."""

    def test_accepts_enum_or_string_code(self) -> None:
        """Test that error codes are stored as plain strings."""
        error = RelayError(ErrorCode.INTERNAL_ERROR, "boom")

        assert error.error_code == "INTERNAL_ERROR"
        assert RelayError("CUSTOM", "boom").error_code == "CUSTOM"

    def test_defaults(self) -> None:
        """Test default severity and context."""
        error = RelayError(ErrorCode.INTERNAL_ERROR, "boom")

        assert error.severity == Severity.MEDIUM
        assert error.context == {}
        assert error.cause is None
        assert error.is_expected
        assert not error.should_alert

    def test_cause_is_chained(self) -> None:
        """Test that the cause becomes __cause__."""
        cause = OSError("disk full")
        error = RelayError(ErrorCode.INTERNAL_ERROR, "boom", cause=cause)

        assert error.__cause__ is cause

    @pytest.mark.parametrize(
        ("severity", "expected", "alert"),
        [
            (Severity.LOW, True, False),
            (Severity.MEDIUM, True, False),
            (Severity.HIGH, False, True),
            (Severity.CRITICAL, False, True),
        ],
    )
    def test_severity_classification(
        self, severity: Severity, expected: bool, alert: bool
    ) -> None:
        """Test is_expected and should_alert for every severity."""
        error = RelayError(ErrorCode.INTERNAL_ERROR, "boom", severity)

        assert error.is_expected is expected
        assert error.should_alert is alert

    def test_fingerprint_is_stable_per_raise_site(self) -> None:
        """Test that errors from the same place share a fingerprint."""

        def raise_site() -> RelayError:
            return RelayError(ErrorCode.INTERNAL_ERROR, "boom")

        first, second = raise_site(), raise_site()

        assert first.fingerprint == second.fingerprint
        assert len(first.fingerprint) == 16

    def test_str_and_repr(self) -> None:
        """Test the string representations."""
        error = RelayError(ErrorCode.INTERNAL_ERROR, "boom", context={"k": 1})

        assert str(error) == "[INTERNAL_ERROR] boom"
        assert repr(error) == (
            "RelayError(error_code='INTERNAL_ERROR', message='boom', "
            "severity=MEDIUM, context={'k': 1})"
        )


@pytest.mark.unit
class TestParameterErrors:
    """Test the request parameter exception family."""

    def test_hierarchy(self) -> None:
        """Test that parameter errors are validation errors."""
        parameter_errors = (
            MissingParameterError,
            MalformedParameterError,
            ParameterOutOfBoundsError,
        )
        for cls in parameter_errors:
            assert issubclass(cls, InvalidRequestParameterError)
            assert issubclass(cls, ValidationError)
            assert issubclass(cls, RelayError)

    def test_missing_parameter(self) -> None:
        """Test the missing parameter error."""
        error = MissingParameterError("title")

        assert error.parameter == "title"
        assert error.message == "Missing mandatory parameter: title"
        assert error.error_code == "MISSING_PARAMETER"
        assert error.severity == Severity.LOW
        assert error.context == {"parameter": "title"}

    def test_malformed_parameter_keeps_context_and_cause(self) -> None:
        """Test that extra context is merged after the parameter name."""
        cause = ValueError("invalid literal")
        error = MalformedParameterError(
            "age", "not a number", context={"value": "x"}, cause=cause
        )

        assert error.error_code == "MALFORMED_PARAMETER"
        assert error.context == {"parameter": "age", "value": "x"}
        assert error.__cause__ is cause

    def test_out_of_bounds(self) -> None:
        """Test the out-of-bounds error."""
        error = ParameterOutOfBoundsError("age", "too old", context={"max_value": 150})

        assert error.error_code == "PARAMETER_OUT_OF_BOUNDS"
        assert error.context == {"parameter": "age", "max_value": 150}

    def test_request_decoding_error(self) -> None:
        """Test that decoding errors are not validation errors."""
        error = RequestDecodingError("bad body", context={"parts_read": 2})

        assert not isinstance(error, ValidationError)
        assert error.error_code == "REQUEST_DECODING_ERROR"
        assert error.severity == Severity.MEDIUM
        assert error.context == {"parts_read": 2}
