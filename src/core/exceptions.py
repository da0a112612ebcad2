"""Structured exception hierarchy for consistent error handling.

This module defines the exception system for the Relay application, giving
every failure a machine-readable code, a severity and structured context
that the API boundary turns into a client-facing error response.

Key components:
- **ErrorCode enum**: Standardized error identifiers for programmatic handling
- **Severity enum**: Error classification for monitoring and alerting
- **RelayError**: Base exception with rich context and fingerprinting
- **Parameter errors**: Missing, malformed and out-of-bounds request values
- **RequestDecodingError**: The request body could not be decomposed

Parameter errors always name the offending parameter so the dispatch layer
can report exactly which input was rejected.
"""

import hashlib
import traceback
from enum import Enum

from src.core.types import ErrorContext


class ErrorCode(Enum):
    """Standardized error codes for the Relay application."""

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred in the system."""

    NOT_FOUND = "NOT_FOUND"
    """The requested route or resource does not exist."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input validation failed due to invalid or malformed data."""

    # Request parameter errors
    MISSING_PARAMETER = "MISSING_PARAMETER"
    """A mandatory request parameter was not supplied."""

    MALFORMED_PARAMETER = "MALFORMED_PARAMETER"
    """A request parameter could not be parsed as the requested type."""

    PARAMETER_OUT_OF_BOUNDS = "PARAMETER_OUT_OF_BOUNDS"
    """A request parameter violated its configured bounds."""

    # Request body errors
    REQUEST_DECODING_ERROR = "REQUEST_DECODING_ERROR"
    """The request body could not be decoded."""


class Severity(Enum):
    """Severity levels for errors in the Relay application."""

    LOW = "LOW"
    """Low severity errors that don't significantly impact functionality."""

    MEDIUM = "MEDIUM"
    """Medium severity errors that may affect some features but not critical ops."""

    HIGH = "HIGH"
    """High severity errors impacting critical functionality or data integrity."""

    CRITICAL = "CRITICAL"
    """Critical errors requiring immediate attention, may cause system failures."""


class RelayError(Exception):
    """Base exception class for all Relay application exceptions.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        # Capture stack trace at creation time
        self.stack_trace = traceback.format_stack()[:-1]  # Exclude this frame

        self.fingerprint = self._generate_fingerprint()

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    def _generate_fingerprint(self) -> str:
        """Generate a fingerprint for error grouping.

        Returns:
            str: A hash string built from the error type and raising location
        """
        max_frames = 5
        relevant_frames = (
            self.stack_trace[-max_frames:]
            if len(self.stack_trace) > max_frames
            else self.stack_trace
        )

        fingerprint_data = f"{self.__class__.__name__}:{self.error_code}"

        for frame in relevant_frames:
            if "site-packages" not in frame and "src/" in frame:
                lines = frame.strip().split("\n")
                if lines:
                    fingerprint_data += f":{lines[0]}"

        return hashlib.sha256(fingerprint_data.encode()).hexdigest()[:16]

    @property
    def is_expected(self) -> bool:
        """Determine if this is an expected error based on severity.

        Returns:
            bool: True if the error is expected (LOW or MEDIUM severity)
        """
        return self.severity in (Severity.LOW, Severity.MEDIUM)

    @property
    def should_alert(self) -> bool:
        """Determine if this error should trigger alerts.

        Returns:
            bool: True if the error should trigger alerts (HIGH or CRITICAL severity)
        """
        return self.severity in (Severity.HIGH, Severity.CRITICAL)

    def __str__(self) -> str:
        """Return a string representation of the exception.

        Returns:
            str: A formatted string containing the error code and message
        """
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return a detailed representation of the exception.

        Returns:
            str: A string showing the class name, error code, message, severity,
                and context
        """
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class ValidationError(RelayError):
    """Exception raised when input validation fails.

    Args:
        message: Description of the validation failure
        error_code: Error code (defaults to VALIDATION_ERROR)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.VALIDATION_ERROR,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.LOW, context, cause)


class InvalidRequestParameterError(ValidationError):
    """Base exception for a request parameter that failed a typed read.

    The parameter name is always part of the context so error responses can
    point the client at the offending input.

    Args:
        parameter: Name of the offending request parameter
        message: Description of the failure
        error_code: Error code (defaults to VALIDATION_ERROR)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        parameter: str,
        message: str,
        error_code: str | ErrorCode = ErrorCode.VALIDATION_ERROR,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.parameter = parameter
        super().__init__(
            message,
            error_code,
            {"parameter": parameter, **(context or {})},
            cause,
        )


class MissingParameterError(InvalidRequestParameterError):
    """Exception raised when a mandatory parameter is absent."""

    def __init__(self, parameter: str, context: ErrorContext | None = None) -> None:
        super().__init__(
            parameter,
            f"Missing mandatory parameter: {parameter}",
            ErrorCode.MISSING_PARAMETER,
            context,
        )


class MalformedParameterError(InvalidRequestParameterError):
    """Exception raised when a present value cannot be parsed as the requested type."""

    def __init__(
        self,
        parameter: str,
        message: str,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            parameter, message, ErrorCode.MALFORMED_PARAMETER, context, cause
        )


class ParameterOutOfBoundsError(InvalidRequestParameterError):
    """Exception raised when a value violates its configured length or range."""

    def __init__(
        self,
        parameter: str,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(parameter, message, ErrorCode.PARAMETER_OUT_OF_BOUNDS, context)


class RequestDecodingError(RelayError):
    """Exception raised when the request body is too large or cannot be decomposed.

    Raised while building a request parser; no partially parsed parameters
    are ever exposed after this error.

    Args:
        message: Description of the decoding failure
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.REQUEST_DECODING_ERROR,
            message,
            Severity.MEDIUM,
            context,
            cause,
        )
