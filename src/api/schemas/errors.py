"""Error response schemas shared by every endpoint.

Key models:
- **ErrorResponse**: The body returned for any failed request
- **ServiceInfo**: Identification of the service that produced the error

Parameter errors carry the offending parameter name in ``details`` so
clients can point the user at the right form field.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class ServiceInfo(BaseModel):
    """Service information for error context."""

    name: str = Field(
        ...,
        description="Name of the service",
        examples=["Relay"],
    )

    version: str = Field(
        ...,
        description="Version of the service",
        examples=["0.1.0"],
    )

    environment: str = Field(
        ...,
        description="Environment where the service is running",
        examples=["development", "staging", "production"],
    )


class ErrorResponse(BaseModel):
    """Standardized error response model for API errors."""

    error_code: str = Field(
        ...,
        description="Unique error code identifying the error type",
        examples=["MISSING_PARAMETER", "MALFORMED_PARAMETER", "REQUEST_DECODING_ERROR"],
    )

    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Missing mandatory parameter: title"],
    )

    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details, such as the offending parameter",
        examples=[{"parameter": "age", "min_value": 0, "max_value": 150}],
    )

    correlation_id: str | None = Field(
        default=None,
        description="Request correlation ID for tracing and debugging",
        examples=["550e8400-e29b-41d4-a716-446655440000"],
    )

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Timestamp when the error occurred (with timezone)",
        examples=["2026-03-14T12:00:00+00:00"],
    )

    severity: str | None = Field(
        default=None,
        description="Error severity level (LOW, MEDIUM, HIGH, CRITICAL)",
        examples=["LOW", "MEDIUM"],
    )

    service_info: ServiceInfo | None = Field(
        default=None,
        description="Information about the service that generated the error",
    )

    request_id: str | None = Field(
        default=None,
        description="Unique identifier of this single request",
        examples=["req-550e8400-e29b-41d4-a716-446655440000"],
    )

    debug_info: dict[str, Any] | None = Field(
        default=None,
        description="Debug information (only populated in development environments)",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error_code": "PARAMETER_OUT_OF_BOUNDS",
                    "message": (
                        "String value of parameter title too short "
                        "(minimal length is 3)"
                    ),
                    "details": {"parameter": "title", "min_length": 3, "length": 2},
                    "correlation_id": "550e8400-e29b-41d4-a716-446655440000",
                    "request_id": "req-660e8400-e29b-41d4-a716-446655440000",
                    "timestamp": "2026-03-14T12:00:00+00:00",
                    "severity": "LOW",
                    "service_info": {
                        "name": "Relay",
                        "version": "0.1.0",
                        "environment": "production",
                    },
                },
                {
                    "error_code": "REQUEST_DECODING_ERROR",
                    "message": "Multipart request without boundary",
                    "timestamp": "2026-03-14T12:00:01+00:00",
                    "severity": "MEDIUM",
                },
            ]
        }
    }
