"""Structured error model for Entroscan."""

from typing import Any

from pydantic import BaseModel, Field


class StructuredError(BaseModel):
    """Structured error response format.

    Every fatal error emitted by Entroscan follows this schema so that
    wrapper scripts can react to it without scraping stderr.
    """

    code: str = Field(
        ...,
        pattern=r"^[A-Z][A-Z0-9_]*$",
        description="Error code (e.g., CONFIGURATION_ERROR)",
        examples=[
            "CONFIGURATION_ERROR",
            "SINK_WRITE_ERROR",
            "VOLUME_ENUMERATION_ERROR",
            "TARGET_NOT_FOUND",
        ],
    )

    message: str = Field(
        ...,
        description="Human-readable error message",
    )

    remediation: str = Field(
        ...,
        description="Suggested fix or next step",
    )

    retryable: bool = Field(
        ...,
        description="Whether retry may succeed",
    )

    context: dict[str, Any] | None = Field(
        default=None,
        description="Additional context (path, field, etc.)",
    )

    model_config = {"extra": "forbid"}


class ErrorCode:
    """Standard error codes for Entroscan."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    SINK_WRITE_ERROR = "SINK_WRITE_ERROR"
    VOLUME_ENUMERATION_ERROR = "VOLUME_ENUMERATION_ERROR"
    TARGET_NOT_FOUND = "TARGET_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
