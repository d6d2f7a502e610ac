"""Structured error handling for Entroscan."""

import sys
from typing import Any, NoReturn

from entroscan.models.error import ErrorCode, StructuredError

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2
EXIT_TARGET_NOT_FOUND = 3
EXIT_SINK_WRITE_ERROR = 6


class EntroscanError(Exception):
    """Base exception for Entroscan errors.

    Wraps a StructuredError for consistent error handling.
    """

    exit_code: int = EXIT_ERROR

    def __init__(
        self,
        code: str,
        message: str,
        remediation: str,
        retryable: bool = False,
        context: dict[str, Any] | None = None,
    ):
        self.error = StructuredError(
            code=code,
            message=message,
            remediation=remediation,
            retryable=retryable,
            context=context,
        )
        super().__init__(message)

    def to_structured(self) -> StructuredError:
        """Convert to StructuredError."""
        return self.error


class ConfigurationError(EntroscanError):
    """Invalid scan configuration, raised before traversal starts."""

    exit_code = EXIT_CONFIGURATION_ERROR

    def __init__(self, message: str, field: str | None = None, errors: list[str] | None = None):
        context: dict[str, Any] = {}
        if field:
            context["field"] = field
        if errors:
            context["errors"] = errors
        super().__init__(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=message,
            remediation="Check the scan options or configuration file and try again",
            retryable=False,
            context=context or None,
        )


class SinkWriteError(EntroscanError):
    """Output could not be written; the scan cannot make progress."""

    exit_code = EXIT_SINK_WRITE_ERROR

    def __init__(self, message: str, path: str | None = None):
        super().__init__(
            code=ErrorCode.SINK_WRITE_ERROR,
            message=message,
            remediation="Check free disk space and write permissions for the output path",
            retryable=True,
            context={"path": path} if path else None,
        )


class VolumeEnumerationError(EntroscanError):
    """Mounted volumes could not be listed at all."""

    def __init__(self, message: str):
        super().__init__(
            code=ErrorCode.VOLUME_ENUMERATION_ERROR,
            message=message,
            remediation="Pass explicit roots with --root",
            retryable=True,
        )


class TargetNotFoundError(EntroscanError):
    """An explicitly requested root or file does not exist."""

    exit_code = EXIT_TARGET_NOT_FOUND

    def __init__(self, path: str):
        super().__init__(
            code=ErrorCode.TARGET_NOT_FOUND,
            message=f"Path not found: {path}",
            remediation="Check the path and try again",
            retryable=False,
            context={"path": path},
        )


def handle_error(error: EntroscanError | Exception, exit_code: int | None = None) -> NoReturn:
    """Handle an error by outputting it and exiting.

    Args:
        error: The error to handle
        exit_code: Exit code to use (defaults to the error's own)
    """
    from entroscan.cli.output import output_error

    if isinstance(error, EntroscanError):
        output_error(error.to_structured())
        code = exit_code if exit_code is not None else error.exit_code
    else:
        structured = StructuredError(
            code=ErrorCode.INTERNAL_ERROR,
            message=str(error),
            remediation="This is an unexpected error. Please report it.",
            retryable=False,
            context={"type": type(error).__name__},
        )
        output_error(structured)
        code = exit_code if exit_code is not None else EXIT_ERROR

    sys.exit(code)
