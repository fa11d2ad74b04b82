"""
Unified error handling for stackbridge.

Every failure the bridge can surface is a StackBridgeError subclass carrying
an exit code, so the CLI can map it without inspecting messages.

Exit Codes:
- 0: Success
- 1: Operation failed (runtime reported success=false)
- 10: Configuration error
- 11: Bridge error (boundary call unreachable or returned null)
- 12: Decode error (malformed wire data)
- 13: Serialization error (caller data not representable)
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    OPERATION_FAILED = 1
    CONFIG_ERROR = 10
    BRIDGE_ERROR = 11
    DECODE_ERROR = 12
    SERIALIZATION_ERROR = 13
    UNKNOWN_ERROR = 127


class StackBridgeError(Exception):
    """Base exception for stackbridge errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BridgeError(StackBridgeError):
    """Raised when the boundary call cannot be made or returns a null buffer."""

    exit_code = ExitCode.BRIDGE_ERROR


class DecodeError(StackBridgeError):
    """Raised for malformed wire bytes coming back across the boundary."""

    exit_code = ExitCode.DECODE_ERROR


class OperationError(StackBridgeError):
    """Raised when the runtime completed the call but reported failure.

    The message is the runtime's error text, unmodified.
    """

    exit_code = ExitCode.OPERATION_FAILED


class ConfigError(StackBridgeError):
    """Raised for missing or invalid configuration."""

    exit_code = ExitCode.CONFIG_ERROR


class SerializationError(StackBridgeError):
    """Raised when caller-supplied data cannot be represented on the wire."""

    exit_code = ExitCode.SERIALIZATION_ERROR


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI main functions that provides unified error handling.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Exit codes:
        - StackBridgeError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except StackBridgeError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                print(f"Error: {format_error_message(e)}", file=sys.stderr)
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130  # Standard exit code for SIGINT
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: StackBridgeError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
