"""Core primitives shared across stackbridge."""

from stackbridge.core.errors import (
    BridgeError,
    ConfigError,
    DecodeError,
    ExitCode,
    OperationError,
    SerializationError,
    StackBridgeError,
    main_with_error_handling,
)

__all__ = [
    "BridgeError",
    "ConfigError",
    "DecodeError",
    "ExitCode",
    "OperationError",
    "SerializationError",
    "StackBridgeError",
    "main_with_error_handling",
]
