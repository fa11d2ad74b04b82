"""
Native boundary to the automation runtime.

The runtime ships as a shared library exporting one C entry point per
operation. Each takes ``(const char* request, int length)`` and returns a
pointer to a runtime-allocated, length-prefixed response buffer, or NULL on
an unrecoverable failure. Buffers must go back through the runtime's own
``FreeAllocation``; they were not allocated by this process's allocator.
"""

from __future__ import annotations

import ctypes
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

import structlog

from stackbridge.bridge.codec import ENVELOPE_HEADER
from stackbridge.config.settings import Settings, get_settings
from stackbridge.core.errors import BridgeError, ConfigError

logger = structlog.get_logger()

# void (*)(const char* event_json)
EventCallback = ctypes.CFUNCTYPE(None, ctypes.c_char_p)


class Operation(StrEnum):
    """Operations the runtime exposes across the boundary."""

    PREVIEW = "preview"
    DEPLOY = "deploy"
    DESTROY = "destroy"
    GET_OUTPUTS = "get_outputs"
    REFRESH = "refresh"
    IMPORT = "import"


ENTRY_POINTS: dict[Operation, str] = {
    Operation.PREVIEW: "PulumiDynamicPreview",
    Operation.DEPLOY: "PulumiDynamicDeploy",
    Operation.DESTROY: "PulumiDynamicDestroy",
    Operation.GET_OUTPUTS: "PulumiDynamicGetOutputs",
    Operation.REFRESH: "PulumiDynamicRefresh",
    Operation.IMPORT: "PulumiDynamicImport",
}

FREE_SYMBOL = "FreeAllocation"
REGISTER_SYMBOL = "RegisterEventCallback"
UNREGISTER_SYMBOL = "UnregisterEventCallback"


@runtime_checkable
class Boundary(Protocol):
    """The foreign-call surface the bridge consumes."""

    def call(self, operation: Operation, request: bytes) -> int | None:
        """Invoke an entry point; return the response buffer address or None."""
        ...

    def free(self, address: int) -> None:
        """Release a buffer previously returned by ``call``."""
        ...

    def register_event_callback(self, callback: Any) -> None:
        ...

    def unregister_event_callback(self) -> None:
        ...


class NativeBoundary:
    """Boundary backed by the runtime shared library loaded through ctypes."""

    def __init__(self, library: ctypes.CDLL) -> None:
        self._library = library
        self._entry_points: dict[Operation, Any] = {}
        for operation, symbol in ENTRY_POINTS.items():
            function = getattr(library, symbol, None)
            if function is None:
                continue
            function.argtypes = [ctypes.c_char_p, ctypes.c_int]
            function.restype = ctypes.c_void_p
            self._entry_points[operation] = function

        self._free = self._require(FREE_SYMBOL)
        self._free.argtypes = [ctypes.c_void_p]
        self._free.restype = None
        self._register = self._require(REGISTER_SYMBOL)
        self._register.argtypes = [EventCallback]
        self._register.restype = None
        self._unregister = self._require(UNREGISTER_SYMBOL)
        self._unregister.argtypes = []
        self._unregister.restype = None

    @classmethod
    def load(cls, path: str | None = None, settings: Settings | None = None) -> NativeBoundary:
        """Load the runtime library from ``path`` or the configured library path."""
        settings = settings or get_settings()
        library_path = path or settings.library_path
        if not library_path:
            raise ConfigError(
                "Runtime library path is not configured",
                {"hint": "set STACKBRIDGE_LIBRARY_PATH"},
            )
        try:
            library = ctypes.CDLL(library_path)
        except OSError as e:
            raise BridgeError(f"Failed to load runtime library: {e}", {"path": library_path}) from e
        logger.debug("runtime_library_loaded", path=library_path)
        return cls(library)

    def _require(self, symbol: str) -> Any:
        function = getattr(self._library, symbol, None)
        if function is None:
            raise BridgeError(f"Runtime library does not export {symbol}")
        return function

    def call(self, operation: Operation, request: bytes) -> int | None:
        function = self._entry_points.get(operation)
        if function is None:
            raise BridgeError(
                f"Runtime library does not export {ENTRY_POINTS[operation]}",
                {"operation": str(operation)},
            )
        return function(request, len(request))

    def free(self, address: int) -> None:
        self._free(address)

    def register_event_callback(self, callback: Any) -> None:
        self._register(callback)

    def unregister_event_callback(self) -> None:
        self._unregister()


class OwnedBuffer:
    """A runtime-allocated response buffer, released exactly once.

    Use as a context manager; the buffer is returned to the runtime on every
    exit path, including a failure while reading or decoding it.
    """

    def __init__(self, boundary: Boundary, address: int) -> None:
        self._boundary = boundary
        self._address = address
        self._released = False

    def __enter__(self) -> OwnedBuffer:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.release()

    @property
    def released(self) -> bool:
        return self._released

    def read(self) -> bytes:
        """Copy out the payload that follows the length prefix."""
        if self._released:
            raise BridgeError("Response buffer was already released")
        header = ctypes.string_at(self._address, ENVELOPE_HEADER.size)
        (length,) = ENVELOPE_HEADER.unpack(header)
        return ctypes.string_at(self._address + ENVELOPE_HEADER.size, length)

    def release(self) -> None:
        if not self._released:
            self._released = True
            self._boundary.free(self._address)


def invoke(boundary: Boundary, operation: Operation, request: bytes) -> bytes:
    """Send ``request`` across the boundary and copy out the response payload."""
    address = boundary.call(operation, request)
    if not address:
        raise BridgeError(
            "Runtime returned a null response buffer", {"operation": str(operation)}
        )
    with OwnedBuffer(boundary, address) as buffer:
        return buffer.read()
