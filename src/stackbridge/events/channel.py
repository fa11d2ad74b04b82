"""
Event channel between the runtime's callback and a caller's handler.

The runtime holds a single process-wide event callback, so at most one
EventSink may be active at a time. Opening a second sink while one is
active takes over the registration; operations that stream events must not
overlap.

The callback runs on a thread owned by the runtime. It only decodes the
payload to text and queues it; JSON decoding and handler dispatch happen on
the sink's dispatcher thread, in arrival order.
"""

from __future__ import annotations

import queue
import threading
from enum import Enum
from typing import Any, Callable, Union

import structlog

from stackbridge.bridge.boundary import Boundary, EventCallback
from stackbridge.events.handlers import EventHandler
from stackbridge.events.models import DeploymentEvent, parse_event

logger = structlog.get_logger()

_CLOSED = object()

# Registration slot shared with the foreign-thread callback.
_slot_lock = threading.Lock()
_active_queue: queue.Queue | None = None


def _forward_event(payload: bytes | None) -> None:
    if payload is None:
        return
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError:
        return
    with _slot_lock:
        target = _active_queue
    if target is None:
        return
    try:
        target.put_nowait(text)
    except queue.Full:
        logger.warning("event_queue_full", size=len(text))


# Kept at module level: the runtime holds a raw pointer to this thunk.
_event_callback = EventCallback(_forward_event)


class SinkState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    CLOSED = "closed"


HandlerLike = Union[EventHandler, Callable[[DeploymentEvent], Any]]


class EventSink:
    """Owned registration of the runtime's event callback for one operation."""

    def __init__(self, boundary: Boundary, handler: HandlerLike, *, max_pending: int = 0) -> None:
        self._boundary = boundary
        self._handle = handler.handle_event if hasattr(handler, "handle_event") else handler
        self._queue: queue.Queue = queue.Queue(maxsize=max_pending)
        self._dispatcher: threading.Thread | None = None
        self._state = SinkState.IDLE
        self.delivered = 0

    @property
    def state(self) -> SinkState:
        return self._state

    def open(self) -> EventSink:
        global _active_queue
        if self._state is not SinkState.IDLE:
            raise RuntimeError(f"EventSink cannot be opened from state {self._state.value}")
        self._dispatcher = threading.Thread(
            target=self._dispatch, name="stackbridge-events", daemon=True
        )
        self._dispatcher.start()
        with _slot_lock:
            if _active_queue is not None:
                logger.warning("event_sink_replaced")
            _active_queue = self._queue
        self._boundary.register_event_callback(_event_callback)
        self._state = SinkState.ACTIVE
        return self

    def close(self) -> None:
        """Unregister the callback and let the dispatcher drain and exit.

        Events queued before this call are still delivered; events the
        runtime emits afterwards are lost.
        """
        global _active_queue
        if self._state is not SinkState.ACTIVE:
            return
        with _slot_lock:
            owns_slot = _active_queue is self._queue
            if owns_slot:
                _active_queue = None
        # A sink that took over the slot also owns the runtime registration.
        if owns_slot:
            self._boundary.unregister_event_callback()
        self._state = SinkState.CLOSED
        # Blocking put: the sentinel must not be dropped even on a bounded queue.
        self._queue.put(_CLOSED)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the dispatcher has exited; False on timeout."""
        if self._dispatcher is None:
            return True
        self._dispatcher.join(timeout)
        return not self._dispatcher.is_alive()

    def __enter__(self) -> EventSink:
        return self.open()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _dispatch(self) -> None:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                break
            try:
                self._deliver(item)
            except Exception:
                logger.exception("event_dispatch_failed", size=len(item))

    def _deliver(self, payload: str) -> None:
        event = parse_event(payload)
        if event is None:
            return
        try:
            self._handle(event)
        except Exception:
            logger.exception("event_handler_failed", event_type=event.type)
            return
        self.delivered += 1
