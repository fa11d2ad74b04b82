"""Root test configuration."""

import ctypes
import logging
import threading

import pytest
import structlog

from stackbridge.bridge.codec import decode_request, encode_response, pack_envelope
from stackbridge.bridge.models import OperationResponse, OutputItem
from stackbridge.config.settings import Settings
from stackbridge.events import channel
from stackbridge.orchestration.stack import Engine


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class FakeBoundary:
    """In-process stand-in for the runtime library.

    Responses are real ctypes buffers laid out like the runtime's, so the
    read and free paths run exactly as they do against the native library.
    Events queued with ``events`` are pushed through the registered ctypes
    callback while a call is in progress.
    """

    def __init__(self):
        self.calls = []
        self.freed = []
        self.events = []
        self.emit_from_thread = False
        self.callback = None
        self.registrations = 0
        self.unregistrations = 0
        self._responses = []
        self._buffers = {}

    def respond(self, response):
        """Queue a response: an OperationResponse, raw protobuf bytes, or None."""
        self._responses.append(response)
        return self

    def succeed(self, *outputs):
        return self.respond(OperationResponse(success=True, outputs=list(outputs)))

    def fail(self, message):
        return self.respond(OperationResponse(success=False, error=message))

    @property
    def operations(self):
        return [operation for operation, _ in self.calls]

    @property
    def requests(self):
        return [decode_request(payload) for _, payload in self.calls]

    @property
    def outstanding(self):
        return len(self._buffers)

    def call(self, operation, request):
        self.calls.append((operation, request))
        for payload in self.events:
            self.emit(payload)

        response = self._responses.pop(0) if self._responses else OperationResponse(success=True)
        if response is None:
            return None
        payload = response if isinstance(response, bytes) else encode_response(response)
        buffer = ctypes.create_string_buffer(pack_envelope(payload))
        address = ctypes.addressof(buffer)
        self._buffers[address] = buffer
        return address

    def free(self, address):
        self.freed.append(address)
        self._buffers.pop(address)

    def register_event_callback(self, callback):
        self.callback = callback
        self.registrations += 1

    def unregister_event_callback(self):
        self.callback = None
        self.unregistrations += 1

    def emit(self, payload):
        """Invoke the registered callback the way the runtime does."""
        if self.callback is None:
            return
        data = payload.encode("utf-8") if isinstance(payload, str) else payload
        if self.emit_from_thread:
            thread = threading.Thread(target=self.callback, args=(data,))
            thread.start()
            thread.join()
        else:
            self.callback(data)


class EventCollector:
    """Handler that records events and lets tests wait for them."""

    def __init__(self):
        self.events = []
        self.threads = set()
        self._condition = threading.Condition()

    def handle_event(self, event):
        with self._condition:
            self.events.append(event)
            self.threads.add(threading.current_thread().name)
            self._condition.notify_all()

    def wait_for(self, count, timeout=2.0):
        with self._condition:
            return self._condition.wait_for(lambda: len(self.events) >= count, timeout)

    @property
    def types(self):
        return [event.type for event in self.events]


@pytest.fixture(autouse=True)
def reset_event_slot():
    yield
    channel._active_queue = None


@pytest.fixture
def boundary():
    return FakeBoundary()


@pytest.fixture
def settings():
    return Settings(_env_file=None, library_path=None, default_project="default-project")


@pytest.fixture
def engine(boundary, settings):
    return Engine(boundary=boundary, settings=settings)


@pytest.fixture
def collector():
    return EventCollector()


@pytest.fixture
def output():
    def make(resource_name, output_name, value):
        return OutputItem(resource_name=resource_name, output_name=output_name, value=value)

    return make
