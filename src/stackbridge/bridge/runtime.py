"""Request/response round trips across the runtime boundary."""

from __future__ import annotations

import time

import structlog

from stackbridge.bridge.boundary import Boundary, Operation, invoke
from stackbridge.bridge.codec import decode_response, encode_request
from stackbridge.bridge.models import OperationRequest, OperationResponse

logger = structlog.get_logger()


class RuntimeBridge:
    """Encodes requests, calls the boundary synchronously, decodes responses.

    Neither boundary failures nor malformed responses are retried; whether a
    partially applied change is safe to repeat is the caller's decision.
    """

    def __init__(self, boundary: Boundary) -> None:
        self._boundary = boundary

    @property
    def boundary(self) -> Boundary:
        return self._boundary

    def call(self, operation: Operation, request: OperationRequest) -> OperationResponse:
        payload = encode_request(request)
        log = logger.bind(operation=str(operation), project=request.project, stack=request.stack)
        log.debug(
            "boundary_call_started",
            resources=len(request.resources),
            request_bytes=len(payload),
        )
        started = time.monotonic()
        response_bytes = invoke(self._boundary, operation, payload)
        response = decode_response(response_bytes)
        log.debug(
            "boundary_call_finished",
            success=response.success,
            outputs=len(response.outputs),
            response_bytes=len(response_bytes),
            duration_seconds=round(time.monotonic() - started, 3),
        )
        return response

    def preview(self, request: OperationRequest) -> OperationResponse:
        return self.call(Operation.PREVIEW, request)

    def deploy(self, request: OperationRequest) -> OperationResponse:
        return self.call(Operation.DEPLOY, request)

    def destroy(self, request: OperationRequest) -> OperationResponse:
        return self.call(Operation.DESTROY, request)

    def get_outputs(self, request: OperationRequest) -> OperationResponse:
        return self.call(Operation.GET_OUTPUTS, request)

    def refresh(self, request: OperationRequest) -> OperationResponse:
        return self.call(Operation.REFRESH, request)

    def import_resource(self, request: OperationRequest) -> OperationResponse:
        return self.call(Operation.IMPORT, request)
