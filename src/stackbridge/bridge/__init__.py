"""Value bridge and wire codec for the automation runtime boundary."""

from stackbridge.bridge.boundary import (
    Boundary,
    EventCallback,
    NativeBoundary,
    Operation,
    OwnedBuffer,
    invoke,
)
from stackbridge.bridge.codec import (
    decode_request,
    decode_response,
    encode_request,
    encode_response,
    pack_envelope,
    unpack_envelope,
)
from stackbridge.bridge.models import (
    ImportTarget,
    OperationRequest,
    OperationResponse,
    OutputItem,
    ResourceDescriptor,
    ResourceOptions,
)
from stackbridge.bridge.runtime import RuntimeBridge
from stackbridge.bridge.values import StructuredValue, from_wire, to_wire

__all__ = [
    "Boundary",
    "EventCallback",
    "ImportTarget",
    "NativeBoundary",
    "Operation",
    "OperationRequest",
    "OperationResponse",
    "OutputItem",
    "OwnedBuffer",
    "ResourceDescriptor",
    "ResourceOptions",
    "RuntimeBridge",
    "StructuredValue",
    "decode_request",
    "decode_response",
    "encode_request",
    "encode_response",
    "from_wire",
    "invoke",
    "pack_envelope",
    "to_wire",
    "unpack_envelope",
]
