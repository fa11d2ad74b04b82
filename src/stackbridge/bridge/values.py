"""
Conversion between caller trees and wire ``Value`` messages.

A caller tree (StructuredValue) is the JSON-like document resource
properties and outputs are expressed in: dicts with string keys, lists,
strings, ints, floats, bools and None. On the wire every node is a
``Value`` whose ``kind`` oneof records the variant; an unset oneof is null.

Numbers that fit a signed 64-bit integer become ``int_value``, other finite
numbers ``double_value``, and anything left over is stringified. Byte blobs
only ever arrive from the runtime; they surface to callers as base64 text.

Protobuf decoders cap message nesting at 100 levels, and every nested map
costs three of them on the wire. Trees nested deeper than MAX_NESTING
containers are refused with SerializationError so that whatever is encoded
can also be decoded on either side of the boundary.
"""

from __future__ import annotations

import base64
import math
from collections.abc import Mapping
from typing import Any, Union

from stackbridge.bridge import schema
from stackbridge.core.errors import SerializationError

StructuredValue = Union[
    str, int, float, bool, None, list["StructuredValue"], dict[str, "StructuredValue"]
]

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

MAX_NESTING = 30


def to_wire(value: Any) -> Any:
    """Convert a caller tree into a ``schema.Value`` message."""
    message = schema.Value()
    _fill(message, value, 0)
    return message


def to_wire_map(properties: Mapping[str, Any] | None) -> dict[str, Any]:
    """Convert a property bag into ``{key: Value}`` for map fields."""
    if not properties:
        return {}
    return {str(key): to_wire(item) for key, item in properties.items()}


def _fill(message: Any, value: Any, depth: int) -> None:
    if value is None:
        return
    if isinstance(value, bool):
        message.bool_value = value
    elif isinstance(value, int):
        if INT64_MIN <= value <= INT64_MAX:
            message.int_value = value
        else:
            _fill_float(message, value)
    elif isinstance(value, float):
        _fill_float(message, value)
    elif isinstance(value, str):
        message.string_value = value
    elif isinstance(value, (bytes, bytearray)):
        message.string_value = base64.b64encode(bytes(value)).decode("ascii")
    elif isinstance(value, (Mapping, list, tuple)) and depth >= MAX_NESTING:
        raise SerializationError(
            f"Value nests more than {MAX_NESTING} maps or lists, or is cyclic",
            {"max_nesting": MAX_NESTING},
        )
    elif isinstance(value, Mapping):
        fields = message.map_value.fields
        # Touch the submessage so an empty mapping still sets the oneof.
        message.map_value.SetInParent()
        for key, item in value.items():
            _fill(fields[str(key)], item, depth + 1)
    elif isinstance(value, (list, tuple)):
        message.list_value.SetInParent()
        for item in value:
            _fill(message.list_value.values.add(), item, depth + 1)
    else:
        message.string_value = str(value)


def _fill_float(message: Any, value: int | float) -> None:
    try:
        number = float(value)
    except OverflowError:
        message.string_value = str(value)
        return
    if math.isfinite(number):
        message.double_value = number
    else:
        message.string_value = str(value)


def from_wire(message: Any) -> StructuredValue:
    """Convert a ``schema.Value`` message back into a caller tree."""
    if message is None:
        return None
    kind = message.WhichOneof("kind")
    if kind is None:
        return None
    if kind == "string_value":
        return message.string_value
    if kind == "int_value":
        return message.int_value
    if kind == "double_value":
        number = message.double_value
        # JSON has no representation for NaN or infinities.
        return number if math.isfinite(number) else None
    if kind == "bool_value":
        return message.bool_value
    if kind == "list_value":
        return [from_wire(item) for item in message.list_value.values]
    if kind == "map_value":
        return {key: from_wire(item) for key, item in message.map_value.fields.items()}
    if kind == "bytes_value":
        return base64.b64encode(message.bytes_value).decode("ascii")
    return None


def from_wire_map(fields: Mapping[str, Any]) -> dict[str, StructuredValue]:
    return {key: from_wire(item) for key, item in fields.items()}
