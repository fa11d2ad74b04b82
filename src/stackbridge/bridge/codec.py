"""
Wire codec for operation requests and responses.

Requests and responses are protobuf messages (see ``schema``). Responses
travel out of the runtime in a length-prefixed envelope::

    [0:4]  payload length, unsigned 32-bit little-endian
    [4:n]  protobuf-encoded OperationResponse
"""

from __future__ import annotations

import json
import struct
from typing import Any

from google.protobuf.message import DecodeError as ProtobufDecodeError

from stackbridge.bridge import schema
from stackbridge.bridge.models import (
    ImportTarget,
    OperationRequest,
    OperationResponse,
    OutputItem,
    ResourceDescriptor,
    ResourceOptions,
)
from stackbridge.bridge.values import from_wire, from_wire_map, to_wire
from stackbridge.config.runtime import (
    AzureBlobBackend,
    CloudKmsSecrets,
    LocalBackend,
    NoSecrets,
    PassphraseSecrets,
    RuntimeConfig,
    S3Backend,
    ServiceBackend,
)
from stackbridge.core.errors import DecodeError

ENVELOPE_HEADER = struct.Struct("<I")


def pack_envelope(payload: bytes) -> bytes:
    return ENVELOPE_HEADER.pack(len(payload)) + payload


def unpack_envelope(frame: bytes) -> bytes:
    """Return the payload of a length-prefixed frame."""
    if len(frame) < ENVELOPE_HEADER.size:
        raise DecodeError("Envelope is shorter than its length prefix", {"size": len(frame)})
    (length,) = ENVELOPE_HEADER.unpack_from(frame)
    payload = frame[ENVELOPE_HEADER.size:ENVELOPE_HEADER.size + length]
    if len(payload) != length:
        raise DecodeError(
            "Envelope payload is truncated",
            {"expected": length, "received": len(payload)},
        )
    return payload


def encode_request(request: OperationRequest) -> bytes:
    """Serialize an OperationRequest to protobuf bytes."""
    message = schema.OperationRequest(
        working_dir=request.project,
        stack_name=request.stack,
        project_name=request.project,
        backend=request.backend or "",
    )
    for resource in request.resources:
        _encode_resource(message.resources.add(), resource)
    for key, value in request.config.items():
        message.config[str(key)] = _config_text(value)
    if request.runtime is not None:
        message.runtime_config.CopyFrom(_encode_runtime(request.runtime))
    if request.import_target is not None:
        target = request.import_target
        message.import_target.CopyFrom(
            schema.ImportTarget(
                resource_type=target.resource_type,
                resource_name=target.resource_name,
                resource_id=target.resource_id,
            )
        )
    return message.SerializeToString()


def _config_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"))


def _encode_resource(message: Any, resource: ResourceDescriptor) -> None:
    message.type = resource.type
    message.name = resource.name
    for key, value in resource.properties.items():
        message.properties[str(key)].CopyFrom(to_wire(value))
    options = resource.options
    if options is not None:
        message.depends_on.extend(options.depends_on)
        message.provider = options.provider or ""
        message.parent = options.parent or ""
        message.delete_before_replace = options.delete_before_replace


def _encode_runtime(config: RuntimeConfig) -> Any:
    message = schema.RuntimeConfiguration(
        home_directory=config.home_directory or "",
        log_level=config.log_level or "",
    )
    for key, value in config.environment.items():
        message.environment[key] = value

    secrets = config.secrets
    if isinstance(secrets, PassphraseSecrets):
        # Empty passphrase: the runtime reads it from its own environment.
        if secrets.passphrase:
            message.secrets_provider.passphrase.passphrase = secrets.passphrase
    elif isinstance(secrets, CloudKmsSecrets):
        kms = message.secrets_provider.cloud_kms
        kms.provider_type = str(secrets.provider_type)
        kms.key_id = secrets.key_id
        for key, value in secrets.credentials.items():
            kms.credentials[key] = value
    elif isinstance(secrets, NoSecrets):
        message.secrets_provider.local.SetInParent()

    backend = config.backend
    if isinstance(backend, LocalBackend):
        if backend.path:
            message.backend.local.path = backend.path
    elif isinstance(backend, S3Backend):
        message.backend.s3.CopyFrom(
            schema.S3Backend(
                bucket=backend.bucket,
                region=backend.region,
                access_key=backend.access_key_id or "",
                secret_key=backend.secret_access_key or "",
                session_token=backend.session_token or "",
                endpoint=backend.endpoint or "",
            )
        )
    elif isinstance(backend, AzureBlobBackend):
        message.backend.azure_blob.CopyFrom(
            schema.AzureBlobBackend(
                storage_account=backend.storage_account,
                container=backend.container,
                access_key=backend.access_key or "",
                sas_token=backend.sas_token or "",
            )
        )
    elif isinstance(backend, ServiceBackend):
        message.backend.cloud.CopyFrom(
            schema.CloudBackend(url=backend.url, api_token=backend.access_token)
        )
    return message


def decode_request(data: bytes) -> OperationRequest:
    """Parse protobuf bytes into an OperationRequest.

    The runtime configuration block is not reconstructed; only the fields
    a runtime needs to act on are.
    """
    message = _parse(schema.OperationRequest, data)
    resources = [
        ResourceDescriptor(
            type=item.type,
            name=item.name,
            properties=from_wire_map(item.properties),
            options=ResourceOptions(
                parent=item.parent or None,
                depends_on=list(item.depends_on),
                provider=item.provider or None,
                delete_before_replace=item.delete_before_replace,
            ),
        )
        for item in message.resources
    ]
    import_target = None
    if message.HasField("import_target"):
        import_target = ImportTarget(
            resource_type=message.import_target.resource_type,
            resource_name=message.import_target.resource_name,
            resource_id=message.import_target.resource_id,
        )
    return OperationRequest(
        project=message.project_name,
        stack=message.stack_name,
        backend=message.backend or None,
        config=dict(message.config),
        resources=resources,
        import_target=import_target,
    )


def encode_response(response: OperationResponse) -> bytes:
    message = schema.OperationResponse(success=response.success, error=response.error)
    for output in response.outputs:
        item = message.outputs.add(
            resource_name=output.resource_name,
            output_name=output.output_name,
        )
        item.value.CopyFrom(to_wire(output.value))
    return message.SerializeToString()


def decode_response(data: bytes) -> OperationResponse:
    """Parse protobuf bytes into an OperationResponse; DecodeError if malformed."""
    message = _parse(schema.OperationResponse, data)
    outputs = [
        OutputItem(
            resource_name=item.resource_name,
            output_name=item.output_name,
            value=from_wire(item.value) if item.HasField("value") else None,
        )
        for item in message.outputs
    ]
    return OperationResponse(success=message.success, outputs=outputs, error=message.error)


def _parse(message_type: type, data: bytes) -> Any:
    message = message_type()
    try:
        message.ParseFromString(data)
    except ProtobufDecodeError as e:
        raise DecodeError(
            f"Malformed {message_type.DESCRIPTOR.name}: {e}", {"size": len(data)}
        ) from e
    return message
