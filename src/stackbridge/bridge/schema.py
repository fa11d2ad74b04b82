"""
Protobuf message classes for the runtime wire protocol.

The schema mirrors proto/stackbridge.proto. It is assembled as a
FileDescriptorProto and registered in a private descriptor pool, so the
message classes exist without a protoc code-generation step.
"""

from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PACKAGE = "stackbridge"

_F = descriptor_pb2.FieldDescriptorProto

_SCALARS = {
    "string": _F.TYPE_STRING,
    "int64": _F.TYPE_INT64,
    "double": _F.TYPE_DOUBLE,
    "bool": _F.TYPE_BOOL,
    "bytes": _F.TYPE_BYTES,
}


def _field(
    message: descriptor_pb2.DescriptorProto,
    name: str,
    number: int,
    kind: str,
    *,
    repeated: bool = False,
    oneof: int | None = None,
) -> None:
    """Add a field; ``kind`` is a scalar name or a message name in PACKAGE."""
    field = message.field.add(
        name=name,
        number=number,
        label=_F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL,
    )
    if kind in _SCALARS:
        field.type = _SCALARS[kind]
    else:
        field.type = _F.TYPE_MESSAGE
        field.type_name = f".{PACKAGE}.{kind}"
    if oneof is not None:
        field.oneof_index = oneof


def _map_field(
    message: descriptor_pb2.DescriptorProto, name: str, number: int, value_kind: str
) -> None:
    """Add a ``map<string, value_kind>`` field with its synthesized entry type."""
    entry_name = "".join(part.capitalize() for part in name.split("_")) + "Entry"
    entry = message.nested_type.add(name=entry_name)
    entry.options.map_entry = True
    _field(entry, "key", 1, "string")
    _field(entry, "value", 2, value_kind)
    message.field.add(
        name=name,
        number=number,
        label=_F.LABEL_REPEATED,
        type=_F.TYPE_MESSAGE,
        type_name=f".{PACKAGE}.{message.name}.{entry_name}",
    )


def _oneof_message(
    file: descriptor_pb2.FileDescriptorProto,
    name: str,
    oneof_name: str,
    members: list[tuple[str, str]],
) -> None:
    message = file.message_type.add(name=name)
    message.oneof_decl.add(name=oneof_name)
    for number, (field_name, kind) in enumerate(members, 1):
        _field(message, field_name, number, kind, oneof=0)


def _plain_message(
    file: descriptor_pb2.FileDescriptorProto, name: str, fields: list[tuple[str, str]]
) -> descriptor_pb2.DescriptorProto:
    message = file.message_type.add(name=name)
    for number, (field_name, kind) in enumerate(fields, 1):
        _field(message, field_name, number, kind)
    return message


def build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    file = descriptor_pb2.FileDescriptorProto(
        name="stackbridge.proto", package=PACKAGE, syntax="proto3"
    )

    # Values
    _oneof_message(file, "Value", "kind", [
        ("string_value", "string"),
        ("int_value", "int64"),
        ("double_value", "double"),
        ("bool_value", "bool"),
        ("list_value", "ValueList"),
        ("map_value", "ValueMap"),
        ("bytes_value", "bytes"),
    ])
    value_list = file.message_type.add(name="ValueList")
    _field(value_list, "values", 1, "Value", repeated=True)
    value_map = file.message_type.add(name="ValueMap")
    _map_field(value_map, "fields", 1, "Value")

    # Resources
    resource = file.message_type.add(name="Resource")
    _field(resource, "type", 1, "string")
    _field(resource, "name", 2, "string")
    _map_field(resource, "properties", 3, "Value")
    _field(resource, "depends_on", 4, "string", repeated=True)
    _field(resource, "provider", 5, "string")
    _field(resource, "parent", 6, "string")
    _field(resource, "delete_before_replace", 7, "bool")

    # Secrets providers
    _plain_message(file, "PassphraseProvider", [("passphrase", "string")])
    kms = _plain_message(file, "CloudKmsProvider", [
        ("provider_type", "string"),
        ("key_id", "string"),
    ])
    _map_field(kms, "credentials", 3, "string")
    file.message_type.add(name="LocalProvider")
    _oneof_message(file, "SecretsProvider", "provider", [
        ("passphrase", "PassphraseProvider"),
        ("cloud_kms", "CloudKmsProvider"),
        ("local", "LocalProvider"),
    ])

    # State backends
    _plain_message(file, "LocalBackend", [("path", "string")])
    _plain_message(file, "S3Backend", [
        ("bucket", "string"),
        ("region", "string"),
        ("access_key", "string"),
        ("secret_key", "string"),
        ("session_token", "string"),
        ("endpoint", "string"),
    ])
    _plain_message(file, "AzureBlobBackend", [
        ("storage_account", "string"),
        ("container", "string"),
        ("access_key", "string"),
        ("sas_token", "string"),
    ])
    _plain_message(file, "CloudBackend", [("url", "string"), ("api_token", "string")])
    _oneof_message(file, "BackendConfig", "backend", [
        ("local", "LocalBackend"),
        ("s3", "S3Backend"),
        ("azure_blob", "AzureBlobBackend"),
        ("cloud", "CloudBackend"),
    ])

    runtime = _plain_message(file, "RuntimeConfiguration", [
        ("secrets_provider", "SecretsProvider"),
        ("backend", "BackendConfig"),
    ])
    _map_field(runtime, "environment", 3, "string")
    _field(runtime, "home_directory", 4, "string")
    _field(runtime, "log_level", 5, "string")

    # Requests and responses
    _plain_message(file, "ImportTarget", [
        ("resource_type", "string"),
        ("resource_name", "string"),
        ("resource_id", "string"),
    ])
    request = _plain_message(file, "OperationRequest", [
        ("working_dir", "string"),
        ("stack_name", "string"),
        ("project_name", "string"),
    ])
    _field(request, "resources", 4, "Resource", repeated=True)
    _map_field(request, "config", 5, "string")
    _field(request, "runtime_config", 6, "RuntimeConfiguration")
    _field(request, "backend", 7, "string")
    _field(request, "import_target", 8, "ImportTarget")

    _plain_message(file, "OutputItem", [
        ("resource_name", "string"),
        ("output_name", "string"),
        ("value", "Value"),
    ])
    response = file.message_type.add(name="OperationResponse")
    _field(response, "success", 1, "bool")
    _field(response, "outputs", 2, "OutputItem", repeated=True)
    _field(response, "error", 3, "string")

    return file


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(build_file_descriptor().SerializeToString())


def _message_class(name: str) -> type:
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName(f"{PACKAGE}.{name}"))


Value = _message_class("Value")
ValueList = _message_class("ValueList")
ValueMap = _message_class("ValueMap")
Resource = _message_class("Resource")
PassphraseProvider = _message_class("PassphraseProvider")
CloudKmsProvider = _message_class("CloudKmsProvider")
LocalProvider = _message_class("LocalProvider")
SecretsProvider = _message_class("SecretsProvider")
LocalBackend = _message_class("LocalBackend")
S3Backend = _message_class("S3Backend")
AzureBlobBackend = _message_class("AzureBlobBackend")
CloudBackend = _message_class("CloudBackend")
BackendConfig = _message_class("BackendConfig")
RuntimeConfiguration = _message_class("RuntimeConfiguration")
ImportTarget = _message_class("ImportTarget")
OperationRequest = _message_class("OperationRequest")
OutputItem = _message_class("OutputItem")
OperationResponse = _message_class("OperationResponse")
