"""
Tests for request/response encoding and the response envelope.
"""

import pytest

from stackbridge.bridge import schema
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
from stackbridge.bridge.values import MAX_NESTING
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
from stackbridge.core.errors import DecodeError, SerializationError


def _request(**overrides):
    values = {
        "project": "webapp",
        "stack": "dev",
        "resources": [
            ResourceDescriptor(
                type="azure-native:resources:ResourceGroup",
                name="rg",
                properties={"location": "westeurope", "tags": {"team": "platform"}},
            )
        ],
    }
    values.update(overrides)
    return OperationRequest(**values)


def _runtime_message(runtime):
    message = schema.OperationRequest()
    message.ParseFromString(encode_request(_request(runtime=runtime)))
    return message.runtime_config


class TestEnvelope:
    """Test length-prefixed framing."""

    def test_pack_prefixes_little_endian_length(self):
        frame = pack_envelope(b"abc")
        assert frame == b"\x03\x00\x00\x00abc"

    def test_unpack_returns_payload(self):
        assert unpack_envelope(pack_envelope(b"payload")) == b"payload"

    def test_unpack_ignores_trailing_bytes(self):
        assert unpack_envelope(pack_envelope(b"ab") + b"\x00") == b"ab"

    def test_empty_payload(self):
        assert unpack_envelope(pack_envelope(b"")) == b""

    def test_short_frame_raises(self):
        with pytest.raises(DecodeError):
            unpack_envelope(b"\x01\x00")

    def test_truncated_payload_raises(self):
        with pytest.raises(DecodeError) as exc_info:
            unpack_envelope(b"\x05\x00\x00\x00ab")
        assert exc_info.value.details == {"expected": 5, "received": 2}


class TestEncodeRequest:
    """Test request encoding."""

    def test_identity_fields(self):
        message = schema.OperationRequest()
        message.ParseFromString(encode_request(_request(backend="azblob")))
        assert message.working_dir == "webapp"
        assert message.project_name == "webapp"
        assert message.stack_name == "dev"
        assert message.backend == "azblob"
        assert not message.HasField("runtime_config")
        assert not message.HasField("import_target")

    def test_resources_round_trip(self):
        request = _request(
            resources=[
                ResourceDescriptor(
                    type="azure-native:storage:StorageAccount",
                    name="sa",
                    properties={"resourceGroupName": "${rg.name}", "replicas": 3},
                    options=ResourceOptions(
                        parent="rg",
                        depends_on=["rg"],
                        provider="azure-west",
                        delete_before_replace=True,
                    ),
                )
            ]
        )
        decoded = decode_request(encode_request(request))
        assert decoded.resources == request.resources

    def test_config_values_are_text(self):
        request = _request(config={"region": "eastus", "replicas": 2, "zones": ["1", "2"]})
        decoded = decode_request(encode_request(request))
        assert decoded.config == {"region": "eastus", "replicas": "2", "zones": '["1","2"]'}

    def test_import_target(self):
        target = ImportTarget(
            resource_type="azure-native:resources:ResourceGroup",
            resource_name="legacy",
            resource_id="/subscriptions/123/resourceGroups/legacy",
        )
        decoded = decode_request(encode_request(_request(import_target=target)))
        assert decoded.import_target == target

    def test_empty_request(self):
        decoded = decode_request(encode_request(OperationRequest(project="p", stack="s")))
        assert decoded.resources == []
        assert decoded.config == {}
        assert decoded.backend is None


class TestEncodeRuntime:
    """Test the runtime-configuration block."""

    def test_passphrase(self):
        runtime = _runtime_message(RuntimeConfig(secrets=PassphraseSecrets("s3cret")))
        assert runtime.secrets_provider.passphrase.passphrase == "s3cret"

    def test_empty_passphrase_leaves_provider_unset(self):
        runtime = _runtime_message(RuntimeConfig())
        assert runtime.secrets_provider.WhichOneof("provider") is None

    def test_no_secrets_selects_local_provider(self):
        runtime = _runtime_message(RuntimeConfig(secrets=NoSecrets()))
        assert runtime.secrets_provider.WhichOneof("provider") == "local"

    def test_cloud_kms(self):
        secrets = CloudKmsSecrets.aws_kms("alias/stack", region="eu-west-1")
        runtime = _runtime_message(RuntimeConfig(secrets=secrets))
        kms = runtime.secrets_provider.cloud_kms
        assert kms.provider_type == "awskms"
        assert kms.key_id == "alias/stack"
        assert kms.credentials["AWS_REGION"] == "eu-west-1"

    def test_local_backend_without_path_is_unset(self):
        runtime = _runtime_message(RuntimeConfig(backend=LocalBackend()))
        assert runtime.backend.WhichOneof("backend") is None

    def test_local_backend_path(self):
        runtime = _runtime_message(RuntimeConfig(backend=LocalBackend(path="/var/state")))
        assert runtime.backend.local.path == "/var/state"

    def test_s3_backend(self):
        backend = S3Backend(bucket="state", region="us-east-1", endpoint="http://minio:9000")
        runtime = _runtime_message(RuntimeConfig(backend=backend))
        assert runtime.backend.s3.bucket == "state"
        assert runtime.backend.s3.region == "us-east-1"
        assert runtime.backend.s3.endpoint == "http://minio:9000"
        assert runtime.backend.s3.access_key == ""

    def test_azure_blob_backend(self):
        backend = AzureBlobBackend(storage_account="acct", container="state", sas_token="sv=1")
        runtime = _runtime_message(RuntimeConfig(backend=backend))
        assert runtime.backend.azure_blob.storage_account == "acct"
        assert runtime.backend.azure_blob.sas_token == "sv=1"

    def test_service_backend(self):
        backend = ServiceBackend(url="https://api.example.com", access_token="tok")
        runtime = _runtime_message(RuntimeConfig(backend=backend))
        assert runtime.backend.cloud.url == "https://api.example.com"
        assert runtime.backend.cloud.api_token == "tok"

    def test_environment_and_overrides(self):
        runtime = _runtime_message(
            RuntimeConfig(
                environment={"ARM_USE_MSI": "true"},
                home_directory="/opt/home",
                log_level="debug",
            )
        )
        assert dict(runtime.environment) == {"ARM_USE_MSI": "true"}
        assert runtime.home_directory == "/opt/home"
        assert runtime.log_level == "debug"


class TestResponses:
    """Test response encoding and decoding."""

    def test_round_trip(self):
        response = OperationResponse(
            success=True,
            outputs=[
                OutputItem("rg", "name", "my-rg"),
                OutputItem("sa", "endpoints", {"blob": "https://sa.blob"}),
                OutputItem("sa", "id", None),
            ],
        )
        assert decode_response(encode_response(response)) == response

    def test_failure_keeps_error_text(self):
        decoded = decode_response(encode_response(OperationResponse(success=False, error="quota exceeded")))
        assert decoded.success is False
        assert decoded.error == "quota exceeded"
        assert decoded.outputs == []

    def test_malformed_bytes_raise_decode_error(self):
        with pytest.raises(DecodeError):
            decode_response(b"\xff\xff\xff\xff")

    def test_output_without_value_is_none(self):
        message = schema.OperationResponse(success=True)
        message.outputs.add(resource_name="rg", output_name="id")
        decoded = decode_response(message.SerializeToString())
        assert decoded.outputs == [OutputItem("rg", "id", None)]


class TestNestingBound:
    """Test that the deepest encodable values still decode."""

    @staticmethod
    def _deepest_tree():
        tree = "leaf"
        for _ in range(MAX_NESTING):
            tree = {"k": tree}
        return tree

    def test_response_round_trip_at_bound(self):
        response = OperationResponse(success=True, outputs=[OutputItem("rg", "tags", self._deepest_tree())])
        assert decode_response(encode_response(response)) == response

    def test_request_round_trip_at_bound(self):
        resource = ResourceDescriptor(type="t:m:R", name="deep", properties={"tree": self._deepest_tree()})
        decoded = decode_request(encode_request(_request(resources=[resource])))
        assert decoded.resources[0].properties == {"tree": self._deepest_tree()}

    def test_deeper_values_fail_before_encoding(self):
        response = OperationResponse(success=True, outputs=[OutputItem("rg", "tags", {"k": self._deepest_tree()})])
        with pytest.raises(SerializationError):
            encode_response(response)
