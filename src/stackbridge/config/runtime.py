"""
Runtime configuration forwarded to the automation runtime.

None of these values are interpreted by stackbridge: secrets providers,
state backends and environment overrides are passed through verbatim in the
request's runtime-configuration block.

Secrets providers:
- Passphrase (default; an empty passphrase defers to the runtime's environment)
- Cloud KMS (AWS KMS, Azure Key Vault, GCP KMS)
- None (no encryption, development only)

Backends:
- Local file storage (default)
- S3-compatible object storage
- Azure Blob Storage
- Managed service backend
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Union

from stackbridge.core.errors import ConfigError


class KmsProvider(StrEnum):
    """Cloud KMS provider kind tags understood by the runtime."""

    AWS = "awskms"
    AZURE = "azurekeyvault"
    GCP = "gcpkms"


@dataclass
class PassphraseSecrets:
    passphrase: str = ""


@dataclass
class CloudKmsSecrets:
    """Cloud KMS secrets provider: kind tag, key identifier and credentials."""
    provider_type: str
    key_id: str
    credentials: dict[str, str] = field(default_factory=dict)

    @classmethod
    def aws_kms(
        cls,
        key_id: str,
        *,
        region: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
    ) -> CloudKmsSecrets:
        credentials = _compact({
            "AWS_REGION": region,
            "AWS_ACCESS_KEY_ID": access_key_id,
            "AWS_SECRET_ACCESS_KEY": secret_access_key,
        })
        return cls(provider_type=KmsProvider.AWS, key_id=key_id, credentials=credentials)

    @classmethod
    def azure_key_vault(
        cls,
        key_url: str,
        *,
        client_id: str | None = None,
        client_secret: str | None = None,
        tenant_id: str | None = None,
    ) -> CloudKmsSecrets:
        credentials = _compact({
            "AZURE_CLIENT_ID": client_id,
            "AZURE_CLIENT_SECRET": client_secret,
            "AZURE_TENANT_ID": tenant_id,
        })
        return cls(provider_type=KmsProvider.AZURE, key_id=key_url, credentials=credentials)

    @classmethod
    def gcp_kms(cls, key_name: str, *, credentials_json: str | None = None) -> CloudKmsSecrets:
        credentials = _compact({"GOOGLE_CREDENTIALS": credentials_json})
        return cls(provider_type=KmsProvider.GCP, key_id=key_name, credentials=credentials)


@dataclass
class NoSecrets:
    """No secrets encryption (development only)."""


SecretsConfig = Union[PassphraseSecrets, CloudKmsSecrets, NoSecrets]


@dataclass
class LocalBackend:
    path: str | None = None


@dataclass
class S3Backend:
    bucket: str
    region: str
    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None
    endpoint: str | None = None


@dataclass
class AzureBlobBackend:
    storage_account: str
    container: str
    access_key: str | None = None
    sas_token: str | None = None


@dataclass
class ServiceBackend:
    url: str
    access_token: str


BackendConfig = Union[LocalBackend, S3Backend, AzureBlobBackend, ServiceBackend]

_BACKEND_TYPES: dict[str, type] = {
    "local": LocalBackend,
    "s3": S3Backend,
    "azblob": AzureBlobBackend,
    "service": ServiceBackend,
}


@dataclass
class RuntimeConfig:
    """Runtime-configuration block embedded in every operation request."""

    secrets: SecretsConfig = field(default_factory=PassphraseSecrets)
    backend: BackendConfig = field(default_factory=LocalBackend)
    environment: dict[str, str] = field(default_factory=dict)
    home_directory: str | None = None
    log_level: str | None = None

    def with_passphrase(self, passphrase: str) -> RuntimeConfig:
        self.secrets = PassphraseSecrets(passphrase)
        return self

    def with_aws_kms(self, key_id: str, **credentials: str | None) -> RuntimeConfig:
        self.secrets = CloudKmsSecrets.aws_kms(key_id, **credentials)
        return self

    def with_s3_backend(self, bucket: str, region: str, **options: str | None) -> RuntimeConfig:
        self.backend = S3Backend(bucket=bucket, region=region, **options)
        return self

    def with_env(self, key: str, value: str) -> RuntimeConfig:
        self.environment[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "secrets": _secrets_to_dict(self.secrets),
            "backend": _backend_to_dict(self.backend),
            "environment": dict(self.environment),
            "home_directory": self.home_directory,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RuntimeConfig:
        """Build from the ``runtime`` section of a stack file.

        ``secrets`` is ``"none"``, ``{"passphrase": ...}`` or
        ``{"kms": {"provider": ..., "key_id": ..., "credentials": {...}}}``;
        ``backend`` is a single-key mapping naming one of local, s3, azblob
        or service.
        """
        environment = data.get("environment") or {}
        if not isinstance(environment, dict):
            raise ConfigError("runtime.environment must be a mapping")
        return cls(
            secrets=_secrets_from_dict(data.get("secrets")),
            backend=_backend_from_dict(data.get("backend")),
            environment=_text_map(environment),
            home_directory=data.get("home_directory"),
            log_level=data.get("log_level"),
        )


def _compact(values: dict[str, str | None]) -> dict[str, str]:
    return {k: v for k, v in values.items() if v is not None}


def _text_map(values: dict[Any, Any]) -> dict[str, str]:
    # YAML nulls mean unset, not the text "None".
    return {str(k): str(v) for k, v in values.items() if v is not None}


def _secrets_to_dict(secrets: SecretsConfig) -> dict[str, Any] | str:
    if isinstance(secrets, NoSecrets):
        return "none"
    if isinstance(secrets, CloudKmsSecrets):
        return {
            "kms": {
                "provider": str(secrets.provider_type),
                "key_id": secrets.key_id,
                "credentials": dict(secrets.credentials),
            }
        }
    return {"passphrase": secrets.passphrase}


def _secrets_from_dict(data: Any) -> SecretsConfig:
    if data is None:
        return PassphraseSecrets()
    if data == "none":
        return NoSecrets()
    if not isinstance(data, dict):
        raise ConfigError("runtime.secrets must be 'none' or a mapping", {"value": data})
    if "kms" in data:
        kms = data["kms"] or {}
        if "provider" not in kms or "key_id" not in kms:
            raise ConfigError("runtime.secrets.kms requires 'provider' and 'key_id'")
        return CloudKmsSecrets(
            provider_type=kms["provider"],
            key_id=kms["key_id"],
            credentials=_text_map(kms.get("credentials") or {}),
        )
    passphrase = data.get("passphrase")
    return PassphraseSecrets(passphrase="" if passphrase is None else str(passphrase))


def _backend_to_dict(backend: BackendConfig) -> dict[str, Any]:
    for name, backend_type in _BACKEND_TYPES.items():
        if isinstance(backend, backend_type):
            return {name: dict(vars(backend))}
    raise ConfigError(f"Unknown backend type: {type(backend).__name__}")


def _backend_from_dict(data: Any) -> BackendConfig:
    if data is None:
        return LocalBackend()
    if not isinstance(data, dict) or len(data) != 1:
        raise ConfigError(
            "runtime.backend must name exactly one of: " + ", ".join(_BACKEND_TYPES)
        )
    name, options = next(iter(data.items()))
    backend_type = _BACKEND_TYPES.get(name)
    if backend_type is None:
        raise ConfigError(f"Unknown backend '{name}'", {"supported": ", ".join(_BACKEND_TYPES)})
    try:
        return backend_type(**(options or {}))
    except TypeError as e:
        raise ConfigError(f"Invalid options for backend '{name}': {e}") from e
