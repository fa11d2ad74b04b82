"""
Configuration: process settings, runtime configuration and stack files.
"""

from stackbridge.config.runtime import (
    AzureBlobBackend,
    BackendConfig,
    CloudKmsSecrets,
    KmsProvider,
    LocalBackend,
    NoSecrets,
    PassphraseSecrets,
    RuntimeConfig,
    S3Backend,
    SecretsConfig,
    ServiceBackend,
)
from stackbridge.config.settings import Settings, get_settings

__all__ = [
    "AzureBlobBackend",
    "BackendConfig",
    "CloudKmsSecrets",
    "KmsProvider",
    "LocalBackend",
    "NoSecrets",
    "PassphraseSecrets",
    "RuntimeConfig",
    "S3Backend",
    "SecretsConfig",
    "ServiceBackend",
    "Settings",
    "get_settings",
]
