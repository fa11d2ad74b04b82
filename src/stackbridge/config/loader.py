"""
Stack file loading.

A stack file is YAML describing one stack and the resources submitted with
it::

    project: webapp
    stack: dev
    backend: azblob            # optional
    config:
      azure-native:location: westeurope
    runtime:                   # optional, see RuntimeConfig.from_dict
      secrets: {passphrase: ""}
    resources:
      - type: azure-native:resources:ResourceGroup
        name: rg
        properties: {location: westeurope}
      - type: azure-native:storage:StorageAccount
        name: sa
        properties:
          resourceGroupName: ${rg.name}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

from stackbridge.bridge.models import ResourceDescriptor
from stackbridge.config.runtime import RuntimeConfig
from stackbridge.core.errors import ConfigError

logger = structlog.get_logger()


@dataclass
class StackDefinition:
    """Contents of a stack file."""

    stack: str
    project: str | None = None
    backend: str | None = None
    config: dict[str, Any] = field(default_factory=dict)
    runtime: RuntimeConfig | None = None
    resources: list[ResourceDescriptor] = field(default_factory=list)

    @property
    def resource_names(self) -> list[str]:
        return [resource.name for resource in self.resources]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StackDefinition:
        stack = data.get("stack")
        if not stack:
            raise ConfigError("Stack file must name a 'stack'")

        config = data.get("config") or {}
        if not isinstance(config, dict):
            raise ConfigError("'config' must be a mapping")

        resources = data.get("resources") or []
        if not isinstance(resources, list):
            raise ConfigError("'resources' must be a list")
        for entry in resources:
            if not isinstance(entry, dict):
                raise ConfigError("Each resource must be a mapping", {"value": entry})

        runtime = data.get("runtime")
        if runtime is not None and not isinstance(runtime, dict):
            raise ConfigError("'runtime' must be a mapping")

        return cls(
            stack=str(stack),
            project=data.get("project"),
            backend=data.get("backend"),
            config={str(k): v for k, v in config.items()},
            runtime=RuntimeConfig.from_dict(runtime) if runtime is not None else None,
            resources=[ResourceDescriptor.from_dict(entry) for entry in resources],
        )


def load_stack_file(path: str | Path) -> StackDefinition:
    """
    Load a stack definition from a YAML file.

    Raises:
        ConfigError: If the file is missing, unreadable, or malformed
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Stack file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read stack file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Stack file {path} must contain a mapping")

    definition = StackDefinition.from_dict(data)
    logger.debug(
        "loaded_stack_file",
        path=str(path),
        stack=definition.stack,
        resources=len(definition.resources),
    )
    return definition
