"""Request and response types exchanged with the automation runtime."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from stackbridge.bridge.values import StructuredValue
from stackbridge.config.runtime import RuntimeConfig
from stackbridge.core.errors import ConfigError
from stackbridge.references import OutputReference, find_references, resolve_references


@dataclass(frozen=True)
class ResourceOptions:
    """Per-resource options forwarded to the runtime."""

    parent: str | None = None
    depends_on: list[str] = field(default_factory=list)
    provider: str | None = None
    delete_before_replace: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "parent": self.parent,
            "dependsOn": list(self.depends_on),
            "provider": self.provider,
            "deleteBeforeReplace": self.delete_before_replace,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ResourceOptions:
        depends_on = data.get("dependsOn", data.get("depends_on")) or []
        if isinstance(depends_on, str):
            depends_on = [depends_on]
        return cls(
            parent=data.get("parent"),
            depends_on=[str(name) for name in depends_on],
            provider=data.get("provider"),
            delete_before_replace=bool(
                data.get("deleteBeforeReplace", data.get("delete_before_replace", False))
            ),
        )


@dataclass(frozen=True)
class ResourceDescriptor:
    """A resource the caller wants the runtime to manage.

    ``type`` is the runtime's resource kind token (for example
    ``azure-native:resources:ResourceGroup``) and ``name`` the logical name,
    unique within one request. Properties may embed ``${resource.path}``
    output references.
    """

    type: str
    name: str
    properties: dict[str, StructuredValue] = field(default_factory=dict)
    options: ResourceOptions | None = None

    def references(self) -> list[OutputReference]:
        """Output references embedded in this resource's properties."""
        return find_references(self.properties)

    def resolved(self, outputs: Mapping[str, StructuredValue]) -> ResourceDescriptor:
        """Copy of this descriptor with known output references substituted."""
        return replace(self, properties=resolve_references(self.properties, outputs))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type,
            "name": self.name,
            "properties": self.properties,
        }
        if self.options is not None:
            data["options"] = self.options.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ResourceDescriptor:
        missing = [key for key in ("type", "name") if not data.get(key)]
        if missing:
            raise ConfigError(
                "Resource is missing required fields",
                {"missing": ", ".join(missing), "resource": data.get("name", "?")},
            )
        properties = data.get("properties") or {}
        if not isinstance(properties, Mapping):
            raise ConfigError(f"Properties of resource '{data['name']}' must be a mapping")
        options = data.get("options")
        return cls(
            type=str(data["type"]),
            name=str(data["name"]),
            properties=dict(properties),
            options=ResourceOptions.from_dict(options) if options else None,
        )


@dataclass(frozen=True)
class ImportTarget:
    """Identity of an existing resource to adopt into the stack."""

    resource_type: str
    resource_name: str
    resource_id: str


@dataclass
class OperationRequest:
    project: str
    stack: str
    backend: str | None = None
    config: dict[str, Any] = field(default_factory=dict)
    resources: list[ResourceDescriptor] = field(default_factory=list)
    runtime: RuntimeConfig | None = None
    import_target: ImportTarget | None = None


@dataclass(frozen=True)
class OutputItem:
    resource_name: str
    output_name: str
    value: StructuredValue

    @property
    def key(self) -> str:
        return f"{self.resource_name}.{self.output_name}"


@dataclass
class OperationResponse:
    """Decoded runtime response.

    On success ``error`` is ignored; on failure ``outputs`` is ignored.
    """

    success: bool
    outputs: list[OutputItem] = field(default_factory=list)
    error: str = ""
