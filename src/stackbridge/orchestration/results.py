"""Result types for stack operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from stackbridge.bridge.boundary import Operation
from stackbridge.bridge.models import OutputItem
from stackbridge.bridge.values import StructuredValue


@dataclass
class StackResult:
    """Outputs of one successful operation against a stack."""

    operation: Operation
    project: str
    stack: str
    outputs: List[OutputItem] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def values(self) -> Dict[str, StructuredValue]:
        """Outputs keyed by ``"resource.output"``."""
        return {item.key: item.value for item in self.outputs}

    def by_resource(self) -> Dict[str, Dict[str, StructuredValue]]:
        """Outputs nested per resource, the shape reference resolution expects."""
        nested: Dict[str, Dict[str, StructuredValue]] = {}
        for item in self.outputs:
            nested.setdefault(item.resource_name, {})[item.output_name] = item.value
        return nested

    def get(self, resource_name: str, output_name: str, default: Any = None) -> Any:
        for item in self.outputs:
            if item.resource_name == resource_name and item.output_name == output_name:
                return item.value
        return default

    @property
    def summary(self) -> Any:
        return self.get("stack", "summary")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": str(self.operation),
            "project": self.project,
            "stack": self.stack,
            "outputs": self.values,
            "duration_seconds": round(self.duration_seconds, 3),
        }
