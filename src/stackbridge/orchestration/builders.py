"""
Operation builders.

Each builder accumulates resources and an optional event handler, then runs
its operation once via ``execute()``. Accumulating methods only mutate the
builder; nothing reaches the runtime before ``execute()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional

from stackbridge.bridge.boundary import Operation
from stackbridge.bridge.models import ImportTarget, OperationRequest, ResourceDescriptor
from stackbridge.core.errors import ConfigError
from stackbridge.events.channel import HandlerLike
from stackbridge.orchestration.results import StackResult

if TYPE_CHECKING:
    from stackbridge.orchestration.stack import Stack


class OperationBuilder:
    operation: Operation

    def __init__(self, stack: Stack) -> None:
        self._stack = stack
        self._resources: List[ResourceDescriptor] = []
        self._handler: Optional[HandlerLike] = None
        self._executed = False

    def with_resource(self, resource: ResourceDescriptor) -> OperationBuilder:
        self._resources.append(resource)
        return self

    def with_resources(self, resources: Iterable[ResourceDescriptor]) -> OperationBuilder:
        self._resources.extend(resources)
        return self

    def with_event_handler(self, handler: HandlerLike) -> OperationBuilder:
        self._handler = handler
        return self

    def build_request(self) -> OperationRequest:
        return self._stack.request(self._resources)

    def execute(self, *, drain: bool = False) -> StackResult:
        """Run the operation.

        With ``drain``, return only after the event handler has seen every
        event the runtime emitted during the call.

        Raises:
            ConfigError: already executed, or the request is incomplete
            OperationError: the runtime reported failure
        """
        if self._executed:
            raise ConfigError(f"{self.operation} builder has already been executed")
        request = self.build_request()
        self._executed = True
        return self._stack.run(self.operation, request, self._handler, drain=drain)


class PreviewBuilder(OperationBuilder):
    operation = Operation.PREVIEW


class DeploymentBuilder(OperationBuilder):
    operation = Operation.DEPLOY


class RefreshBuilder(OperationBuilder):
    """Reconcile recorded state with the live resources; submits no resources."""

    operation = Operation.REFRESH

    def with_resource(self, resource: ResourceDescriptor) -> OperationBuilder:
        raise ConfigError("refresh does not take resources", {"resource": resource.name})

    def with_resources(self, resources: Iterable[ResourceDescriptor]) -> OperationBuilder:
        raise ConfigError("refresh does not take resources")

    def build_request(self) -> OperationRequest:
        return self._stack.request([])


class ImportBuilder(OperationBuilder):
    """Adopt one existing cloud resource into the stack's state."""

    operation = Operation.IMPORT

    def __init__(self, stack: Stack) -> None:
        super().__init__(stack)
        self._resource_type: Optional[str] = None
        self._resource_name: Optional[str] = None
        self._resource_id: Optional[str] = None

    def with_resource_type(self, resource_type: str) -> ImportBuilder:
        self._resource_type = resource_type
        return self

    def with_resource_name(self, resource_name: str) -> ImportBuilder:
        self._resource_name = resource_name
        return self

    def with_resource_id(self, resource_id: str) -> ImportBuilder:
        self._resource_id = resource_id
        return self

    def build_request(self) -> OperationRequest:
        for field_name, value in (
            ("resource_type", self._resource_type),
            ("resource_name", self._resource_name),
            ("resource_id", self._resource_id),
        ):
            if not value:
                raise ConfigError(f"{field_name} is required for import")
        target = ImportTarget(
            resource_type=self._resource_type,
            resource_name=self._resource_name,
            resource_id=self._resource_id,
        )
        return self._stack.request(self._resources, import_target=target)
