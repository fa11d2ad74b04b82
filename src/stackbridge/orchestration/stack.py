"""Stacks: named, project-scoped sets of resources submitted together."""

from __future__ import annotations

import time
from collections import Counter
from typing import Any, Dict, Optional, Sequence

import structlog

from stackbridge.bridge.boundary import Boundary, NativeBoundary, Operation
from stackbridge.bridge.models import ImportTarget, OperationRequest, ResourceDescriptor
from stackbridge.bridge.runtime import RuntimeBridge
from stackbridge.config.runtime import RuntimeConfig
from stackbridge.config.settings import Settings, get_settings
from stackbridge.core.errors import ConfigError, OperationError
from stackbridge.events.channel import EventSink, HandlerLike
from stackbridge.orchestration.builders import (
    DeploymentBuilder,
    ImportBuilder,
    PreviewBuilder,
    RefreshBuilder,
)
from stackbridge.orchestration.results import StackResult

logger = structlog.get_logger()


class Engine:
    """Entry point: owns the runtime bridge and hands out stack builders.

    Without an explicit boundary the native runtime library is loaded from
    settings the first time an operation runs.
    """

    def __init__(self, boundary: Boundary | None = None, settings: Settings | None = None) -> None:
        self._boundary = boundary
        self._settings = settings or get_settings()
        self._bridge: RuntimeBridge | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def bridge(self) -> RuntimeBridge:
        if self._bridge is None:
            boundary = self._boundary or NativeBoundary.load(settings=self._settings)
            self._bridge = RuntimeBridge(boundary)
        return self._bridge

    def create_stack(self, name: str) -> StackBuilder:
        return StackBuilder(name, self)


class StackBuilder:
    def __init__(self, name: str, engine: Engine) -> None:
        self._name = name
        self._engine = engine
        self._project: Optional[str] = None
        self._backend: Optional[str] = None
        self._config: Dict[str, Any] = {}
        self._runtime: Optional[RuntimeConfig] = None

    def with_project(self, project: str) -> StackBuilder:
        self._project = project
        return self

    def with_backend(self, backend: str) -> StackBuilder:
        self._backend = backend
        return self

    def with_azure_backend(self) -> StackBuilder:
        return self.with_backend("azblob")

    def with_config(self, key: str, value: Any) -> StackBuilder:
        self._config[key] = value
        return self

    def with_runtime_config(self, runtime: RuntimeConfig) -> StackBuilder:
        self._runtime = runtime
        return self

    def build(self) -> Stack:
        if not self._name:
            raise ConfigError("Stack name is required")
        return Stack(
            name=self._name,
            project=self._project or self._engine.settings.default_project,
            backend=self._backend,
            config=dict(self._config),
            runtime=self._runtime,
            engine=self._engine,
        )


class Stack:
    """A stack bound to an engine; operations are started from here."""

    def __init__(
        self,
        name: str,
        project: str,
        backend: Optional[str],
        config: Dict[str, Any],
        runtime: Optional[RuntimeConfig],
        engine: Engine,
    ) -> None:
        self.name = name
        self.project = project
        self.backend = backend
        self.config = config
        self.runtime = runtime
        self._engine = engine

    def preview(self) -> PreviewBuilder:
        return PreviewBuilder(self)

    def deploy(self) -> DeploymentBuilder:
        return DeploymentBuilder(self)

    def refresh(self) -> RefreshBuilder:
        return RefreshBuilder(self)

    def import_resource(self) -> ImportBuilder:
        return ImportBuilder(self)

    def destroy(self) -> StackResult:
        """Destroy every resource in the stack. Not reversible."""
        return self.run(Operation.DESTROY, self.request([]))

    def get_outputs(self) -> StackResult:
        return self.run(Operation.GET_OUTPUTS, self.request([]))

    def export(self) -> StackResult:
        return self.get_outputs()

    def request(
        self,
        resources: Sequence[ResourceDescriptor],
        import_target: ImportTarget | None = None,
    ) -> OperationRequest:
        duplicates = sorted(
            name for name, count in Counter(r.name for r in resources).items() if count > 1
        )
        if duplicates:
            raise ConfigError(
                "Resource names must be unique within a stack",
                {"duplicates": ", ".join(duplicates)},
            )
        return OperationRequest(
            project=self.project,
            stack=self.name,
            backend=self.backend,
            config=dict(self.config),
            resources=list(resources),
            runtime=self.runtime,
            import_target=import_target,
        )

    def run(
        self,
        operation: Operation,
        request: OperationRequest,
        handler: HandlerLike | None = None,
        *,
        drain: bool = False,
    ) -> StackResult:
        """Submit ``request``, streaming events to ``handler`` while it runs.

        With ``drain``, return only after every event queued during the call
        has been handed to ``handler``.
        """
        log = logger.bind(operation=str(operation), project=self.project, stack=self.name)
        bridge = self._engine.bridge
        started = time.monotonic()

        sink = None
        if handler is not None:
            sink = EventSink(
                bridge.boundary, handler, max_pending=self._engine.settings.event_queue_size
            )
            sink.open()
        try:
            response = bridge.call(operation, request)
        finally:
            if sink is not None:
                sink.close()
                if drain:
                    sink.wait()

        duration = time.monotonic() - started
        if not response.success:
            log.warning("operation_failed", error=response.error)
            raise OperationError(
                response.error, {"operation": str(operation), "stack": self.name}
            )

        log.info("operation_completed", outputs=len(response.outputs), duration_seconds=round(duration, 3))
        return StackResult(
            operation=operation,
            project=self.project,
            stack=self.name,
            outputs=list(response.outputs),
            duration_seconds=duration,
        )
