"""Event handlers for deployment progress."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import structlog
from rich.console import Console
from rich.markup import escape

from stackbridge.cli.ux import console as default_console
from stackbridge.events.models import (
    DeploymentEvent,
    DiagnosticEvent,
    DiagnosticSeverity,
    PreludeEvent,
    ResourceEvent,
    ResourceOperation,
    ResourceOperationFailedEvent,
    ResourceOutputsEvent,
    ResourcePreEvent,
    SummaryEvent,
)


@runtime_checkable
class EventHandler(Protocol):
    """Receives each decoded event once, on the dispatcher thread."""

    def handle_event(self, event: DeploymentEvent) -> None:
        ...


_PROGRESS_VERBS = {
    ResourceOperation.create: "Creating",
    ResourceOperation.update: "Updating",
    ResourceOperation.delete: "Deleting",
    ResourceOperation.replace: "Replacing",
}

_FAILURE_VERBS = {
    ResourceOperation.create: "create",
    ResourceOperation.update: "update",
    ResourceOperation.delete: "delete",
}

_SEVERITY_PREFIX = {
    DiagnosticSeverity.error: "[error]ERROR[/error]",
    DiagnosticSeverity.warning: "[warning]WARN[/warning]",
    DiagnosticSeverity.info: "[info]INFO[/info]",
    DiagnosticSeverity.debug: "[muted]DEBUG[/muted]",
}


def _label(resource: ResourceEvent) -> str:
    # Runtime text may contain square brackets.
    return f"{escape(resource.resource_type)} ({escape(resource.name)})"

class PrintEventHandler:
    """Renders progress lines to the terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or default_console

    def handle_event(self, event: DeploymentEvent) -> None:
        self.console.print(self.format(event))

    def format(self, event: DeploymentEvent) -> str:
        if isinstance(event, PreludeEvent):
            return f"[highlight]>>[/highlight] {escape(event.message)}"

        if isinstance(event, ResourcePreEvent):
            resource = event.resource
            verb = _PROGRESS_VERBS.get(resource.operation, "Processing")
            line = f"{verb} {_label(resource)}"
            progress = event.metadata.progress
            if progress is not None:
                line = f"[muted][{progress.current}/{progress.total}][/muted] {line}"
            return line

        if isinstance(event, ResourceOutputsEvent):
            resource = event.resource
            duration = event.metadata.duration_seconds or 0.0
            return (
                f"[success]✓[/success] {escape(resource.resource_type)} {escape(resource.name)} "
                f"done ({duration:.1f}s)"
            )

        if isinstance(event, ResourceOperationFailedEvent):
            resource = event.resource
            verb = _FAILURE_VERBS.get(resource.operation, "process")
            return f"[error]✗[/error] Failed to {verb} {_label(resource)}"

        if isinstance(event, DiagnosticEvent):
            return f"{_SEVERITY_PREFIX[event.severity]}: {escape(event.message)}"

        if isinstance(event, SummaryEvent):
            return (
                f"\n[bold]Summary:[/bold] {escape(event.message)} "
                f"(took {event.duration_seconds:.1f}s)"
            )

        return str(event)


class LoggingEventHandler:
    """Emits one structlog record per event."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._logger = logger or structlog.get_logger()

    def handle_event(self, event: DeploymentEvent) -> None:
        fields = event.model_dump(mode="json", exclude_none=True, by_alias=True)
        event_type = fields.pop("type")
        if isinstance(event, DiagnosticEvent) and event.severity is DiagnosticSeverity.error:
            self._logger.error("deployment_event", event_type=event_type, **fields)
        else:
            self._logger.info("deployment_event", event_type=event_type, **fields)
