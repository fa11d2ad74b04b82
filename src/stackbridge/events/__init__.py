"""Event streaming from in-flight runtime operations."""

from stackbridge.events.channel import EventSink, SinkState
from stackbridge.events.handlers import EventHandler, LoggingEventHandler, PrintEventHandler
from stackbridge.events.models import (
    DeploymentEvent,
    DiagnosticEvent,
    DiagnosticSeverity,
    EventMetadata,
    PreludeEvent,
    Progress,
    ResourceEvent,
    ResourceOperation,
    ResourceOperationFailedEvent,
    ResourceOutputsEvent,
    ResourcePreEvent,
    ResourceStatus,
    SummaryEvent,
    parse_event,
)

__all__ = [
    "DeploymentEvent",
    "DiagnosticEvent",
    "DiagnosticSeverity",
    "EventHandler",
    "EventMetadata",
    "EventSink",
    "LoggingEventHandler",
    "PreludeEvent",
    "PrintEventHandler",
    "Progress",
    "ResourceEvent",
    "ResourceOperation",
    "ResourceOperationFailedEvent",
    "ResourceOutputsEvent",
    "ResourcePreEvent",
    "ResourceStatus",
    "SinkState",
    "SummaryEvent",
    "parse_event",
]
