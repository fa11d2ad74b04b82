"""
Deployment events streamed out of a running operation.

The runtime emits one JSON document per event, tagged by ``type``::

    {"type": "resourcePreEvent",
     "resource": {"urn": "...", "type": "...", "name": "...", "operation": "create"},
     "metadata": {"duration_seconds": null, "progress": {"current": 1, "total": 3}}}
"""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Annotated, Literal, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

logger = structlog.get_logger()


class ResourceOperation(StrEnum):
    create = "create"
    update = "update"
    delete = "delete"
    replace = "replace"
    create_replacement = "createReplacement"
    delete_replaced = "deleteReplaced"
    read = "read"
    import_ = "import"


class ResourceStatus(StrEnum):
    success = "success"
    failed = "failed"
    skipped = "skipped"


class DiagnosticSeverity(StrEnum):
    debug = "debug"
    info = "info"
    warning = "warning"
    error = "error"


class Progress(BaseModel):
    current: int
    total: int


class EventMetadata(BaseModel):
    duration_seconds: float | None = None
    progress: Progress | None = None


class ResourceEvent(BaseModel):
    """Identity of the resource an event is about."""

    model_config = ConfigDict(populate_by_name=True)

    urn: str
    resource_type: str = Field(alias="type")
    name: str
    operation: ResourceOperation


class PreludeEvent(BaseModel):
    type: Literal["preludeEvent"] = "preludeEvent"
    message: str = ""


class ResourcePreEvent(BaseModel):
    type: Literal["resourcePreEvent"] = "resourcePreEvent"
    resource: ResourceEvent
    metadata: EventMetadata = Field(default_factory=EventMetadata)


class ResourceOutputsEvent(BaseModel):
    type: Literal["resourceOutputsEvent"] = "resourceOutputsEvent"
    resource: ResourceEvent
    metadata: EventMetadata = Field(default_factory=EventMetadata)


class ResourceOperationFailedEvent(BaseModel):
    type: Literal["resourceOperationFailedEvent"] = "resourceOperationFailedEvent"
    resource: ResourceEvent
    status: ResourceStatus
    steps: int = 0
    metadata: EventMetadata = Field(default_factory=EventMetadata)


class DiagnosticEvent(BaseModel):
    type: Literal["diagnosticEvent"] = "diagnosticEvent"
    severity: DiagnosticSeverity
    message: str
    resource: ResourceEvent | None = None


class SummaryEvent(BaseModel):
    type: Literal["summaryEvent"] = "summaryEvent"
    message: str
    duration_seconds: float


DeploymentEvent = Annotated[
    Union[
        PreludeEvent,
        ResourcePreEvent,
        ResourceOutputsEvent,
        ResourceOperationFailedEvent,
        DiagnosticEvent,
        SummaryEvent,
    ],
    Field(discriminator="type"),
]

_event_adapter: TypeAdapter[DeploymentEvent] = TypeAdapter(DeploymentEvent)


def parse_event(payload: str) -> DeploymentEvent | None:
    """Decode one event document; None when it is not a recognised event."""
    try:
        return _event_adapter.validate_python(json.loads(payload))
    except (ValueError, RecursionError) as e:
        # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors;
        # deeply nested documents exhaust the decoder's recursion limit.
        logger.debug("event_dropped", error=str(e), size=len(payload))
        return None
