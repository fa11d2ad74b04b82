"""Stacks and the operations run against them."""

from stackbridge.orchestration.builders import (
    DeploymentBuilder,
    ImportBuilder,
    OperationBuilder,
    PreviewBuilder,
    RefreshBuilder,
)
from stackbridge.orchestration.results import StackResult
from stackbridge.orchestration.stack import Engine, Stack, StackBuilder

__all__ = [
    "DeploymentBuilder",
    "Engine",
    "ImportBuilder",
    "OperationBuilder",
    "PreviewBuilder",
    "RefreshBuilder",
    "Stack",
    "StackBuilder",
    "StackResult",
]
