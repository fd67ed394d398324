"""Workflow module."""

from .engine import IWorkflowEngine, WorkflowEngine
from .store import (
    DEFAULT_WORKFLOWS,
    InMemoryWorkflowStore,
    IWorkflowStore,
    load_workflows,
)

__all__ = [
    "DEFAULT_WORKFLOWS",
    "InMemoryWorkflowStore",
    "IWorkflowEngine",
    "IWorkflowStore",
    "WorkflowEngine",
    "load_workflows",
]
