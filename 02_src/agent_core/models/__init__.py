"""Core data models for the agent core."""

from .agents import AgentContext, AgentMetrics, Capability, HealthReport, OrganizationType
from .messages import (
    Message,
    MessageMetadata,
    Priority,
    Result,
    ResultError,
    ResultMetadata,
)
from .tracing import BusEvent, Topic, TraceEvent
from .workflows import (
    ExecutionStatus,
    StepCondition,
    StepRecord,
    WorkflowDefinition,
    WorkflowExecution,
    WorkflowStep,
)

__all__ = [
    # Agents
    "AgentContext",
    "AgentMetrics",
    "Capability",
    "HealthReport",
    "OrganizationType",
    # Messages
    "Message",
    "MessageMetadata",
    "Priority",
    "Result",
    "ResultError",
    "ResultMetadata",
    # Workflows
    "ExecutionStatus",
    "StepCondition",
    "StepRecord",
    "WorkflowDefinition",
    "WorkflowExecution",
    "WorkflowStep",
    # Tracing
    "BusEvent",
    "Topic",
    "TraceEvent",
]
