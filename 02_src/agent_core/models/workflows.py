"""Workflow-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from .messages import Result

ConditionOperator = Literal["eq", "ne", "gt", "lt", "in", "contains"]


class ExecutionStatus(str, Enum):
    """Lifecycle status of a workflow execution."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class StepCondition:
    """Guard evaluated against the step input before the step runs."""

    field: str  # dotted path into the step input
    operator: ConditionOperator
    value: Any


@dataclass(frozen=True)
class WorkflowStep:
    """One agent invocation inside a workflow."""

    id: str
    name: str = ""
    capability: str | None = None
    agent_id: str | None = None
    message_type: str | None = None
    params: dict = field(default_factory=dict)
    conditions: tuple[StepCondition, ...] = ()
    timeout: float | None = None

    def __post_init__(self) -> None:
        if not self.capability and not self.agent_id:
            raise ValueError(f"step {self.id!r} needs a capability or an agent_id")
        object.__setattr__(self, "conditions", tuple(self.conditions))

    @classmethod
    def from_dict(cls, data: dict) -> "WorkflowStep":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            capability=data.get("capability"),
            agent_id=data.get("agent_id"),
            message_type=data.get("message_type"),
            params=dict(data.get("params", {})),
            conditions=tuple(
                StepCondition(c["field"], c["operator"], c.get("value"))
                for c in data.get("conditions", [])
            ),
            timeout=data.get("timeout"),
        )


@dataclass(frozen=True)
class WorkflowDefinition:
    """A named, ordered sequence of steps."""

    id: str
    name: str
    steps: tuple[WorkflowStep, ...]
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(self.steps))

    @classmethod
    def from_dict(cls, data: dict) -> "WorkflowDefinition":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            description=data.get("description", ""),
            steps=tuple(WorkflowStep.from_dict(s) for s in data["steps"]),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "steps": [
                {
                    "id": s.id,
                    "name": s.name,
                    "capability": s.capability,
                    "agent_id": s.agent_id,
                    "message_type": s.message_type,
                }
                for s in self.steps
            ],
        }


@dataclass
class StepRecord:
    """What happened to one step during an execution."""

    index: int
    step_id: str
    skipped: bool = False
    result: Result | None = None


@dataclass
class WorkflowExecution:
    """A single run of a workflow."""

    id: str
    workflow_id: str
    status: ExecutionStatus
    started_at: datetime
    finished_at: datetime | None = None
    steps: list[StepRecord] = field(default_factory=list)
    failed_step: int | None = None
    error: str | None = None

    @property
    def duration_ms(self) -> float | None:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds() * 1000

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "workflow_id": self.workflow_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_ms": self.duration_ms,
            "failed_step": self.failed_step,
            "error": self.error,
            "steps": [
                {
                    "index": r.index,
                    "step_id": r.step_id,
                    "skipped": r.skipped,
                    "result": r.result.to_dict() if r.result else None,
                }
                for r in self.steps
            ],
        }
