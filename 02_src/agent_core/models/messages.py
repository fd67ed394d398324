"""Message and Result data models."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class Priority(str, Enum):
    """Scheduling hint carried by a message."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        """Lower rank is served first."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.URGENT: 0,
    Priority.HIGH: 1,
    Priority.NORMAL: 2,
    Priority.LOW: 3,
}


@dataclass(frozen=True)
class MessageMetadata:
    """Routing metadata of a message."""

    timestamp: datetime
    source: str
    target: str | None = None
    correlation_id: str | None = None
    priority: Priority = Priority.NORMAL

    def __post_init__(self) -> None:
        object.__setattr__(self, "priority", Priority(self.priority))


@dataclass(frozen=True)
class Message:
    """An immutable unit of work submitted for routing."""

    id: str
    type: str
    payload: Mapping[str, Any]
    metadata: MessageMetadata

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    @classmethod
    def create(
        cls,
        type: str,
        payload: Mapping[str, Any] | None = None,
        source: str = "api",
        target: str | None = None,
        correlation_id: str | None = None,
        priority: Priority | str = Priority.NORMAL,
        id: str | None = None,
    ) -> "Message":
        """Build a message with a generated id and current timestamp."""
        return cls(
            id=id or str(uuid.uuid4()),
            type=type,
            payload=payload or {},
            metadata=MessageMetadata(
                timestamp=datetime.now(timezone.utc),
                source=source,
                target=target,
                correlation_id=correlation_id,
                priority=Priority(priority),
            ),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "payload": dict(self.payload),
            "metadata": {
                "timestamp": self.metadata.timestamp.isoformat(),
                "source": self.metadata.source,
                "target": self.metadata.target,
                "correlation_id": self.metadata.correlation_id,
                "priority": self.metadata.priority.value,
            },
        }


@dataclass(frozen=True)
class ResultError:
    """Error carried by a failed Result."""

    code: str
    message: str
    details: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: BaseException, code: str = "AGENT_ERROR") -> "ResultError":
        return cls(
            code=code,
            message=str(exc) or type(exc).__name__,
            details={"exception_type": type(exc).__name__},
        )

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": dict(self.details)}


@dataclass(frozen=True)
class ResultMetadata:
    """Bookkeeping attached to every Result."""

    processing_time_ms: float
    agent_id: str
    timestamp: datetime


@dataclass(frozen=True)
class Result:
    """Outcome of one agent's attempt to process a message.

    Use ``Result.ok`` and ``Result.fail`` instead of the constructor so that
    ``data`` is only set on success and ``error`` only on failure.
    """

    success: bool
    metadata: ResultMetadata
    data: Any = None
    error: ResultError | None = None

    def __post_init__(self) -> None:
        if self.success and self.error is not None:
            raise ValueError("successful Result cannot carry an error")
        if not self.success and self.error is None:
            raise ValueError("failed Result must carry an error")
        if not self.success and self.data is not None:
            raise ValueError("failed Result cannot carry data")

    @classmethod
    def ok(
        cls,
        agent_id: str,
        data: Any = None,
        processing_time_ms: float = 0.0,
    ) -> "Result":
        return cls(
            success=True,
            data=data,
            metadata=ResultMetadata(
                processing_time_ms=processing_time_ms,
                agent_id=agent_id,
                timestamp=datetime.now(timezone.utc),
            ),
        )

    @classmethod
    def fail(
        cls,
        agent_id: str,
        code: str,
        message: str,
        details: Mapping[str, Any] | None = None,
        processing_time_ms: float = 0.0,
    ) -> "Result":
        return cls(
            success=False,
            error=ResultError(code=code, message=message, details=details or {}),
            metadata=ResultMetadata(
                processing_time_ms=processing_time_ms,
                agent_id=agent_id,
                timestamp=datetime.now(timezone.utc),
            ),
        )

    def with_timing(self, agent_id: str, processing_time_ms: float) -> "Result":
        """Copy with metadata stamped by the dispatcher."""
        return Result(
            success=self.success,
            data=self.data,
            error=self.error,
            metadata=ResultMetadata(
                processing_time_ms=processing_time_ms,
                agent_id=agent_id,
                timestamp=self.metadata.timestamp,
            ),
        )

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error.to_dict() if self.error else None,
            "metadata": {
                "processing_time_ms": round(self.metadata.processing_time_ms, 3),
                "agent_id": self.metadata.agent_id,
                "timestamp": self.metadata.timestamp.isoformat(),
            },
        }
