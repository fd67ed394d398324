"""Agent-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class OrganizationType(str, Enum):
    """Category of the organization a session belongs to."""

    CERTIFICATION_BODY = "certification-body"
    FOOD_MANUFACTURER = "food-manufacturer"


@dataclass(frozen=True)
class Capability:
    """A named, typed operation an agent claims to support."""

    name: str
    description: str = ""
    input_types: frozenset[str] = frozenset()
    output_types: frozenset[str] = frozenset()
    dependencies: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Accept any iterable from callers, store immutable copies
        object.__setattr__(self, "input_types", frozenset(self.input_types))
        object.__setattr__(self, "output_types", frozenset(self.output_types))
        object.__setattr__(self, "dependencies", tuple(self.dependencies))

    def accepts(self, type_tag: str) -> bool:
        """Whether this capability takes the given input type tag."""
        return not self.input_types or type_tag in self.input_types


@dataclass(frozen=True)
class AgentContext:
    """Per-session snapshot passed into each processing call."""

    user_id: str
    organization_type: OrganizationType
    session_id: str
    permissions: tuple[str, ...] = ()
    preferences: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "organization_type", OrganizationType(self.organization_type)
        )
        object.__setattr__(self, "permissions", tuple(self.permissions))
        object.__setattr__(
            self, "preferences", MappingProxyType(dict(self.preferences))
        )

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions


@dataclass
class AgentMetrics:
    """Processing counters kept by an agent."""

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    average_response_time_ms: float = 0.0
    last_request_time: datetime | None = None

    def record(self, success: bool, duration_ms: float, at: datetime) -> None:
        """Fold one processing call into the running averages."""
        self.total_requests += 1
        if success:
            self.successful_requests += 1
        else:
            self.failed_requests += 1
        self.average_response_time_ms += (
            duration_ms - self.average_response_time_ms
        ) / self.total_requests
        self.last_request_time = at

    def to_dict(self) -> dict:
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "average_response_time_ms": round(self.average_response_time_ms, 3),
            "last_request_time": (
                self.last_request_time.isoformat() if self.last_request_time else None
            ),
        }


@dataclass(frozen=True)
class HealthReport:
    """Outcome of one agent health check."""

    agent_id: str
    healthy: bool
    error: str | None = None
