"""Tracing and observability data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Topic(str, Enum):
    """EventBus topics."""

    AGENT = "agent"  # registration lifecycle
    HEALTH = "health"
    ROUTING = "routing"
    WORKFLOW = "workflow"


@dataclass
class BusEvent:
    """An event exchanged through EventBus."""

    id: str
    topic: Topic
    event_type: str  # e.g. "agent_registered", "workflow_failed"
    payload: dict
    source: str  # component that published
    timestamp: datetime


@dataclass
class TraceEvent:
    """A single observability event."""

    id: str
    event_type: str  # e.g. "message_routed", "agent_health_changed"
    actor: str  # who created this event
    data: dict  # full self-contained data for display
    timestamp: datetime
