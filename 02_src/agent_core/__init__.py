"""Agent core: registry, routing, workflows and health monitoring for agents."""

from .agents import AgentFactory, IAgent, IAgentFactory
from .app import Application, IApplication
from .config import Settings
from .errors import (
    AgentInitializationError,
    DispatchTimeoutError,
    DuplicateIdError,
    DuplicateMessageError,
    NotFoundError,
    OrchestrationError,
    TargetNotFoundError,
    UnknownAgentTypeError,
    WorkflowNotFoundError,
    WorkflowStepError,
    WorkflowValidationError,
)
from .event_bus import EventBus, IEventBus
from .health import HealthMonitor, IHealthMonitor
from .llm import ILLMProvider, LLMProvider
from .models import (
    AgentContext,
    AgentMetrics,
    Capability,
    Message,
    MessageMetadata,
    OrganizationType,
    Priority,
    Result,
    ResultError,
    Topic,
    WorkflowDefinition,
    WorkflowStep,
)
from .registry import AgentRegistry, IAgentRegistry
from .routing import IMessageRouter, MessageRouter, RoutingQueue
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker
from .workflow import IWorkflowEngine, WorkflowEngine

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    # Models
    "AgentContext",
    "AgentMetrics",
    "Capability",
    "Message",
    "MessageMetadata",
    "OrganizationType",
    "Priority",
    "Result",
    "ResultError",
    "Topic",
    "WorkflowDefinition",
    "WorkflowStep",
    # Errors
    "OrchestrationError",
    "DuplicateIdError",
    "NotFoundError",
    "TargetNotFoundError",
    "WorkflowNotFoundError",
    "DispatchTimeoutError",
    "DuplicateMessageError",
    "AgentInitializationError",
    "UnknownAgentTypeError",
    "WorkflowValidationError",
    "WorkflowStepError",
    # Components
    "IAgent",
    "IAgentFactory",
    "AgentFactory",
    "IAgentRegistry",
    "AgentRegistry",
    "IMessageRouter",
    "MessageRouter",
    "RoutingQueue",
    "IWorkflowEngine",
    "WorkflowEngine",
    "IHealthMonitor",
    "HealthMonitor",
    "IStorage",
    "Storage",
    "IEventBus",
    "EventBus",
    "ITracker",
    "Tracker",
    "ILLMProvider",
    "LLMProvider",
]
