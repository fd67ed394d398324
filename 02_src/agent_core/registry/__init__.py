"""Registry module."""

from .registry import AgentRegistry, AgentStatus, IAgentRegistry

__all__ = ["AgentRegistry", "AgentStatus", "IAgentRegistry"]
