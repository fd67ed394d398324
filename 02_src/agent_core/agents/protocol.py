"""Structural contract every agent satisfies."""

from typing import Protocol

from ..models import AgentContext, Capability, Message, Result


class IAgent(Protocol):
    """A unit of capability-bearing processing logic addressable by id.

    Any class providing these members is an agent; no base class is needed.
    """

    @property
    def agent_id(self) -> str:
        """Identifier, unique within a registry."""
        ...

    @property
    def name(self) -> str:
        ...

    @property
    def version(self) -> str:
        ...

    @property
    def capabilities(self) -> list[Capability]:
        """Declared capabilities, fixed for the agent's lifetime."""
        ...

    async def initialize(self, context: AgentContext | None) -> None:
        """Prepare the agent. Called once, before any message."""
        ...

    def can_handle(self, message: Message) -> bool:
        """Whether the agent wants this message."""
        ...

    async def process(self, message: Message, context: AgentContext | None) -> Result:
        """Process one message."""
        ...

    async def health_check(self) -> bool:
        """Report liveness."""
        ...

    async def shutdown(self) -> None:
        """Release resources. Called exactly once."""
        ...
