"""AgentRegistry: owns registered agents and their health flags."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from ..agents.protocol import IAgent
from ..deadline import run_with_deadline
from ..errors import AgentInitializationError, DuplicateIdError, NotFoundError
from ..event_bus import IEventBus
from ..logging_config import get_logger
from ..models import AgentContext, Topic

logger = get_logger(__name__)


@dataclass
class _Entry:
    agent: IAgent
    healthy: bool
    registered_at: datetime
    closing: bool = False

    @property
    def available(self) -> bool:
        return self.healthy and not self.closing


@dataclass(frozen=True)
class AgentStatus:
    """Point-in-time view of one registered agent."""

    agent_id: str
    name: str
    version: str
    capabilities: tuple[str, ...]
    healthy: bool
    registered_at: datetime

    def to_dict(self) -> dict:
        return {
            "agent_id": self.agent_id,
            "name": self.name,
            "version": self.version,
            "capabilities": list(self.capabilities),
            "healthy": self.healthy,
            "registered_at": self.registered_at.isoformat(),
        }


class IAgentRegistry(Protocol):
    """Tracks live agents, indexed by id and by declared capability."""

    async def register(self, agent: IAgent, context: AgentContext | None = None) -> None:
        """Initialize and add an agent. Raises DuplicateIdError."""
        ...

    async def unregister(self, agent_id: str) -> None:
        """Shut down and remove an agent. Raises NotFoundError."""
        ...

    def find_by_id(self, agent_id: str) -> IAgent | None:
        """Return the agent or None."""
        ...

    def find_by_capability(self, capability: str) -> list[IAgent]:
        """Return healthy agents declaring the capability."""
        ...

    def available_agents(self) -> list[IAgent]:
        """Return all healthy agents."""
        ...

    def is_healthy(self, agent_id: str) -> bool:
        """Whether the agent is registered and currently healthy."""
        ...

    def set_health(self, agent_id: str, healthy: bool) -> bool:
        """Update a health flag. Returns True if it changed."""
        ...

    def has_capability(self, capability: str) -> bool:
        """Whether any registered agent declares the capability."""
        ...

    def get_all(self) -> list[IAgent]:
        """Return every registered agent."""
        ...


class AgentRegistry:
    """In-memory agent registry.

    Mutations are serialized by an asyncio.Lock and applied to the map
    without awaiting in between, so the synchronous readers below always
    see a consistent snapshot.
    """

    def __init__(
        self,
        event_bus: IEventBus | None = None,
        health_check_timeout: float = 5.0,
    ):
        self._event_bus = event_bus
        self._health_check_timeout = health_check_timeout
        self._entries: dict[str, _Entry] = {}
        self._lock = asyncio.Lock()

    async def register(self, agent: IAgent, context: AgentContext | None = None) -> None:
        """Initialize and add an agent. Raises DuplicateIdError."""
        agent_id = agent.agent_id

        async with self._lock:
            if agent_id in self._entries:
                logger.warning("Rejected duplicate registration for %s", agent_id)
                raise DuplicateIdError(agent_id)

            try:
                await agent.initialize(context)
            except Exception as e:
                logger.error("Agent %s failed to initialize: %s", agent_id, e, exc_info=True)
                raise AgentInitializationError(agent_id, e) from e

            healthy = await self._initial_health_check(agent)
            self._entries[agent_id] = _Entry(
                agent=agent,
                healthy=healthy,
                registered_at=datetime.now(timezone.utc),
            )

        capabilities = [c.name for c in agent.capabilities]
        logger.info(
            "Registered agent: %s (%s v%s), healthy=%s",
            agent_id,
            agent.name,
            agent.version,
            healthy,
            extra={"agent_id": agent_id, "context": {"capabilities": capabilities}},
        )
        await self._emit(
            "agent_registered",
            {"agent_id": agent_id, "capabilities": capabilities, "healthy": healthy},
        )

    async def _initial_health_check(self, agent: IAgent) -> bool:
        try:
            finished, healthy = await run_with_deadline(
                agent.health_check(), self._health_check_timeout
            )
        except Exception as e:
            logger.warning("Initial health check failed for %s: %s", agent.agent_id, e)
            return False
        if not finished:
            logger.warning("Initial health check timed out for %s", agent.agent_id)
            return False
        return bool(healthy)

    async def unregister(self, agent_id: str) -> None:
        """Shut down and remove an agent. Raises NotFoundError."""
        async with self._lock:
            entry = self._entries.get(agent_id)
            if entry is None:
                logger.warning("Attempted to unregister unknown agent: %s", agent_id)
                raise NotFoundError(f"Agent not found: {agent_id}", agent_id)

            # Hidden from routing while shutdown runs
            entry.closing = True
            try:
                await entry.agent.shutdown()
            except Exception as e:
                logger.error("Error during agent shutdown: %s: %s", agent_id, e, exc_info=True)
            del self._entries[agent_id]

        logger.info("Unregistered agent: %s", agent_id, extra={"agent_id": agent_id})
        await self._emit("agent_unregistered", {"agent_id": agent_id})

    def find_by_id(self, agent_id: str) -> IAgent | None:
        """Return the agent or None."""
        entry = self._entries.get(agent_id)
        return entry.agent if entry else None

    def find_by_capability(self, capability: str) -> list[IAgent]:
        """Return healthy agents declaring the capability, in registration order."""
        return [
            entry.agent
            for entry in list(self._entries.values())
            if entry.available
            and any(c.name == capability for c in entry.agent.capabilities)
        ]

    def available_agents(self) -> list[IAgent]:
        """Return all healthy agents, in registration order."""
        return [e.agent for e in list(self._entries.values()) if e.available]

    def is_healthy(self, agent_id: str) -> bool:
        entry = self._entries.get(agent_id)
        return bool(entry and entry.available)

    def set_health(self, agent_id: str, healthy: bool) -> bool:
        """Update a health flag. Returns True if it changed."""
        entry = self._entries.get(agent_id)
        if entry is None or entry.healthy == healthy:
            return False
        entry.healthy = healthy
        return True

    def has_capability(self, capability: str) -> bool:
        """Whether any registered agent declares the capability, healthy or not."""
        return any(
            c.name == capability
            for entry in list(self._entries.values())
            if not entry.closing
            for c in entry.agent.capabilities
        )

    def get_all(self) -> list[IAgent]:
        return [e.agent for e in list(self._entries.values())]

    def get_capabilities(self) -> list[str]:
        names = {c.name for e in list(self._entries.values()) for c in e.agent.capabilities}
        return sorted(names)

    def snapshot(self) -> list[AgentStatus]:
        """Status of every registered agent."""
        return [
            AgentStatus(
                agent_id=agent_id,
                name=entry.agent.name,
                version=entry.agent.version,
                capabilities=tuple(c.name for c in entry.agent.capabilities),
                healthy=entry.available,
                registered_at=entry.registered_at,
            )
            for agent_id, entry in list(self._entries.items())
        ]

    def get_stats(self) -> dict:
        capabilities = self.get_capabilities()
        statuses = self.snapshot()
        return {
            "total_agents": len(statuses),
            "healthy_agents": sum(1 for s in statuses if s.healthy),
            "total_capabilities": len(capabilities),
            "agents_by_capability": {
                name: len(self.find_by_capability(name)) for name in capabilities
            },
        }

    def get_metrics(self) -> list[dict]:
        """Per-agent metrics for agents that expose get_metrics()."""
        metrics = []
        for agent in self.get_all():
            get_metrics = getattr(agent, "get_metrics", None)
            metrics.append(
                {
                    "agent_id": agent.agent_id,
                    "metrics": get_metrics().to_dict() if get_metrics else None,
                }
            )
        return metrics

    async def shutdown_all(self) -> None:
        """Shut down and remove every agent."""
        async with self._lock:
            entries = list(self._entries.items())
            for _, entry in entries:
                entry.closing = True

            results = await asyncio.gather(
                *[entry.agent.shutdown() for _, entry in entries],
                return_exceptions=True,
            )
            for (agent_id, _), result in zip(entries, results):
                if isinstance(result, Exception):
                    logger.error("Error shutting down agent %s: %s", agent_id, result)
            self._entries.clear()

        logger.info("All agents shut down (%s)", len(entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._entries

    async def _emit(self, event_type: str, payload: dict) -> None:
        if self._event_bus is not None:
            await self._event_bus.emit(Topic.AGENT, event_type, payload, "agent_registry")
