"""MessageRouter: concurrent dispatch of a message to eligible agents."""

import asyncio
import time
from typing import Protocol

from ..agents.protocol import IAgent
from ..deadline import run_with_deadline
from ..errors import DispatchTimeoutError, DuplicateMessageError, TargetNotFoundError
from ..event_bus import IEventBus
from ..logging_config import get_logger
from ..models import AgentContext, Message, Result, Topic
from ..registry import IAgentRegistry

logger = get_logger(__name__)

TIMEOUT = "TIMEOUT"
AGENT_ERROR = "AGENT_ERROR"
INVALID_RESULT = "INVALID_RESULT"


class IMessageRouter(Protocol):
    """Routes messages to agents and aggregates their results."""

    async def route(
        self,
        message: Message,
        context: AgentContext | None = None,
        timeout: float | None = None,
    ) -> list[Result]:
        """Dispatch to every eligible agent; one Result per candidate."""
        ...

    async def dispatch(
        self,
        agent: IAgent,
        message: Message,
        context: AgentContext | None = None,
        timeout: float | None = None,
    ) -> Result:
        """Dispatch to a single agent. Never raises for agent failures."""
        ...


class MessageRouter:
    """Routes messages through the registry.

    Agent failures and timeouts are converted into failed Results; only
    routing errors (unknown target, duplicate in-flight id) are raised.
    """

    def __init__(
        self,
        registry: IAgentRegistry,
        event_bus: IEventBus | None = None,
        default_timeout: float = 30.0,
    ):
        self._registry = registry
        self._event_bus = event_bus
        self._default_timeout = default_timeout
        self._in_flight: set[str] = set()

    @property
    def in_flight(self) -> frozenset[str]:
        return frozenset(self._in_flight)

    def select_candidates(self, message: Message) -> list[IAgent]:
        """Healthy agents that accept the message, honoring metadata.target."""
        target = message.metadata.target
        if target is not None:
            agent = self._registry.find_by_id(target)
            if agent is None:
                raise TargetNotFoundError(target)
            if not self._registry.is_healthy(target):
                raise TargetNotFoundError(target, "unhealthy")
            pool = [agent]
        else:
            pool = self._registry.available_agents()

        return [agent for agent in pool if self._accepts(agent, message)]

    def _accepts(self, agent: IAgent, message: Message) -> bool:
        try:
            return bool(agent.can_handle(message))
        except Exception as e:
            logger.warning(
                "can_handle raised in %s for message %s: %s",
                agent.agent_id,
                message.id,
                e,
            )
            return False

    async def route(
        self,
        message: Message,
        context: AgentContext | None = None,
        timeout: float | None = None,
    ) -> list[Result]:
        """Dispatch to every eligible agent; one Result per candidate.

        Results come back in dispatch order. An empty candidate set
        yields an empty list.
        """
        if message.id in self._in_flight:
            raise DuplicateMessageError(message.id)

        candidates = self.select_candidates(message)
        if not candidates:
            logger.info(
                "No candidates for message %s (type=%s)",
                message.id,
                message.type,
                extra={"message_id": message.id},
            )
            await self._emit(message, [], [])
            return []

        self._in_flight.add(message.id)
        try:
            results = await asyncio.gather(
                *[
                    self.dispatch(agent, message, context, timeout)
                    for agent in candidates
                ]
            )
        finally:
            self._in_flight.discard(message.id)

        logger.info(
            "Routed message %s to %s agents (%s ok)",
            message.id,
            len(results),
            sum(1 for r in results if r.success),
            extra={"message_id": message.id},
        )
        await self._emit(message, candidates, results)
        return list(results)

    async def dispatch(
        self,
        agent: IAgent,
        message: Message,
        context: AgentContext | None = None,
        timeout: float | None = None,
    ) -> Result:
        """Dispatch to a single agent. Never raises for agent failures."""
        agent_id = agent.agent_id
        limit = self._default_timeout if timeout is None else timeout
        started = time.perf_counter()

        try:
            finished, result = await run_with_deadline(agent.process(message, context), limit)
        except Exception as e:
            logger.error(
                "Agent %s failed on message %s: %s",
                agent_id,
                message.id,
                e,
                exc_info=True,
                extra={"agent_id": agent_id, "message_id": message.id},
            )
            return Result.fail(
                agent_id,
                AGENT_ERROR,
                str(e) or type(e).__name__,
                {"exception_type": type(e).__name__},
                processing_time_ms=_elapsed_ms(started),
            )

        if not finished:
            error = DispatchTimeoutError(agent_id, limit)
            logger.warning("%s", error, extra={"agent_id": agent_id, "message_id": message.id})
            return Result.fail(
                agent_id,
                TIMEOUT,
                str(error),
                {"timeout": limit},
                processing_time_ms=_elapsed_ms(started),
            )

        if not isinstance(result, Result):
            return Result.fail(
                agent_id,
                INVALID_RESULT,
                f"Agent returned {type(result).__name__} instead of Result",
                processing_time_ms=_elapsed_ms(started),
            )
        return result.with_timing(agent_id, _elapsed_ms(started))

    async def _emit(
        self, message: Message, candidates: list[IAgent], results: list[Result]
    ) -> None:
        if self._event_bus is None:
            return
        await self._event_bus.emit(
            Topic.ROUTING,
            "message_routed",
            {
                "message_id": message.id,
                "message_type": message.type,
                "correlation_id": message.metadata.correlation_id,
                "agents": [a.agent_id for a in candidates],
                "succeeded": sum(1 for r in results if r.success),
                "failed": sum(1 for r in results if not r.success),
            },
            "message_router",
        )


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
