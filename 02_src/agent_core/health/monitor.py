"""HealthMonitor: periodic agent health polling."""

import asyncio
from typing import Protocol

from ..deadline import run_with_deadline
from ..event_bus import IEventBus
from ..logging_config import get_logger
from ..models import HealthReport, Topic
from ..registry import IAgentRegistry

logger = get_logger(__name__)


class IHealthMonitor(Protocol):
    """Polls agents and keeps registry health flags current."""

    async def start(self) -> None:
        """Start the polling loop."""
        ...

    async def stop(self) -> None:
        """Stop the polling loop."""
        ...

    async def check_all(self) -> list[HealthReport]:
        """Run one health pass over every registered agent."""
        ...


class HealthMonitor:
    """Runs ``health_check()`` on every agent at a fixed interval.

    A False answer, an exception or a timeout marks the agent unhealthy,
    which hides it from routing until a later check passes. Agents are
    never unregistered here.
    """

    def __init__(
        self,
        registry: IAgentRegistry,
        event_bus: IEventBus | None = None,
        interval: float = 60.0,
        timeout: float = 5.0,
    ):
        self._registry = registry
        self._event_bus = event_bus
        self._interval = interval
        self._timeout = timeout
        self._task: asyncio.Task | None = None
        self._last_reports: dict[str, HealthReport] = {}

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def last_reports(self) -> list[HealthReport]:
        return list(self._last_reports.values())

    async def start(self) -> None:
        """Start the polling loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="health-monitor")
        logger.info(
            "HealthMonitor started (interval=%ss, timeout=%ss)",
            self._interval,
            self._timeout,
        )

    async def stop(self) -> None:
        """Stop the polling loop."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("HealthMonitor stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.check_all()
            except Exception as e:
                logger.error("Health check pass failed: %s", e, exc_info=True)

    async def check_all(self) -> list[HealthReport]:
        """Run one health pass over every registered agent."""
        agents = self._registry.get_all()
        reports = await asyncio.gather(*[self._check(agent) for agent in agents])

        # Agents may have been unregistered while their checks ran
        registered = {agent.agent_id for agent in self._registry.get_all()}
        self._last_reports = {
            agent_id: report
            for agent_id, report in self._last_reports.items()
            if agent_id in registered
        }
        for report in reports:
            if report.agent_id not in registered:
                continue
            self._last_reports[report.agent_id] = report
            if self._registry.set_health(report.agent_id, report.healthy):
                await self._on_change(report)

        unhealthy = [r.agent_id for r in reports if not r.healthy]
        if unhealthy:
            logger.warning(
                "Found %s unhealthy agents",
                len(unhealthy),
                extra={"context": {"unhealthy_agents": unhealthy}},
            )
        return list(reports)

    async def _check(self, agent) -> HealthReport:
        agent_id = agent.agent_id
        try:
            finished, healthy = await run_with_deadline(agent.health_check(), self._timeout)
        except Exception as e:
            return HealthReport(agent_id, False, str(e) or type(e).__name__)
        if not finished:
            return HealthReport(agent_id, False, f"health check timed out after {self._timeout}s")
        if not healthy:
            return HealthReport(agent_id, False, "health check returned false")
        return HealthReport(agent_id, True)

    async def _on_change(self, report: HealthReport) -> None:
        if report.healthy:
            logger.info("Agent %s recovered", report.agent_id, extra={"agent_id": report.agent_id})
        else:
            logger.warning(
                "Agent %s marked unhealthy: %s",
                report.agent_id,
                report.error,
                extra={"agent_id": report.agent_id},
            )
        if self._event_bus is not None:
            await self._event_bus.emit(
                Topic.HEALTH,
                "agent_health_changed",
                {
                    "agent_id": report.agent_id,
                    "healthy": report.healthy,
                    "error": report.error,
                },
                "health_monitor",
            )
