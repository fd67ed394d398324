"""Application bootstrap and lifecycle management."""

from typing import Protocol

from .agents import AgentFactory, IAgentFactory
from .config import Settings
from .errors import OrchestrationError
from .event_bus import EventBus
from .health import HealthMonitor
from .llm import ILLMProvider, create_llm_provider
from .logging_config import get_logger
from .registry import AgentRegistry
from .routing import MessageRouter, RoutingQueue
from .storage import IStorage, Storage
from .tracker import Tracker
from .workflow import (
    DEFAULT_WORKFLOWS,
    InMemoryWorkflowStore,
    WorkflowEngine,
    load_workflows,
)

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        db_path: str | None = None,
        settings: Settings | None = None,
        llm_provider: ILLMProvider | None = None,
    ):
        self._settings = settings or Settings.from_env()
        self._db_path = db_path if db_path is not None else self._settings.db_path
        self._llm_override = llm_provider

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._event_bus: EventBus | None = None
        self._tracker: Tracker | None = None
        self._llm: ILLMProvider | None = None
        self._factory: IAgentFactory | None = None
        self._registry: AgentRegistry | None = None
        self._router: MessageRouter | None = None
        self._queue: RoutingQueue | None = None
        self._workflow_engine: WorkflowEngine | None = None
        self._health_monitor: HealthMonitor | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")
        settings = self._settings

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. EventBus (depends on Storage for persistence)
        self._event_bus = EventBus(self._storage)

        # 3. Tracker (depends on EventBus + Storage)
        self._tracker = Tracker(self._event_bus, self._storage)
        await self._tracker.start()

        # 4. LLMProvider (optional)
        self._llm = self._llm_override or create_llm_provider()

        # 5. Registry, router and queue
        self._registry = AgentRegistry(
            event_bus=self._event_bus,
            health_check_timeout=settings.health_check_timeout,
        )
        self._router = MessageRouter(
            self._registry,
            event_bus=self._event_bus,
            default_timeout=settings.dispatch_timeout,
        )
        self._queue = RoutingQueue(
            self._router,
            workers=settings.queue_workers,
            strict_priority=settings.strict_priority,
        )
        await self._queue.start()

        # 6. Workflow engine
        definitions = list(DEFAULT_WORKFLOWS)
        if settings.workflows_path:
            definitions.extend(load_workflows(settings.workflows_path))
        self._workflow_engine = WorkflowEngine(
            registry=self._registry,
            router=self._router,
            store=InMemoryWorkflowStore(definitions),
            event_bus=self._event_bus,
            storage=self._storage,
        )

        # 7. Agents, built by the factory only
        self._factory = AgentFactory(llm_provider=self._llm)
        await self._create_configured_agents()

        # 8. Health monitor (depends on Registry)
        self._health_monitor = HealthMonitor(
            self._registry,
            event_bus=self._event_bus,
            interval=settings.health_check_interval,
            timeout=settings.health_check_timeout,
        )
        await self._health_monitor.start()
        logger.info(
            "All components initialized successfully",
            extra={"context": self._registry.get_stats()},
        )

    async def _create_configured_agents(self) -> None:
        for agent_type in self._settings.agent_types:
            try:
                agent = self._factory.create_agent(agent_type)
                await self._registry.register(agent)
            except OrchestrationError as e:
                # One misconfigured agent should not keep the rest from starting
                logger.error("Could not start %s agent: %s", agent_type, e)

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._health_monitor is not None:
            await self._health_monitor.stop()
        if self._queue is not None:
            await self._queue.stop()
        if self._registry is not None:
            await self._registry.shutdown_all()
        if self._tracker is not None:
            await self._tracker.stop()
        if self._storage is not None:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        # 1. Pause background work
        if self._health_monitor is not None:
            await self._health_monitor.stop()

        # 2. Drop current agents
        if self._registry is not None:
            await self._registry.shutdown_all()

        # 3. Clear storage and execution history
        if self._storage is not None:
            await self._storage.clear()
            logger.info("Storage cleared")
        if self._workflow_engine is not None:
            self._workflow_engine.clear_history()

        # 4. Recreate agents from configuration
        if self._registry is not None and self._factory is not None:
            await self._create_configured_agents()

        # 5. Resume health monitoring
        if self._health_monitor is not None:
            await self._health_monitor.start()
            logger.info("Reset complete")

    def _require(self, component):
        if component is None:
            raise RuntimeError("Application not started")
        return component

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        return self._require(self._storage)

    @property
    def registry(self) -> AgentRegistry:
        return self._require(self._registry)

    @property
    def router(self) -> MessageRouter:
        return self._require(self._router)

    @property
    def queue(self) -> RoutingQueue:
        return self._require(self._queue)

    @property
    def workflow_engine(self) -> WorkflowEngine:
        return self._require(self._workflow_engine)

    @property
    def health_monitor(self) -> HealthMonitor:
        return self._require(self._health_monitor)

    @property
    def factory(self) -> IAgentFactory:
        return self._require(self._factory)

    @property
    def tracker(self) -> Tracker:
        return self._require(self._tracker)

    def status(self) -> dict:
        """System overview for the status endpoint."""
        return {
            "started": self._registry is not None,
            "registry": self.registry.get_stats(),
            "workflows": self.workflow_engine.get_stats(),
            "queue": {
                "running": self.queue.running,
                "pending": self.queue.pending,
            },
            "health_monitor": {"running": self.health_monitor.running},
            "in_flight": len(self.router.in_flight),
            "llm_enabled": self._llm is not None,
        }
