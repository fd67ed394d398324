"""Echo agent implementation."""

import time
from datetime import datetime, timezone

from ..logging_config import get_logger
from ..models import AgentContext, AgentMetrics, Capability, Message, Result

logger = get_logger(__name__)

ECHO = Capability(
    name="echo",
    description="Return the message payload unchanged",
    input_types={"echo"},
    output_types={"echo"},
)


class EchoAgent:
    """Minimal agent for testing data flow."""

    def __init__(self, agent_id: str = "echo-agent", version: str = "1.0.0"):
        self._agent_id = agent_id
        self._version = version
        self._metrics = AgentMetrics()
        self._initialized = False
        self._shut_down = False

    @property
    def agent_id(self) -> str:
        return self._agent_id

    @property
    def name(self) -> str:
        return "Echo Agent"

    @property
    def version(self) -> str:
        return self._version

    @property
    def capabilities(self) -> list[Capability]:
        return [ECHO]

    async def initialize(self, context: AgentContext | None) -> None:
        self._initialized = True

    def can_handle(self, message: Message) -> bool:
        return ECHO.accepts(message.type)

    async def process(self, message: Message, context: AgentContext | None) -> Result:
        started = time.perf_counter()
        logger.info(
            "EchoAgent %s echoing message %s from %s",
            self._agent_id,
            message.id,
            message.metadata.source,
        )
        data = {
            "echo": dict(message.payload),
            "message_id": message.id,
            "user_id": context.user_id if context else None,
        }
        elapsed = (time.perf_counter() - started) * 1000
        self._metrics.record(True, elapsed, datetime.now(timezone.utc))
        return Result.ok(self._agent_id, data, elapsed)

    async def health_check(self) -> bool:
        return self._initialized and not self._shut_down

    async def shutdown(self) -> None:
        self._shut_down = True

    def get_metrics(self) -> AgentMetrics:
        return self._metrics
