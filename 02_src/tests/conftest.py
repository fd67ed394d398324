"""Pytest configuration and fixtures."""

import asyncio
import sys
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from agent_core.models import Capability, Message, Result  # noqa: E402


class StubAgent:
    """Configurable in-test agent.

    ``handler`` computes the success data from the message; without one the
    agent echoes its payload. ``fail_with`` returns a failed Result,
    ``raise_exc`` raises from process(), ``delay`` sleeps before answering.
    """

    def __init__(
        self,
        agent_id: str,
        capabilities: tuple[str, ...] = ("test-capability",),
        message_types: tuple[str, ...] | None = None,
        handler: Callable[[Message], Any] | None = None,
        delay: float = 0.0,
        fail_with: str | None = None,
        raise_exc: Exception | None = None,
        healthy: bool = True,
        init_error: Exception | None = None,
        health_delay: float = 0.0,
    ):
        self._agent_id = agent_id
        self._capabilities = [Capability(name=c) for c in capabilities]
        self.message_types = message_types
        self.handler = handler
        self.delay = delay
        self.fail_with = fail_with
        self.raise_exc = raise_exc
        self.healthy = healthy
        self.init_error = init_error
        self.health_delay = health_delay

        self.received: list[Message] = []
        self.contexts: list[Any] = []
        self.initialized = 0
        self.shutdowns = 0

    @property
    def agent_id(self) -> str:
        return self._agent_id

    @property
    def name(self) -> str:
        return f"Stub {self._agent_id}"

    @property
    def version(self) -> str:
        return "0.0.1"

    @property
    def capabilities(self) -> list[Capability]:
        return self._capabilities

    async def initialize(self, context) -> None:
        if self.init_error:
            raise self.init_error
        self.initialized += 1

    def can_handle(self, message: Message) -> bool:
        return self.message_types is None or message.type in self.message_types

    async def process(self, message: Message, context) -> Result:
        self.received.append(message)
        self.contexts.append(context)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raise_exc:
            raise self.raise_exc
        if self.fail_with:
            return Result.fail(self._agent_id, self.fail_with, f"{self._agent_id} failed")
        data = self.handler(message) if self.handler else dict(message.payload)
        return Result.ok(self._agent_id, data)

    async def health_check(self) -> bool:
        if self.health_delay:
            await asyncio.sleep(self.health_delay)
        return self.healthy

    async def shutdown(self) -> None:
        self.shutdowns += 1


@pytest.fixture
def make_agent():
    """Build StubAgent instances."""
    return StubAgent


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from agent_core.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def event_bus(storage):
    """Create EventBus with storage."""
    from agent_core.event_bus import EventBus

    return EventBus(storage)


@pytest.fixture
def tracker(storage, event_bus):
    """Create Tracker with storage and event bus."""
    from agent_core.tracker import Tracker

    return Tracker(event_bus=event_bus, storage=storage)


@pytest.fixture
def registry(event_bus):
    """Create AgentRegistry publishing to the event bus."""
    from agent_core.registry import AgentRegistry

    return AgentRegistry(event_bus=event_bus, health_check_timeout=0.5)


@pytest.fixture
def router(registry, event_bus):
    """Create MessageRouter over the registry."""
    from agent_core.routing import MessageRouter

    return MessageRouter(registry, event_bus=event_bus, default_timeout=1.0)


@pytest.fixture
def mock_llm():
    """Create mock LLM provider."""
    llm = Mock()
    llm.complete = AsyncMock(return_value="HALAL\nPlant-derived sweetener.")
    return llm


@pytest.fixture
def test_settings():
    """Settings with an in-memory database and a fast health loop."""
    from agent_core.config import Settings

    return Settings(
        db_path=":memory:",
        dispatch_timeout=2.0,
        health_check_interval=3600.0,
        health_check_timeout=0.5,
        queue_workers=2,
    )
