"""EventBus implementation for pub/sub of lifecycle events."""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Awaitable, Callable, Protocol

from ..logging_config import get_logger
from ..models import BusEvent, Topic
from ..storage import IStorage

logger = get_logger(__name__)


TopicHandler = Callable[[BusEvent], Awaitable[None]]


class IEventBus(Protocol):
    """In-memory pub/sub for exchanging BusEvents."""

    def subscribe(self, topic: Topic, handler: TopicHandler) -> None:
        """Subscribe a handler to a topic."""
        ...

    def unsubscribe(self, topic: Topic, handler: TopicHandler) -> bool:
        """Remove a handler. Returns False if it was not subscribed."""
        ...

    async def publish(self, event: BusEvent) -> None:
        """Publish BusEvent: calls subscriber callbacks, persists to Storage."""
        ...

    async def emit(
        self, topic: Topic, event_type: str, payload: dict, source: str
    ) -> BusEvent:
        """Build and publish a BusEvent."""
        ...


class EventBus:
    """In-memory pub/sub event bus."""

    def __init__(self, storage: IStorage | None = None):
        self._storage = storage
        self._subscribers: dict[Topic, list[TopicHandler]] = {
            topic: [] for topic in Topic
        }

    def subscribe(self, topic: Topic, handler: TopicHandler) -> None:
        """Subscribe a handler to a topic."""
        self._subscribers[topic].append(handler)

    def unsubscribe(self, topic: Topic, handler: TopicHandler) -> bool:
        """Remove a handler. Returns False if it was not subscribed."""
        handlers = self._subscribers[topic]
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    async def publish(self, event: BusEvent) -> None:
        """Publish BusEvent: calls subscriber callbacks, persists to Storage."""
        if not event.id:
            event.id = str(uuid.uuid4())

        # Snapshot so handlers may (un)subscribe while being called
        handlers = list(self._subscribers.get(event.topic, []))

        if handlers:
            results = await asyncio.gather(
                *[handler(event) for handler in handlers],
                return_exceptions=True,
            )

            for i, result in enumerate(results):
                if isinstance(result, Exception):
                    logger.error(
                        "Error in %s handler %s for %s: %s",
                        event.topic.value,
                        i,
                        event.event_type,
                        result,
                    )

        if self._storage is not None:
            await self._storage.save_bus_event(event)

    async def emit(
        self, topic: Topic, event_type: str, payload: dict, source: str
    ) -> BusEvent:
        """Build and publish a BusEvent."""
        event = BusEvent(
            id=str(uuid.uuid4()),
            topic=topic,
            event_type=event_type,
            payload=payload,
            source=source,
            timestamp=datetime.now(timezone.utc),
        )
        await self.publish(event)
        return event
