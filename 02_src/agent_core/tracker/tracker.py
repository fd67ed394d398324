"""Tracker implementation for creating TraceEvents."""

import uuid
from datetime import datetime, timezone
from typing import Protocol

from ..event_bus import IEventBus
from ..logging_config import get_logger
from ..models import BusEvent, Topic, TraceEvent
from ..storage import IStorage

logger = get_logger(__name__)


class ITracker(Protocol):
    """Creating TraceEvents. Two channels: EventBus subscription + direct calls."""

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        ...

    async def stop(self) -> None:
        """Unsubscribe from the EventBus."""
        ...


class Tracker:
    """Creates TraceEvents via EventBus subscription and direct track() calls."""

    def __init__(self, event_bus: IEventBus, storage: IStorage):
        self._event_bus = event_bus
        self._storage = storage
        self._subscribed = False

    async def start(self) -> None:
        """Subscribe to all EventBus topics."""
        if self._subscribed:
            return
        for topic in Topic:
            self._event_bus.subscribe(topic, self._handle_bus_event)
        self._subscribed = True

    async def _handle_bus_event(self, event: BusEvent) -> None:
        """Mirror a lifecycle event into the trace log."""
        await self.track(
            event_type=event.event_type,
            actor=event.source,
            data={"topic": event.topic.value, **event.payload},
        )

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        trace_event = TraceEvent(
            id=str(uuid.uuid4()),
            event_type=event_type,
            actor=actor,
            data=data,
            timestamp=datetime.now(timezone.utc),
        )
        try:
            await self._storage.save_trace_event(trace_event)
        except RuntimeError as e:
            # Storage closed during shutdown; tracing is best-effort
            logger.warning("Dropping trace event %s: %s", event_type, e)

    async def stop(self) -> None:
        """Unsubscribe from the EventBus."""
        if not self._subscribed:
            return
        for topic in Topic:
            self._event_bus.unsubscribe(topic, self._handle_bus_event)
        self._subscribed = False
