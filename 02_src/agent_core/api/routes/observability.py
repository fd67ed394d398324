"""Observability API routes."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException, Query

from ...app import Application
from ...models import Topic


class TraceEventResponse(BaseModel):
    """Response model for trace event."""

    id: str
    event_type: str
    actor: str
    data: dict[str, Any]
    timestamp: datetime


class BusEventResponse(BaseModel):
    """Response model for a published bus event."""

    id: str
    topic: Topic
    event_type: str
    payload: dict[str, Any]
    source: str
    timestamp: datetime


def create_observability_router(app: Application) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/trace-events", response_model=list[TraceEventResponse])
    async def get_trace_events(
        after: str | None = Query(None, description="ISO timestamp filter"),
        limit: int = Query(100, ge=1, le=1000),
        event_type: str | None = Query(None, description="Filter by event type"),
        actor: str | None = Query(None, description="Filter by actor"),
    ) -> list[dict]:
        """Get trace events with optional filters."""
        after_dt = None
        if after:
            try:
                after_dt = datetime.fromisoformat(after)
            except ValueError:
                raise HTTPException(status_code=400, detail="Invalid after timestamp format")

        try:
            events = await app.storage.get_trace_events(
                after=after_dt,
                event_types=[event_type] if event_type else None,
                actor=actor,
                limit=limit,
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return [
            {
                "id": e.id,
                "event_type": e.event_type,
                "actor": e.actor,
                "data": e.data,
                "timestamp": e.timestamp.isoformat(),
            }
            for e in events
        ]

    @router.get("/bus-events", response_model=list[BusEventResponse])
    async def get_bus_events(
        topic: Topic | None = Query(None, description="Filter by topic"),
        limit: int = Query(100, ge=1, le=1000),
    ) -> list[dict]:
        """Get persisted bus events, newest first."""
        events = await app.storage.get_bus_events(topic=topic, limit=limit)
        return [
            {
                "id": e.id,
                "topic": e.topic,
                "event_type": e.event_type,
                "payload": e.payload,
                "source": e.source,
                "timestamp": e.timestamp.isoformat(),
            }
            for e in events
        ]

    @router.get("/status")
    async def get_status() -> dict:
        """Registry, workflow and queue overview."""
        return app.status()

    return router
