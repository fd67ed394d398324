"""SQLite storage implementation."""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import BusEvent, Topic, TraceEvent, WorkflowExecution


class IStorage(Protocol):
    """Persistent storage for observability data (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        ...

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        ...

    # BusEvents
    async def save_bus_event(self, event: BusEvent) -> None:
        """Save a bus event."""
        ...

    async def get_bus_events(
        self, topic: Topic | None = None, limit: int = 100
    ) -> list[BusEvent]:
        """Get bus events (newest first)."""
        ...

    # Workflow executions
    async def save_workflow_execution(self, execution: WorkflowExecution) -> None:
        """Insert or update a workflow execution."""
        ...

    async def get_workflow_executions(
        self, workflow_id: str | None = None, limit: int = 100
    ) -> list[dict]:
        """Get serialized workflow executions (newest first)."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


def _parse_ts(value: str) -> datetime:
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO trace_events (id, event_type, actor, data, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                event.id or str(uuid.uuid4()),
                event.event_type,
                event.actor,
                json.dumps(event.data, default=str),
                event.timestamp.isoformat(),
            ),
        )
        await conn.commit()

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        conn = self._require_conn()

        conditions = []
        params: list = []

        if after:
            if after.tzinfo is None:
                after = after.replace(tzinfo=timezone.utc)
            conditions.append("timestamp > ?")
            params.append(after.isoformat())
        if event_types:
            placeholders = ",".join("?" * len(event_types))
            conditions.append(f"event_type IN ({placeholders})")
            params.extend(event_types)
        if actor:
            conditions.append("actor = ?")
            params.append(actor)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT id, event_type, actor, data, timestamp
            FROM trace_events
            {where_clause}
            ORDER BY timestamp DESC
            LIMIT ?
        """
        params.append(limit)

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        return [
            TraceEvent(
                id=row[0],
                event_type=row[1],
                actor=row[2],
                data=json.loads(row[3]),
                timestamp=_parse_ts(row[4]),
            )
            for row in rows
        ]

    # BusEvents
    async def save_bus_event(self, event: BusEvent) -> None:
        """Save a bus event."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO bus_events (id, topic, event_type, payload, source, timestamp)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                event.id or str(uuid.uuid4()),
                event.topic.value,
                event.event_type,
                json.dumps(event.payload, default=str),
                event.source,
                event.timestamp.isoformat(),
            ),
        )
        await conn.commit()

    async def get_bus_events(
        self, topic: Topic | None = None, limit: int = 100
    ) -> list[BusEvent]:
        """Get bus events (newest first)."""
        conn = self._require_conn()

        if topic:
            cursor = await conn.execute(
                """
                SELECT id, topic, event_type, payload, source, timestamp
                FROM bus_events
                WHERE topic = ?
                ORDER BY timestamp DESC
                LIMIT ?
                """,
                (topic.value, limit),
            )
        else:
            cursor = await conn.execute(
                """
                SELECT id, topic, event_type, payload, source, timestamp
                FROM bus_events
                ORDER BY timestamp DESC
                LIMIT ?
                """,
                (limit,),
            )
        rows = await cursor.fetchall()

        return [
            BusEvent(
                id=row[0],
                topic=Topic(row[1]),
                event_type=row[2],
                payload=json.loads(row[3]),
                source=row[4],
                timestamp=_parse_ts(row[5]),
            )
            for row in rows
        ]

    # Workflow executions
    async def save_workflow_execution(self, execution: WorkflowExecution) -> None:
        """Insert or update a workflow execution."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT OR REPLACE INTO workflow_executions
            (id, workflow_id, status, started_at, finished_at, failed_step, error,
             document, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
            """,
            (
                execution.id,
                execution.workflow_id,
                execution.status.value,
                execution.started_at.isoformat(),
                execution.finished_at.isoformat() if execution.finished_at else None,
                execution.failed_step,
                execution.error,
                json.dumps(execution.to_dict(), default=str),
            ),
        )
        await conn.commit()

    async def get_workflow_executions(
        self, workflow_id: str | None = None, limit: int = 100
    ) -> list[dict]:
        """Get serialized workflow executions (newest first)."""
        conn = self._require_conn()

        if workflow_id:
            cursor = await conn.execute(
                """
                SELECT document FROM workflow_executions
                WHERE workflow_id = ?
                ORDER BY started_at DESC
                LIMIT ?
                """,
                (workflow_id, limit),
            )
        else:
            cursor = await conn.execute(
                """
                SELECT document FROM workflow_executions
                ORDER BY started_at DESC
                LIMIT ?
                """,
                (limit,),
            )
        rows = await cursor.fetchall()
        return [json.loads(row[0]) for row in rows]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        for table in ("trace_events", "bus_events", "workflow_executions"):
            await conn.execute(f"DELETE FROM {table}")

        await conn.commit()
