"""Tests for Storage."""

from datetime import datetime, timedelta, timezone

import pytest

from agent_core.models import (
    BusEvent,
    ExecutionStatus,
    Topic,
    TraceEvent,
    WorkflowExecution,
)
from agent_core.storage import Storage


class TestStorageInit:
    """Tests for Storage initialization."""

    @pytest.mark.asyncio
    async def test_init_creates_tables(self, storage):
        """Test that init creates all tables."""
        async with storage._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ) as cursor:
            tables = [row[0] for row in await cursor.fetchall()]
        assert "trace_events" in tables
        assert "bus_events" in tables
        assert "workflow_executions" in tables

    @pytest.mark.asyncio
    async def test_use_before_init_raises(self):
        """Test that an uninitialized storage refuses queries."""
        st = Storage(":memory:")
        with pytest.raises(RuntimeError):
            await st.get_trace_events()


class TestStorageTraceEvents:
    """Tests for TraceEvent storage."""

    @pytest.mark.asyncio
    async def test_save_and_filter(self, storage):
        """Test saving trace events and filtering them (newest first)."""
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i, (event_type, actor) in enumerate(
            [
                ("agent_registered", "agent_registry"),
                ("message_routed", "message_router"),
                ("message_routed", "message_router"),
            ]
        ):
            await storage.save_trace_event(
                TraceEvent(
                    id=f"t{i}",
                    event_type=event_type,
                    actor=actor,
                    data={"i": i},
                    timestamp=base + timedelta(seconds=i),
                )
            )

        all_events = await storage.get_trace_events()
        assert [e.id for e in all_events] == ["t2", "t1", "t0"]
        assert all_events[0].data == {"i": 2}

        routed = await storage.get_trace_events(event_types=["message_routed"])
        assert [e.id for e in routed] == ["t2", "t1"]

        later = await storage.get_trace_events(after=base)
        assert [e.id for e in later] == ["t2", "t1"]

        by_actor = await storage.get_trace_events(actor="agent_registry")
        assert [e.id for e in by_actor] == ["t0"]


class TestStorageBusEvents:
    """Tests for BusEvent storage."""

    @pytest.mark.asyncio
    async def test_filter_by_topic(self, storage):
        """Test topic filtering."""
        now = datetime.now(timezone.utc)
        await storage.save_bus_event(BusEvent("b1", Topic.AGENT, "agent_registered", {}, "r", now))
        await storage.save_bus_event(BusEvent("b2", Topic.HEALTH, "agent_health_changed", {}, "h", now))

        health = await storage.get_bus_events(topic=Topic.HEALTH)
        assert [e.id for e in health] == ["b2"]
        assert len(await storage.get_bus_events()) == 2


class TestStorageWorkflowExecutions:
    """Tests for workflow execution storage."""

    @pytest.mark.asyncio
    async def test_save_updates_existing(self, storage):
        """Test that saving the same execution twice replaces it."""
        execution = WorkflowExecution(
            "e1", "wf", ExecutionStatus.RUNNING, datetime.now(timezone.utc)
        )
        await storage.save_workflow_execution(execution)
        execution.status = ExecutionStatus.FAILED
        execution.failed_step = 1
        await storage.save_workflow_execution(execution)

        rows = await storage.get_workflow_executions()
        assert len(rows) == 1
        assert rows[0]["status"] == "failed"
        assert rows[0]["failed_step"] == 1

    @pytest.mark.asyncio
    async def test_filter_by_workflow(self, storage):
        """Test workflow id filtering."""
        now = datetime.now(timezone.utc)
        await storage.save_workflow_execution(WorkflowExecution("e1", "a", ExecutionStatus.COMPLETED, now))
        await storage.save_workflow_execution(WorkflowExecution("e2", "b", ExecutionStatus.COMPLETED, now))

        rows = await storage.get_workflow_executions(workflow_id="b")
        assert [r["id"] for r in rows] == ["e2"]


class TestStorageClear:
    """Tests for Storage.clear()."""

    @pytest.mark.asyncio
    async def test_clear_removes_everything(self, storage):
        """Test that clear empties all tables."""
        now = datetime.now(timezone.utc)
        await storage.save_trace_event(TraceEvent("t1", "x", "y", {}, now))
        await storage.save_bus_event(BusEvent("b1", Topic.AGENT, "x", {}, "y", now))
        await storage.save_workflow_execution(WorkflowExecution("e1", "wf", ExecutionStatus.COMPLETED, now))

        await storage.clear()

        assert await storage.get_trace_events() == []
        assert await storage.get_bus_events() == []
        assert await storage.get_workflow_executions() == []
