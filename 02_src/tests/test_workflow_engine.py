"""Tests for WorkflowEngine."""

import asyncio

import pytest

from agent_core.errors import (
    WorkflowNotFoundError,
    WorkflowStepError,
    WorkflowValidationError,
)
from agent_core.models import (
    AgentContext,
    ExecutionStatus,
    StepCondition,
    Topic,
    WorkflowDefinition,
    WorkflowStep,
)
from agent_core.workflow import InMemoryWorkflowStore, WorkflowEngine, load_workflows


def _workflow(*steps: WorkflowStep, workflow_id: str = "wf") -> WorkflowDefinition:
    return WorkflowDefinition(id=workflow_id, name=workflow_id, steps=steps)


@pytest.fixture
def store():
    return InMemoryWorkflowStore()


@pytest.fixture
def engine(registry, router, store, event_bus, storage):
    return WorkflowEngine(registry, router, store, event_bus=event_bus, storage=storage)


class TestWorkflowExecution:
    """Tests for sequential execution."""

    @pytest.mark.asyncio
    async def test_output_threads_into_next_step(self, engine, store, registry, make_agent):
        """Test that each step receives the previous step's output."""
        double = make_agent("doubler", capabilities=("double",), handler=lambda m: {"n": m.payload["n"] * 2})
        incr = make_agent("incr", capabilities=("increment",), handler=lambda m: {"n": m.payload["n"] + 1})
        await registry.register(double)
        await registry.register(incr)
        store.save(
            _workflow(
                WorkflowStep(id="s1", capability="double"),
                WorkflowStep(id="s2", capability="increment"),
                WorkflowStep(id="s3", capability="double"),
            )
        )

        result = await engine.execute_workflow("wf", {"n": 3})

        assert result.success
        assert result.data == {"n": 14}
        assert result.metadata.agent_id == "doubler"

    @pytest.mark.asyncio
    async def test_failure_stops_remaining_steps(self, engine, store, registry, make_agent):
        """Test [S1 ok, S2 fails, S3]: S3 is never invoked and index 1 is reported."""
        s1 = make_agent("s1-agent", capabilities=("one",))
        s2 = make_agent("s2-agent", capabilities=("two",), fail_with="BROKEN")
        s3 = make_agent("s3-agent", capabilities=("three",))
        for agent in (s1, s2, s3):
            await registry.register(agent)
        store.save(
            _workflow(
                WorkflowStep(id="first", capability="one"),
                WorkflowStep(id="second", capability="two"),
                WorkflowStep(id="third", capability="three"),
            )
        )

        with pytest.raises(WorkflowStepError) as exc_info:
            await engine.execute_workflow("wf", {"x": 1})

        assert exc_info.value.step_index == 1
        assert exc_info.value.step_id == "second"
        assert exc_info.value.error.code == "BROKEN"
        assert len(s1.received) == 1
        assert len(s2.received) == 1
        assert s3.received == []

        execution = engine.get_execution(exc_info.value.execution_id)
        assert execution.status == ExecutionStatus.FAILED
        assert execution.failed_step == 1
        assert [r.step_id for r in execution.steps] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_agent_exception_fails_step(self, engine, store, registry, make_agent):
        """Test that a raising agent is reported as a step failure."""
        await registry.register(make_agent("a1", capabilities=("one",), raise_exc=RuntimeError("oops")))
        store.save(_workflow(WorkflowStep(id="only", capability="one")))

        with pytest.raises(WorkflowStepError) as exc_info:
            await engine.execute_workflow("wf", {})

        assert exc_info.value.step_index == 0
        assert exc_info.value.error.code == "AGENT_ERROR"

    @pytest.mark.asyncio
    async def test_step_timeout(self, engine, store, registry, make_agent):
        """Test that a step-level timeout overrides the router default."""
        await registry.register(make_agent("slow", capabilities=("one",), delay=5.0))
        store.save(_workflow(WorkflowStep(id="only", capability="one", timeout=0.05)))

        with pytest.raises(WorkflowStepError) as exc_info:
            await engine.execute_workflow("wf", {})

        assert exc_info.value.error.code == "TIMEOUT"

    @pytest.mark.asyncio
    async def test_step_message_carries_correlation_and_target(self, engine, store, registry, make_agent):
        """Test how step messages are addressed."""
        agent = make_agent("a1", capabilities=("one",))
        await registry.register(agent)
        store.save(_workflow(WorkflowStep(id="only", capability="one", message_type="custom", params={"mode": "x"})))
        ctx = AgentContext("u1", "certification-body", "s1")

        await engine.execute_workflow("wf", {"k": 1}, ctx)

        message = agent.received[0]
        execution = engine.list_executions()[-1]
        assert message.type == "custom"
        assert message.metadata.target == "a1"
        assert message.metadata.source == "workflow:wf"
        assert message.metadata.correlation_id == execution.id
        assert dict(message.payload) == {"mode": "x", "k": 1}
        assert agent.contexts == [ctx]

    @pytest.mark.asyncio
    async def test_step_by_agent_id(self, engine, store, registry, make_agent):
        """Test steps that name a specific agent."""
        first = make_agent("first", capabilities=("shared",))
        second = make_agent("second", capabilities=("shared",))
        await registry.register(first)
        await registry.register(second)
        store.save(_workflow(WorkflowStep(id="only", agent_id="second")))

        result = await engine.execute_workflow("wf", {})

        assert result.metadata.agent_id == "second"
        assert first.received == []

    @pytest.mark.asyncio
    async def test_non_mapping_input_wrapped(self, engine, store, registry, make_agent):
        """Test that scalar input is passed under an 'input' key."""
        agent = make_agent("a1", capabilities=("one",))
        await registry.register(agent)
        store.save(_workflow(WorkflowStep(id="only", capability="one")))

        await engine.execute_workflow("wf", "raw text")

        assert dict(agent.received[0].payload) == {"input": "raw text"}


class TestWorkflowResolution:
    """Tests for workflow and agent resolution errors."""

    @pytest.mark.asyncio
    async def test_unknown_workflow(self, engine):
        with pytest.raises(WorkflowNotFoundError):
            await engine.execute_workflow("nope", {})

    @pytest.mark.asyncio
    async def test_undeclared_capability_rejected_before_running(self, engine, store, registry, make_agent):
        """Test that validation happens before any step runs."""
        agent = make_agent("a1", capabilities=("one",))
        await registry.register(agent)
        store.save(
            _workflow(
                WorkflowStep(id="first", capability="one"),
                WorkflowStep(id="second", capability="missing"),
            )
        )

        with pytest.raises(WorkflowValidationError) as exc_info:
            await engine.execute_workflow("wf", {})

        assert exc_info.value.missing == ["missing"]
        assert agent.received == []

    @pytest.mark.asyncio
    async def test_no_healthy_agent_fails_step(self, engine, store, registry, make_agent):
        """Test that a declared but unhealthy capability fails at its step."""
        await registry.register(make_agent("a1", capabilities=("one",)))
        await registry.register(make_agent("a2", capabilities=("two",), healthy=False))
        store.save(
            _workflow(
                WorkflowStep(id="first", capability="one"),
                WorkflowStep(id="second", capability="two"),
            )
        )

        with pytest.raises(WorkflowStepError) as exc_info:
            await engine.execute_workflow("wf", {})

        assert exc_info.value.step_index == 1
        assert exc_info.value.error.code == "NO_AGENT"


class TestWorkflowConditions:
    """Tests for conditional steps."""

    @pytest.mark.asyncio
    async def test_unmet_condition_skips_step(self, engine, store, registry, make_agent):
        """Test that a skipped step passes its input through."""
        review = make_agent("reviewer", capabilities=("review",), handler=lambda m: {"reviewed": True})
        await registry.register(review)
        store.save(
            _workflow(
                WorkflowStep(
                    id="review",
                    capability="review",
                    conditions=(StepCondition("status", "eq", "MASHBOOH"),),
                )
            )
        )

        skipped = await engine.execute_workflow("wf", {"status": "HALAL"})
        ran = await engine.execute_workflow("wf", {"status": "MASHBOOH"})

        assert skipped.success
        assert skipped.data == {"status": "HALAL"}
        assert skipped.metadata.agent_id == "workflow_engine"
        assert ran.data == {"reviewed": True}
        assert len(review.received) == 1
        assert engine.list_executions()[0].steps[0].skipped is True


class TestWorkflowHistory:
    """Tests for execution bookkeeping."""

    @pytest.mark.asyncio
    async def test_execution_recorded_and_persisted(self, engine, store, registry, storage, make_agent):
        """Test that completed runs are kept in memory and in storage."""
        await registry.register(make_agent("a1", capabilities=("one",)))
        store.save(_workflow(WorkflowStep(id="only", capability="one")))

        await engine.execute_workflow("wf", {})

        execution = engine.list_executions()[0]
        assert execution.status == ExecutionStatus.COMPLETED
        assert execution.duration_ms is not None
        rows = await storage.get_workflow_executions(workflow_id="wf")
        assert rows[0]["id"] == execution.id
        assert rows[0]["status"] == "completed"

    @pytest.mark.asyncio
    async def test_history_is_bounded(self, registry, router, store, make_agent):
        """Test that only the most recent executions are kept."""
        engine = WorkflowEngine(registry, router, store, history_size=2)
        await registry.register(make_agent("a1", capabilities=("one",)))
        store.save(_workflow(WorkflowStep(id="only", capability="one")))

        for _ in range(3):
            await engine.execute_workflow("wf", {})

        assert len(engine.list_executions()) == 2

    @pytest.mark.asyncio
    async def test_events_and_stats(self, engine, store, registry, event_bus, make_agent):
        """Test workflow events and aggregated statistics."""
        events = []

        async def handler(event):
            events.append(event.event_type)

        event_bus.subscribe(Topic.WORKFLOW, handler)
        await registry.register(make_agent("ok", capabilities=("one",)))
        await registry.register(make_agent("bad", capabilities=("two",), fail_with="X"))
        store.save(_workflow(WorkflowStep(id="s", capability="one"), workflow_id="good"))
        store.save(_workflow(WorkflowStep(id="s", capability="two"), workflow_id="broken"))

        await engine.execute_workflow("good", {})
        with pytest.raises(WorkflowStepError):
            await engine.execute_workflow("broken", {})

        assert events == ["workflow_completed", "workflow_failed"]
        stats = engine.get_stats()
        assert stats["finished"] == 2
        assert stats["success_rate"] == 50.0
        assert stats["total_workflows"] == 2

    @pytest.mark.asyncio
    async def test_cancelled_run_marked_failed(self, engine, store, registry, make_agent):
        """Test that a cancelled run does not stay RUNNING."""
        await registry.register(make_agent("slow", capabilities=("one",), delay=5.0))
        store.save(_workflow(WorkflowStep(id="only", capability="one")))

        task = asyncio.create_task(engine.execute_workflow("wf", {}))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        execution = engine.list_executions()[0]
        assert execution.status == ExecutionStatus.FAILED
        assert execution.error.startswith("[CancelledError]")
        assert engine.get_stats()["running"] == 0

    @pytest.mark.asyncio
    async def test_unexpected_error_marked_failed(self, registry, store, make_agent):
        """Test that an error outside step results still finishes the run."""

        class BrokenRouter:
            async def dispatch(self, agent, message, context=None, timeout=None):
                raise RuntimeError("router offline")

        engine = WorkflowEngine(registry, BrokenRouter(), store)
        await registry.register(make_agent("a1", capabilities=("one",)))
        store.save(_workflow(WorkflowStep(id="only", capability="one")))

        with pytest.raises(RuntimeError, match="router offline"):
            await engine.execute_workflow("wf", {})

        execution = engine.list_executions()[0]
        assert execution.status == ExecutionStatus.FAILED
        assert execution.error == "[RuntimeError] router offline"
        assert execution.finished_at is not None

    @pytest.mark.asyncio
    async def test_clear_history(self, engine, store, registry, make_agent):
        await registry.register(make_agent("a1", capabilities=("one",)))
        store.save(_workflow(WorkflowStep(id="only", capability="one")))
        await engine.execute_workflow("wf", {})

        engine.clear_history()

        assert engine.list_executions() == []
        assert engine.get_stats()["finished"] == 0


class TestWorkflowStore:
    """Tests for loading definitions from JSON."""

    def test_load_workflows(self, tmp_path):
        path = tmp_path / "workflows.json"
        path.write_text(
            '{"workflows": [{"id": "custom", "steps": [{"id": "a", "capability": "echo"}]}]}',
            encoding="utf-8",
        )

        definitions = load_workflows(path)

        assert [d.id for d in definitions] == ["custom"]
        assert definitions[0].steps[0].capability == "echo"
