"""WorkflowEngine: sequential execution of multi-step agent workflows."""

import asyncio
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol

from ..agents.protocol import IAgent
from ..errors import WorkflowNotFoundError, WorkflowStepError, WorkflowValidationError
from ..event_bus import IEventBus
from ..logging_config import get_logger
from ..models import (
    AgentContext,
    ExecutionStatus,
    Message,
    Result,
    ResultError,
    StepRecord,
    Topic,
    WorkflowDefinition,
    WorkflowExecution,
    WorkflowStep,
)
from ..registry import IAgentRegistry
from ..routing import IMessageRouter
from ..storage import IStorage
from .conditions import conditions_met
from .store import IWorkflowStore

logger = get_logger(__name__)

ENGINE_ID = "workflow_engine"
NO_AGENT = "NO_AGENT"


class IWorkflowEngine(Protocol):
    """Executes named workflows."""

    async def execute_workflow(
        self,
        workflow_id: str,
        input: Any,
        context: AgentContext | None = None,
    ) -> Result:
        """Run every step in order; raise WorkflowStepError on the first failure."""
        ...


class WorkflowEngine:
    """Runs workflow steps strictly in sequence, threading each output into the next step.

    The engine never retries: a step returning ``success=False`` aborts the
    run with a WorkflowStepError naming the step index.
    """

    def __init__(
        self,
        registry: IAgentRegistry,
        router: IMessageRouter,
        store: IWorkflowStore,
        event_bus: IEventBus | None = None,
        storage: IStorage | None = None,
        history_size: int = 100,
    ):
        self._registry = registry
        self._router = router
        self._store = store
        self._event_bus = event_bus
        self._storage = storage
        self._history_size = history_size
        self._executions: OrderedDict[str, WorkflowExecution] = OrderedDict()

    @property
    def store(self) -> IWorkflowStore:
        return self._store

    def validate(self, definition: WorkflowDefinition) -> None:
        """Raise WorkflowValidationError if a step names an undeclared capability."""
        missing = [
            step.capability
            for step in definition.steps
            if step.capability and not self._registry.has_capability(step.capability)
        ]
        if missing:
            raise WorkflowValidationError(definition.id, sorted(set(missing)))

    async def execute_workflow(
        self,
        workflow_id: str,
        input: Any,
        context: AgentContext | None = None,
    ) -> Result:
        """Run every step in order; raise WorkflowStepError on the first failure."""
        definition = self._store.get(workflow_id)
        if definition is None:
            raise WorkflowNotFoundError(workflow_id)
        self.validate(definition)

        execution = WorkflowExecution(
            id=str(uuid.uuid4()),
            workflow_id=workflow_id,
            status=ExecutionStatus.RUNNING,
            started_at=datetime.now(timezone.utc),
        )
        self._remember(execution)
        logger.info(
            "Starting workflow %s (%s steps)",
            workflow_id,
            len(definition.steps),
            extra={"workflow_id": workflow_id, "execution_id": execution.id},
        )

        try:
            last_result = await self._run_steps(definition, execution, input, context)
            execution.status = ExecutionStatus.COMPLETED
            execution.finished_at = datetime.now(timezone.utc)
            logger.info(
                "Workflow %s completed in %.1fms",
                workflow_id,
                execution.duration_ms,
                extra={"workflow_id": workflow_id, "execution_id": execution.id},
            )
            await self._record(execution, "workflow_completed")
        except (Exception, asyncio.CancelledError) as e:
            # Step failures are already recorded; anything else must not leave the run RUNNING
            if execution.status == ExecutionStatus.RUNNING:
                execution.status = ExecutionStatus.FAILED
                execution.finished_at = datetime.now(timezone.utc)
                execution.error = f"[{type(e).__name__}] {e}"
                logger.error(
                    "Workflow %s aborted: %s",
                    workflow_id,
                    execution.error,
                    extra={"workflow_id": workflow_id, "execution_id": execution.id},
                )
            raise
        return last_result

    async def _run_steps(
        self,
        definition: WorkflowDefinition,
        execution: WorkflowExecution,
        input: Any,
        context: AgentContext | None,
    ) -> Result:
        current = input
        last_result: Result | None = None

        for index, step in enumerate(definition.steps):
            if step.conditions and not conditions_met(step.conditions, current):
                logger.debug("Skipping step %s: conditions not met", step.id)
                execution.steps.append(StepRecord(index, step.id, skipped=True))
                continue

            agent = self._resolve_agent(step)
            if agent is None:
                error = ResultError(
                    code=NO_AGENT,
                    message=f"No healthy agent for step {step.id}",
                    details={"capability": step.capability, "agent_id": step.agent_id},
                )
                await self._fail(execution, definition, index, step, error)

            message = Message.create(
                type=step.message_type or step.capability or step.id,
                payload=_step_payload(step, current),
                source=f"workflow:{definition.id}",
                target=agent.agent_id,
                correlation_id=execution.id,
            )
            result = await self._router.dispatch(agent, message, context, step.timeout)
            execution.steps.append(StepRecord(index, step.id, result=result))

            if not result.success:
                await self._fail(execution, definition, index, step, result.error)

            current = result.data
            last_result = result

        if last_result is None:
            # Every step was skipped; the input passes straight through
            last_result = Result.ok(ENGINE_ID, data=current)
        return last_result

    def _resolve_agent(self, step: WorkflowStep) -> IAgent | None:
        if step.agent_id:
            if not self._registry.is_healthy(step.agent_id):
                return None
            return self._registry.find_by_id(step.agent_id)
        candidates = self._registry.find_by_capability(step.capability)
        return candidates[0] if candidates else None

    async def _fail(
        self,
        execution: WorkflowExecution,
        definition: WorkflowDefinition,
        index: int,
        step: WorkflowStep,
        error: ResultError,
    ) -> None:
        execution.status = ExecutionStatus.FAILED
        execution.finished_at = datetime.now(timezone.utc)
        execution.failed_step = index
        execution.error = f"[{error.code}] {error.message}"
        logger.error(
            "Workflow %s failed at step %s (%s): %s",
            definition.id,
            index,
            step.id,
            execution.error,
            extra={"workflow_id": definition.id, "execution_id": execution.id},
        )
        await self._record(execution, "workflow_failed")
        raise WorkflowStepError(definition.id, index, step.id, error, execution.id)

    def _remember(self, execution: WorkflowExecution) -> None:
        self._executions[execution.id] = execution
        while len(self._executions) > self._history_size:
            self._executions.popitem(last=False)

    async def _record(self, execution: WorkflowExecution, event_type: str) -> None:
        if self._storage is not None:
            await self._storage.save_workflow_execution(execution)
        if self._event_bus is not None:
            await self._event_bus.emit(
                Topic.WORKFLOW,
                event_type,
                {
                    "execution_id": execution.id,
                    "workflow_id": execution.workflow_id,
                    "status": execution.status.value,
                    "duration_ms": execution.duration_ms,
                    "failed_step": execution.failed_step,
                    "error": execution.error,
                },
                ENGINE_ID,
            )

    def get_execution(self, execution_id: str) -> WorkflowExecution | None:
        return self._executions.get(execution_id)

    def list_executions(self) -> list[WorkflowExecution]:
        """Most recent executions, oldest first."""
        return list(self._executions.values())

    def clear_history(self) -> None:
        self._executions.clear()

    def get_stats(self) -> dict:
        executions = self.list_executions()
        finished = [e for e in executions if e.status != ExecutionStatus.RUNNING]
        completed = [e for e in finished if e.status == ExecutionStatus.COMPLETED]
        total_ms = sum(e.duration_ms or 0 for e in finished)
        return {
            "running": len(executions) - len(finished),
            "finished": len(finished),
            "total_workflows": len(self._store.list_definitions()),
            "average_execution_time_ms": total_ms / len(finished) if finished else 0.0,
            "success_rate": len(completed) / len(finished) * 100 if finished else 0.0,
        }


def _step_payload(step: WorkflowStep, current: Any) -> dict:
    """Step params act as defaults beneath the accumulated input."""
    if isinstance(current, Mapping):
        return {**step.params, **current}
    if current is None:
        return dict(step.params)
    return {**step.params, "input": current}
