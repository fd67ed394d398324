"""Workflow API routes."""

from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException, Query

from ...app import Application
from ...errors import WorkflowNotFoundError, WorkflowStepError, WorkflowValidationError
from .messaging import ContextModel, ResultResponse


class ExecuteWorkflowRequest(BaseModel):
    """Request model for running a workflow."""

    input: Any = None
    context: ContextModel | None = None


def create_workflows_router(app: Application) -> APIRouter:
    """Create workflows router."""
    router = APIRouter(prefix="/api/workflows", tags=["workflows"])

    @router.get("")
    async def list_workflows() -> list[dict]:
        """List workflow definitions."""
        return [d.to_dict() for d in app.workflow_engine.store.list_definitions()]

    @router.get("/executions")
    async def list_executions(
        workflow_id: str | None = Query(None, description="Filter by workflow"),
        limit: int = Query(50, ge=1, le=100),
    ) -> list[dict]:
        """Most recent executions, newest first."""
        executions = [
            e
            for e in reversed(app.workflow_engine.list_executions())
            if workflow_id is None or e.workflow_id == workflow_id
        ]
        return [e.to_dict() for e in executions[:limit]]

    @router.get("/history")
    async def get_history(
        workflow_id: str | None = Query(None, description="Filter by workflow"),
        limit: int = Query(100, ge=1, le=1000),
    ) -> list[dict]:
        """Persisted executions, including ones evicted from memory."""
        return await app.storage.get_workflow_executions(workflow_id=workflow_id, limit=limit)

    @router.get("/executions/{execution_id}")
    async def get_execution(execution_id: str) -> dict:
        execution = app.workflow_engine.get_execution(execution_id)
        if execution is None:
            raise HTTPException(status_code=404, detail=f"Execution not found: {execution_id}")
        return execution.to_dict()

    @router.post("/{workflow_id}/execute", response_model=ResultResponse)
    async def execute_workflow(workflow_id: str, request: ExecuteWorkflowRequest) -> dict:
        """Run a workflow and return the last step's result."""
        context = request.context.to_context() if request.context else None
        try:
            result = await app.workflow_engine.execute_workflow(
                workflow_id, request.input, context
            )
        except WorkflowNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except WorkflowValidationError as e:
            raise HTTPException(
                status_code=422,
                detail={"message": str(e), "missing_capabilities": e.missing},
            )
        except WorkflowStepError as e:
            raise HTTPException(
                status_code=422,
                detail={
                    "message": str(e),
                    "execution_id": e.execution_id,
                    "step_index": e.step_index,
                    "step_id": e.step_id,
                    "error": e.error.to_dict(),
                },
            )
        return result.to_dict()

    return router
