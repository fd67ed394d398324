"""Agent management API routes."""

from typing import Any

from pydantic import BaseModel, Field
from fastapi import APIRouter, HTTPException

from ...app import Application
from ...errors import (
    AgentInitializationError,
    DuplicateIdError,
    NotFoundError,
    UnknownAgentTypeError,
)


class AgentResponse(BaseModel):
    """Response model for a registered agent."""

    agent_id: str
    name: str
    version: str
    capabilities: list[str]
    healthy: bool
    registered_at: str


class CreateAgentRequest(BaseModel):
    """Request model for creating an agent through the factory."""

    agent_type: str
    config: dict[str, Any] = Field(default_factory=dict)


class HealthReportResponse(BaseModel):
    """Response model for one health check."""

    agent_id: str
    healthy: bool
    error: str | None = None


def create_agents_router(app: Application) -> APIRouter:
    """Create agents router."""
    router = APIRouter(prefix="/api/agents", tags=["agents"])

    @router.get("", response_model=list[AgentResponse])
    async def list_agents() -> list[dict]:
        """List registered agents with their health flags."""
        return [status.to_dict() for status in app.registry.snapshot()]

    @router.get("/types", response_model=list[str])
    async def list_agent_types() -> list[str]:
        """List agent types the factory can build."""
        return app.factory.get_available_agent_types()

    @router.get("/metrics")
    async def get_agent_metrics() -> list[dict]:
        """Per-agent processing metrics."""
        return app.registry.get_metrics()

    @router.post("", response_model=AgentResponse, status_code=201)
    async def create_agent(request: CreateAgentRequest) -> dict:
        """Create an agent through the factory and register it."""
        try:
            agent = app.factory.create_agent(request.agent_type, request.config)
            await app.registry.register(agent)
        except UnknownAgentTypeError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except DuplicateIdError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except AgentInitializationError as e:
            raise HTTPException(status_code=500, detail=str(e))

        for status in app.registry.snapshot():
            if status.agent_id == agent.agent_id:
                return status.to_dict()
        # Removed concurrently
        raise HTTPException(status_code=404, detail=f"Agent not found: {agent.agent_id}")

    @router.delete("/{agent_id}", status_code=204)
    async def delete_agent(agent_id: str) -> None:
        """Shut down and unregister an agent."""
        try:
            await app.registry.unregister(agent_id)
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

    @router.post("/health", response_model=list[HealthReportResponse])
    async def run_health_checks() -> list[dict]:
        """Run one health pass now instead of waiting for the next interval."""
        reports = await app.health_monitor.check_all()
        return [
            {"agent_id": r.agent_id, "healthy": r.healthy, "error": r.error}
            for r in reports
        ]

    return router
