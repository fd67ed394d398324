"""Messaging API routes."""

from typing import Any

from pydantic import BaseModel, Field
from fastapi import APIRouter, HTTPException

from ...app import Application
from ...errors import DuplicateMessageError, TargetNotFoundError
from ...models import AgentContext, Message, OrganizationType, Priority


class ContextModel(BaseModel):
    """Caller session passed to agents."""

    user_id: str
    organization_type: OrganizationType = OrganizationType.FOOD_MANUFACTURER
    session_id: str = "api"
    permissions: list[str] = Field(default_factory=list)
    preferences: dict[str, Any] = Field(default_factory=dict)

    def to_context(self) -> AgentContext:
        return AgentContext(
            user_id=self.user_id,
            organization_type=self.organization_type,
            session_id=self.session_id,
            permissions=tuple(self.permissions),
            preferences=self.preferences,
        )


class MessageRequest(BaseModel):
    """Request model for routing a message."""

    type: str
    payload: dict[str, Any] = Field(default_factory=dict)
    id: str | None = None
    source: str = "api"
    target: str | None = None
    correlation_id: str | None = None
    priority: Priority = Priority.NORMAL
    timeout: float | None = Field(None, gt=0)
    context: ContextModel | None = None

    def to_message(self) -> Message:
        return Message.create(
            type=self.type,
            payload=self.payload,
            source=self.source,
            target=self.target,
            correlation_id=self.correlation_id,
            priority=self.priority,
            id=self.id,
        )


class ResultResponse(BaseModel):
    """Response model for one agent result."""

    success: bool
    data: Any = None
    error: dict[str, Any] | None = None
    metadata: dict[str, Any]


class RouteResponse(BaseModel):
    """Response model for a routed message."""

    message_id: str
    results: list[ResultResponse]


def create_messaging_router(app: Application) -> APIRouter:
    """Create messaging router."""
    router = APIRouter(prefix="/api/messages", tags=["messaging"])

    def route_error(e: Exception) -> HTTPException:
        if isinstance(e, TargetNotFoundError):
            return HTTPException(status_code=404, detail=str(e))
        if isinstance(e, DuplicateMessageError):
            return HTTPException(status_code=409, detail=str(e))
        return HTTPException(status_code=500, detail=str(e))

    @router.post("", response_model=RouteResponse)
    async def route_message(request: MessageRequest) -> dict:
        """Route a message to every eligible agent and wait for results."""
        message = request.to_message()
        context = request.context.to_context() if request.context else None
        try:
            results = await app.router.route(message, context, request.timeout)
        except Exception as e:
            raise route_error(e)
        return {"message_id": message.id, "results": [r.to_dict() for r in results]}

    @router.post("/submit", response_model=RouteResponse)
    async def submit_message(request: MessageRequest) -> dict:
        """Route a message through the priority queue."""
        message = request.to_message()
        context = request.context.to_context() if request.context else None
        try:
            results = await app.queue.submit(message, context)
        except Exception as e:
            raise route_error(e)
        return {"message_id": message.id, "results": [r.to_dict() for r in results]}

    return router
