"""Control API routes."""

from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import Application


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


# Global SIM instance (will be set by main app)
_sim_instance: Any = None


def set_sim_instance(sim: Any) -> None:
    """Set the global SIM instance."""
    global _sim_instance
    _sim_instance = sim


def get_sim_instance() -> Any:
    """Get the global SIM instance."""
    return _sim_instance


def create_control_router(app: Application) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api/control", tags=["control"])

    def require_sim() -> Any:
        if not _sim_instance:
            raise HTTPException(status_code=404, detail="SIM not configured")
        return _sim_instance

    @router.post("/reset", response_model=StatusResponse)
    async def reset_system() -> dict:
        """Clear stored events and recreate the configured agents."""
        try:
            await app.reset()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {"status": "ok"}

    @router.post("/sim/start", response_model=StatusResponse)
    async def start_sim() -> dict:
        """Start SIM scenario."""
        await require_sim().start()
        return {"status": "ok"}

    @router.post("/sim/stop", response_model=StatusResponse)
    async def stop_sim() -> dict:
        """Stop SIM scenario."""
        await require_sim().stop()
        return {"status": "ok"}

    return router
