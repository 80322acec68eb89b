"""Health check endpoints."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from pokerroom import __version__
from pokerroom.core.exceptions import PokerRoomError

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str


@router.get("/", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic liveness."""
    return HealthResponse(status="healthy", service="pokerroom", version=__version__)


@router.get("/ready")
async def readiness_check(request: Request) -> dict:
    """Readiness: the repository answers a lookup."""
    container = request.app.state.container
    try:
        await container.repository.get_room("HEALTH")
    except PokerRoomError as exc:
        return {"status": "not_ready", "error": exc.message}
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> dict:
    """Liveness endpoint."""
    return {"status": "alive"}
