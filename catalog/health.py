import asyncio

from fastapi import APIRouter, Request

from .logger import get_logger
from .models import HealthResponse

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/api/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Report whether the catalog store is configured and answering."""
    store = request.app.state.store
    if store is None:
        return HealthResponse(status="degraded", store_configured=False)
    try:
        await asyncio.to_thread(store.ping)
    except Exception as exc:
        logger.warning("Store health check failed: %s", exc)
        return HealthResponse(status="degraded", store_configured=True, store_reachable=False, error=str(exc)[:300])
    return HealthResponse(status="ok", store_configured=True, store_reachable=True)
