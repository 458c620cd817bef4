from fastapi import APIRouter, Request

import backend
from logging_config import get_logger
from schemas.stats import HealthResponse, StatsResponse

logger = get_logger(__name__)

stats_router = APIRouter(tags=["stats"])


@stats_router.get("/stats", response_model=StatsResponse)
async def get_stats(request: Request = None):
    """
    Snapshot of the matchmaking counters.

    Returns:
    - online_count: Connected WebSocket clients
    - rooms_count: Active pairs
    - waiting_count: Clients currently in the waiting queue
    """
    client_host = request.client.host if request and request.client else 'unknown'
    stats = backend.matchmaking_backend.stats()
    logger.debug(f"Stats request from {client_host}: {stats}")
    return StatsResponse(**stats)


@stats_router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok")
