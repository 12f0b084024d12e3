"""
routes/api_routes.py

Responsibility: Operational endpoints: liveness probe and per-zone
reconciliation stats. Read-only.
Does NOT: mutate state or perform DNS changes.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from dependencies import get_stats_service
from services.stats_service import StatsService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/healthz", response_class=PlainTextResponse)
async def healthz() -> str:
    return "OK"


@router.get("/api/stats")
async def get_stats(
    stats_service: StatsService = Depends(get_stats_service),
) -> list[dict]:
    """
    Returns the apply counters of every zone seen so far.

    Args:
        stats_service: Provides ZoneStats rows from the DB.

    Returns:
        A JSON list with one object per zone, ordered by zone.
    """
    rows = await stats_service.get_all()
    return [row.model_dump(exclude={"id"}, mode="json") for row in rows]
