"""
Statistics API Routes.
"""

from typing import Dict

from fastapi import APIRouter
from pydantic import BaseModel

from slopwatch.service import get_service

router = APIRouter(prefix="/api/stats", tags=["stats"])


class StatsResponse(BaseModel):
    """Aggregate statistics; slopScore is a fraction between 0 and 1."""
    totalClaims: int
    totalAnalyses: int
    pendingClaims: int
    slopScore: float
    statusBreakdown: Dict[str, int]
    detectorBreakdown: Dict[str, int]
    recentFileChanges: int = 0
    expiredClaims: int = 0


@router.get("", response_model=StatsResponse)
async def get_stats():
    return StatsResponse(**get_service().get_stats())
