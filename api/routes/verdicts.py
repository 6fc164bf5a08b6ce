"""
Verdict API Routes.

Recent verdicts, single verdict lookup and a live SSE stream.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from slopwatch.service import get_service

from ..sse import VERDICTS_TOPIC, sse_manager

router = APIRouter(prefix="/api/verdicts", tags=["verdicts"])


class VerdictResponse(BaseModel):
    """A verdict as returned by the API."""
    id: str
    claim_id: str
    status: str
    confidence: float
    reason: str
    evidence: List[str] = []
    detector_name: str
    resolved_at: float
    claim_text: Optional[str] = None


def _to_response(verdict) -> VerdictResponse:
    claim = get_service().get_claim(verdict.claim_id)
    return VerdictResponse(
        **verdict.to_dict(),
        claim_text=claim.text if claim else None,
    )


@router.get("", response_model=List[VerdictResponse])
async def list_verdicts(
    since: Optional[float] = Query(None, description="Epoch seconds; default is the last 5 minutes"),
):
    """Recent verdicts, newest first."""
    verdicts = get_service().get_recent_verdicts(since)
    return [_to_response(v) for v in verdicts]


@router.get("/stream")
async def verdict_stream():
    """
    SSE endpoint emitting one `verdict` event per new verdict.
    """
    return StreamingResponse(
        sse_manager.subscribe(VERDICTS_TOPIC),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/{verdict_id}", response_model=VerdictResponse)
async def get_verdict(verdict_id: str):
    verdict = get_service().get_verdict(verdict_id)
    if verdict is None:
        raise HTTPException(status_code=404, detail="Verdict not found")
    return _to_response(verdict)
