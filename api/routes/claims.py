"""
Claim and conversation API Routes.

POST /api/messages feeds the conversation capture (claims are extracted from
assistant messages); POST /api/claims registers a claim by hand.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from slopwatch.claims.models import ClaimAction, ClaimDomain
from slopwatch.core.errors import EngineNotRunningError
from slopwatch.service import get_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["claims"])


class MessageRequest(BaseModel):
    """A conversation message."""
    session_id: str = Field(..., min_length=1)
    role: str = Field(..., description="user, assistant or system")
    content: str
    timestamp: Optional[float] = None


class ClaimRequest(BaseModel):
    """A manually registered claim."""
    text: str = Field(..., min_length=1)
    domain: Optional[ClaimDomain] = None
    action: Optional[ClaimAction] = None


class ClaimResponse(BaseModel):
    id: str
    text: str
    domain: str
    action: str
    target: str
    confidence: float
    created_at: float
    session_id: Optional[str] = None
    sources: List[str] = []
    state: Optional[str] = None


def _to_response(claim) -> ClaimResponse:
    state = get_service().engine.get_claim_state(claim.id)
    return ClaimResponse(**claim.to_dict(), state=state.value if state else None)


@router.post("/api/messages", response_model=List[ClaimResponse])
async def submit_message(request: MessageRequest):
    """Record a message and return the claims extracted from it."""
    try:
        claims = get_service().submit_message(
            request.session_id, request.role, request.content, request.timestamp
        )
    except EngineNotRunningError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return [_to_response(c) for c in claims]


@router.post("/api/claims", response_model=ClaimResponse)
async def add_claim(request: ClaimRequest):
    try:
        claim = get_service().add_claim(request.text, domain=request.domain, action=request.action)
    except EngineNotRunningError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return _to_response(claim)


@router.get("/api/claims", response_model=List[ClaimResponse])
async def list_claims(
    since: Optional[float] = Query(None, description="Epoch seconds; default is the last 5 minutes"),
):
    """Recently captured claims, newest first."""
    return [_to_response(c) for c in get_service().capture.get_recent_claims(since)]
