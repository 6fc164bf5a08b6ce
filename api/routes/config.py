"""
Configuration API Routes.

Read-only view of the effective configuration.
"""

from typing import Any, Dict, List

from fastapi import APIRouter

from slopwatch import __version__
from slopwatch.service import get_service

router = APIRouter(prefix="/api/config", tags=["config"])


@router.get("")
async def get_config() -> Dict[str, Any]:
    """Effective configuration of the running service."""
    service = get_service()
    return {
        "version": __version__,
        "frozen": service.running,
        "config": service.config.to_dict(),
    }


@router.get("/detectors")
async def list_detectors() -> List[str]:
    """Enabled detectors in evaluation order."""
    return get_service().registry.names
