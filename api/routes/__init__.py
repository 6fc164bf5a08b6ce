"""
API Routes for SlopWatch.
"""

from .claims import router as claims_router
from .config import router as config_router
from .stats import router as stats_router
from .verdicts import router as verdicts_router

__all__ = [
    "claims_router",
    "config_router",
    "stats_router",
    "verdicts_router",
]
