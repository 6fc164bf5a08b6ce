"""
CLI helpers for SlopWatch.
"""

from .console import (
    configure_logging,
    console,
    render_claims,
    render_stats,
    render_verdict,
    render_verdicts,
)

__all__ = [
    "configure_logging",
    "console",
    "render_claims",
    "render_stats",
    "render_verdict",
    "render_verdicts",
]
