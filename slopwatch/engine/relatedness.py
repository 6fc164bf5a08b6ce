"""
Relatedness predicate: could this change correspond to this claim?
"""

from ..claims.models import Claim
from ..detectors.domains import profile_for
from ..watching.events import FileChangeEvent


def is_related(claim: Claim, change: FileChangeEvent) -> bool:
    """
    Domain check only.

    Styling claims relate to stylesheets or diffs with style markers,
    scripting claims to script files, generic claims to any tracked file.
    """
    return profile_for(claim.domain).matches(change)


def in_evaluation_range(
    claim: Claim,
    change: FileChangeEvent,
    window_s: float,
    slack_s: float,
) -> bool:
    """Change happened within [created_at - slack, created_at + window]."""
    return claim.created_at - slack_s <= change.occurred_at <= claim.created_at + window_s
