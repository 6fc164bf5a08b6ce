"""
Claims Package for SlopWatch.

Provides the Claim model, claim extraction from assistant text, and
conversation capture that feeds extracted claims to the engine.

Usage:
    from slopwatch.claims import ClaimExtractor, ConversationCapture

    claims = ClaimExtractor().extract("I added error handling to the API client")

    capture = ConversationCapture(sink=runner.submit_claim)
    capture.submit_message("session-1", "assistant", "✅ Added dark mode")
"""

from .capture import ConversationCapture, ConversationMessage
from .extractor import ClaimExtractor, extract_claims
from .models import Claim, ClaimAction, ClaimDomain, ClaimState, new_claim_id

__all__ = [
    "Claim",
    "ClaimAction",
    "ClaimDomain",
    "ClaimState",
    "ClaimExtractor",
    "ConversationCapture",
    "ConversationMessage",
    "extract_claims",
    "new_claim_id",
]
