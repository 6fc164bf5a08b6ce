"""
Accessibility detector.
"""

from ..claims.models import ClaimDomain
from .base import Detector, Signature


class AccessibilityDetector(Detector):
    """Verifies claims about ARIA attributes, alt text, roles, focus handling and semantic markup."""

    name = "accessibility"
    domain = ClaimDomain.ACCESSIBILITY

    signatures = (
        Signature("aria_attributes", r"\baria-[a-z]+\s*=", "aria", 0.9,
                  "ARIA attributes"),
        Signature("alt_text", r"\balt\s*=\s*[\"'{]", "alt_text", 0.8,
                  "Image alt text"),
        Signature("roles", r"\brole\s*=\s*[\"'{]", "aria", 0.8,
                  "Landmark and widget roles"),
        Signature("focus_handling", r":focus(?:-visible|-within)?\b|\btabindex\s*=|\.focus\s*\(\s*\)", "focus", 0.7,
                  "Focus handling"),
        Signature("semantic_markup", r"<(?:nav|main|header|footer|section|article|aside|button|label)\b", "semantic", 0.7,
                  "Semantic HTML elements"),
        Signature("screen_reader_only", r"\.(?:sr-only|visually-hidden)\b", "aria", 0.8,
                  "Screen-reader-only content"),
        Signature("reduced_motion", r"prefers-reduced-motion", "focus", 0.9,
                  "Reduced-motion support"),
    )

    subcategories = {
        "alt_text": ("alt text", "alt attribute", "image description"),
        "focus": ("focus", "keyboard", "tab order", "motion"),
        "semantic": ("semantic", "landmark", "heading structure"),
        "aria": ("aria", "screen reader", "label"),
    }
