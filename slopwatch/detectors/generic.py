"""
Generic fallback detector.

Accepts every claim. Scores changed files and claim keywords found in the
changed lines with a weighted sum, and verifies once the sum reaches the
verification cutoff:

    confidence = change_weight * (files with content / in-domain files)
               + keyword_weight * min(1, keywords found / keywords)
"""

import re
from typing import Dict, List

from ..claims.keywords import ACTION_VERBS
from ..claims.models import Claim, ClaimDomain
from ..scoring.verdicts import Verdict, VerdictStatus
from ..watching.events import FileChangeEvent
from .base import Detector

# Words too common to tell a claim apart
STOP_WORDS = frozenset({
    "that", "this", "with", "from", "into", "have", "been", "will", "also",
    "just", "now", "some", "more", "than", "then", "when", "where", "which",
    "their", "there", "these", "those", "code", "file", "files", "method",
    "function", "functions", "properly", "correctly", "successfully",
})

_CLAIM_VERBS = frozenset(
    word for verbs in ACTION_VERBS.values() for verb in verbs for word in verb.split()
)


def claim_keywords(text: str) -> List[str]:
    """Distinctive words of a claim, in first-seen order."""
    words = re.sub(r"[^\w\s]", " ", text.lower()).split()
    seen = []
    for word in words:
        if len(word) <= 3 or word in STOP_WORDS or word in _CLAIM_VERBS:
            continue
        if word not in seen:
            seen.append(word)
    return seen


class GenericDetector(Detector):
    """Fallback detector for claims no domain detector handles."""

    name = "generic"
    domain = ClaimDomain.GENERIC

    def can_handle(self, claim: Claim) -> bool:
        return True

    def evaluate(
        self,
        claim: Claim,
        relevant: List[FileChangeEvent],
        lines_by_path: Dict[str, List[str]],
    ) -> Verdict:
        with_content = [
            path for path, lines in lines_by_path.items()
            if any(line and not self.is_placeholder(line) for line in lines)
        ]
        change_score = len(with_content) / len(relevant)

        keywords = claim_keywords(claim.text)
        changed_text = "\n".join(
            line for lines in lines_by_path.values() for line in lines
        ).lower()
        found = [k for k in keywords if k in changed_text]
        keyword_score = min(1.0, len(found) / len(keywords)) if keywords else 0.0

        confidence = min(
            self.config.confidence_cap,
            self.config.change_weight * change_score + self.config.keyword_weight * keyword_score,
        )
        evidence = [f"{len(with_content)}/{len(relevant)} changed file(s) carry new content"]
        if keywords:
            evidence.append(
                f"{len(found)}/{len(keywords)} claim keyword(s) in changes"
                + (f": {', '.join(found)}" if found else "")
            )

        if confidence >= self.config.verification_cutoff:
            return self._verdict(
                claim, VerdictStatus.VERIFIED, confidence,
                f"changes support the claim ({confidence:.0%} >= {self.config.verification_cutoff:.0%})",
                evidence,
            )
        return self._verdict(
            claim, VerdictStatus.PARTIAL, confidence,
            f"changes only partly support the claim ({confidence:.0%} < {self.config.verification_cutoff:.0%})",
            evidence,
        )
