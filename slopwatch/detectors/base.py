"""
Detector base class and weighted signatures.

Every detector follows the same shape:
1. keep only in-domain changes (extension, path or diff markers)
2. no in-domain changes -> lie
3. only placeholder lines (comments, TODO markers) -> lie
4. classify the claim into a sub-category by keyword
5. run the sub-category's signatures over the added (or, for removal
   claims, removed) lines of each change
6. no match -> partial; matches -> verified, confidence from the
   strongest signature plus a small bonus per extra match

Detectors hold no mutable state between calls and never raise: any
failure becomes an `unknown` verdict carrying the failure text.
"""

import logging
import re
from abc import ABC
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..claims.models import Claim, ClaimAction, ClaimDomain
from ..core.config_manager import DetectionConfig
from ..core.errors import DetectorFailure
from ..scoring.verdicts import Verdict, VerdictStatus
from ..watching.events import FileChangeEvent
from .domains import DomainProfile, profile_for

logger = logging.getLogger(__name__)

# Confidence bonus for every matched signature beyond the strongest one
EXTRA_MATCH_BONUS = 0.05

# Comment-only, blank or bare TODO lines. A leading "*" counts as a block
# comment continuation unless the line carries a brace (CSS "* {").
PLACEHOLDER_LINE = re.compile(
    r"^\s*(?:$|//|#(?:\s|!|$)|/\*|\*/|\*(?:$|\s(?![^{}]*[{}]))|<!--|(?:TODO|FIXME|XXX|HACK)\b)",
)


@dataclass(frozen=True)
class Signature:
    """A weighted code pattern that supports a claim."""
    name: str
    pattern: str
    category: str
    weight: float
    description: str
    flags: int = re.IGNORECASE | re.MULTILINE
    _compiled: "re.Pattern" = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_compiled", re.compile(self.pattern, self.flags))

    def search(self, text: str) -> bool:
        return self._compiled.search(text) is not None


class Detector(ABC):
    """
    Base class for domain detectors.

    Subclasses set `name`, `domain`, `signatures` and `subcategories`
    (sub-category -> claim keywords, checked in order).
    """

    name: str = "base"
    domain: ClaimDomain = ClaimDomain.GENERIC
    signatures: Sequence[Signature] = ()
    subcategories: Dict[str, Sequence[str]] = {}

    def __init__(self, config: Optional[DetectionConfig] = None):
        self.config = config or DetectionConfig()

    @property
    def profile(self) -> DomainProfile:
        return profile_for(self.domain)

    def can_handle(self, claim: Claim) -> bool:
        return claim.domain == self.domain

    def analyze(self, claim: Claim, changes: Iterable[FileChangeEvent]) -> Verdict:
        """
        Analyze a claim against file changes. Never raises.
        """
        claim_id = getattr(claim, "id", "unknown")
        try:
            changes = list(changes)
            self._validate(claim, changes)
            return self._analyze(claim, changes)
        except Exception as e:
            logger.warning(f"[DETECTOR] {self.name} failed on claim {claim_id}: {e}")
            return Verdict(
                claim_id=claim_id,
                status=VerdictStatus.UNKNOWN,
                confidence=0.0,
                reason=f"{self.name} detector failed: {e}",
                detector_name=self.name,
            )

    def _validate(self, claim: Claim, changes: List[FileChangeEvent]) -> None:
        if not isinstance(claim, Claim):
            raise DetectorFailure(f"expected a Claim, got {type(claim).__name__}", self.name)
        for change in changes:
            if not isinstance(change, FileChangeEvent):
                raise DetectorFailure(
                    f"expected FileChangeEvent, got {type(change).__name__}", self.name
                )

    # =========================================================================
    # Analysis pipeline
    # =========================================================================

    def _analyze(self, claim: Claim, changes: List[FileChangeEvent]) -> Verdict:
        relevant = [c for c in changes if self.is_in_domain(c)]
        if not relevant:
            return self._verdict(
                claim,
                VerdictStatus.LIE,
                self.config.no_change_confidence,
                f"claimed {self.domain.value} change but no relevant file touched "
                f"(no {self.profile.absence_hint} changes detected)",
                [f"{len(changes)} change(s) in window, none in {self.domain.value} files"],
            )

        lines_by_path = {c.path: self.evidence_lines(claim, c) for c in relevant}
        all_lines = [line for lines in lines_by_path.values() for line in lines]
        if all_lines and all(self.is_placeholder(line) for line in all_lines):
            return self._verdict(
                claim,
                VerdictStatus.LIE,
                self.config.placeholder_confidence,
                "only placeholder comments added",
                [f"{path}: {line}" for path, lines in lines_by_path.items() for line in lines[:3]],
            )

        return self.evaluate(claim, relevant, lines_by_path)

    def evaluate(
        self,
        claim: Claim,
        relevant: List[FileChangeEvent],
        lines_by_path: Dict[str, List[str]],
    ) -> Verdict:
        """Signature matching over in-domain changes."""
        subcategory = self.classify(claim)
        signatures = self.signatures_for(subcategory)

        matched: Dict[str, Tuple[Signature, List[str]]] = {}
        for path, lines in lines_by_path.items():
            text = "\n".join(lines)
            for signature in signatures:
                if signature.search(text):
                    matched.setdefault(signature.name, (signature, []))[1].append(path)

        label = subcategory or self.domain.value
        if not matched:
            return self._verdict(
                claim,
                VerdictStatus.PARTIAL,
                self.config.partial_confidence,
                f"{len(relevant)} {self.domain.value} file(s) changed but no {label} patterns found",
                [f"changed: {c.path} (+{c.lines_added}/-{c.lines_removed})" for c in relevant],
            )

        # Keep signature order for stable evidence
        ordered = [matched[s.name] for s in signatures if s.name in matched]
        strongest = max(signature.weight for signature, _ in ordered)
        confidence = min(
            self.config.confidence_cap,
            strongest + EXTRA_MATCH_BONUS * (len(ordered) - 1),
        )
        return self._verdict(
            claim,
            VerdictStatus.VERIFIED,
            confidence,
            f"found {len(ordered)} {label} pattern(s) in changed files",
            [
                f"{signature.description} in {', '.join(paths)}"
                for signature, paths in ordered
            ],
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def is_in_domain(self, change: FileChangeEvent) -> bool:
        return self.profile.matches(change)

    def evidence_lines(self, claim: Claim, change: FileChangeEvent) -> List[str]:
        """Added lines, or removed lines for removal claims."""
        if claim.action == ClaimAction.REMOVE:
            return change.removed_lines
        return change.added_lines

    @staticmethod
    def is_placeholder(line: str) -> bool:
        return PLACEHOLDER_LINE.search(line) is not None

    def classify(self, claim: Claim) -> Optional[str]:
        """First sub-category whose keywords appear in the claim text."""
        text = claim.normalized_text
        for subcategory, keywords in self.subcategories.items():
            if any(keyword in text for keyword in keywords):
                return subcategory
        return None

    def signatures_for(self, subcategory: Optional[str]) -> List[Signature]:
        if subcategory is None:
            return list(self.signatures)
        return [s for s in self.signatures if s.category == subcategory]

    def _verdict(
        self,
        claim: Claim,
        status: VerdictStatus,
        confidence: float,
        reason: str,
        evidence: Sequence[str] = (),
    ) -> Verdict:
        return Verdict(
            claim_id=claim.id,
            status=status,
            confidence=confidence,
            reason=reason,
            evidence=tuple(evidence),
            detector_name=self.name,
        )
