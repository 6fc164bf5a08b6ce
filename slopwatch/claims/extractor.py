"""
Claim extraction from free text.

Three independent strategies produce candidates:
- sentence_pattern: fixed sentence templates ("I have <verb> <object>",
  "<object> has been <verb>", "Added <object>", ...)
- confidence_indicator: sentences carrying a confidence marker (a checkmark
  glyph, "successfully", "done") that also name an action and a domain
- keyword_proximity: an action verb and a domain phrase within a bounded
  token distance; closer pairs score higher

Candidates are merged by (action, domain). The strongest candidate per key
wins and gains a boost for every other strategy that agreed with it.
Extraction is a pure function of its input and never raises on content:
text without a recognizable action/domain pair yields an empty list.
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..core.config_manager import ExtractionConfig
from .keywords import (
    CONFIDENCE_MARKERS,
    HEDGE_TERMS,
    TECHNICAL_TERMS,
    count_terms,
    find_actions,
    find_domains,
    tokenize,
)
from .models import Claim, ClaimAction, ClaimDomain

logger = logging.getLogger(__name__)


SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|\n+")

# Minimum characters for a fragment to be considered a sentence
MIN_SENTENCE_LENGTH = 8


@dataclass(frozen=True)
class SentenceTemplate:
    """A sentence shape assistants use to report finished work."""
    name: str
    pattern: "re.Pattern"
    base_confidence: float
    default_action: Optional[ClaimAction] = None


def _t(name: str, pattern: str, confidence: float, default_action: Optional[ClaimAction] = None):
    return SentenceTemplate(name, re.compile(pattern, re.IGNORECASE), confidence, default_action)


SENTENCE_TEMPLATES: List[SentenceTemplate] = [
    # "I added error handling", "I've implemented dark mode"
    _t("first_person", r"\bI(?:'ve|\s+have)?\s+(?:just\s+|now\s+|also\s+)?(?P<verb>\w+ed|built|wrote|set\s+up)\s+(?P<object>.+)", 0.8),
    # "Error handling has been added"
    _t("passive", r"(?P<object>.+?)\s+(?:has|have)\s+been\s+(?P<verb>\w+ed|built|set\s+up)\b", 0.8),
    # "Added responsive design with media queries"
    _t("imperative", r"^\W*(?P<verb>[A-Za-z]+ed|Built|Wrote|Set\s+up)\s+(?P<object>.+)", 0.75),
    # "Added support for async operations"
    _t("support_for", r"\b(?P<verb>added|implemented)\s+support\s+for\s+(?P<object>.+)", 0.8),
    # "Fixed the issue with mobile responsiveness"
    _t("problem_solution", r"\b(?P<verb>fixed|resolved|addressed)\s+(?:the\s+)?(?:issue|problem|bug)s?\s+(?:with|in|for)\s+(?P<object>.+)", 0.8),
    # "Updated the styling to be more responsive"
    _t("update_to", r"\b(?P<verb>updated|modified|changed)\s+(?P<object>.+?)\s+to\s+(?:be\s+)?.+", 0.8),
    # "Now the app supports dark mode"
    _t("now_supports", r"\b(?:now|this)\s+.+?\s+(?:supports?|works?|includes?|has)\s+(?P<object>.+)", 0.7, ClaimAction.ADD),
]


@dataclass
class ClaimCandidate:
    """An unmerged extraction result from one strategy."""
    action: ClaimAction
    domain: ClaimDomain
    target: str
    text: str
    confidence: float
    source: str


class ClaimExtractor:
    """
    Turns raw assistant text into structured claims.

    Usage:
        extractor = ClaimExtractor()
        claims = extractor.extract("✅ Added responsive design with media queries")
    """

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self.config = config or ExtractionConfig()

    def extract(
        self,
        text: str,
        created_at: Optional[float] = None,
        session_id: Optional[str] = None,
    ) -> List[Claim]:
        """
        Extract claims from text.

        Args:
            text: Assistant output to scan
            created_at: Timestamp to stamp on the claims (default: now)
            session_id: Conversation identifier to carry on the claims

        Returns:
            Merged claims, strongest first; empty when no signal is found
        """
        if not text or not text.strip():
            return []

        candidates: List[ClaimCandidate] = []
        for sentence in self._split_sentences(text):
            candidates.extend(self._match_templates(sentence))
            candidates.extend(self._match_confidence_markers(sentence))
            candidates.extend(self._match_keyword_proximity(sentence))

        claims = self._merge(candidates, created_at, session_id)
        if claims:
            logger.debug(
                f"[EXTRACTOR] {len(claims)} claim(s) from {len(candidates)} candidate(s)"
            )
        return claims

    # =========================================================================
    # Strategies
    # =========================================================================

    def _split_sentences(self, text: str) -> List[str]:
        sentences = []
        for fragment in SENTENCE_SPLIT.split(text):
            fragment = fragment.strip().rstrip(".!?").strip()
            if len(fragment) >= MIN_SENTENCE_LENGTH:
                sentences.append(fragment)
        return sentences

    def _match_templates(self, sentence: str) -> List[ClaimCandidate]:
        candidates = []
        for template in SENTENCE_TEMPLATES:
            match = template.pattern.search(sentence)
            if not match:
                continue

            verb = match.groupdict().get("verb") or ""
            action = self._action_of(verb) or template.default_action
            if action is None:
                continue

            target_text = match.group("object")
            domain, phrase = self._domain_of(target_text)
            if domain is None:
                continue

            candidates.append(ClaimCandidate(
                action=action,
                domain=domain,
                target=phrase,
                text=sentence,
                confidence=self._adjust(template.base_confidence, sentence),
                source="sentence_pattern",
            ))
        return candidates

    def _match_confidence_markers(self, sentence: str) -> List[ClaimCandidate]:
        if not count_terms(sentence, CONFIDENCE_MARKERS):
            return []

        tokens = tokenize(sentence)
        actions = find_actions(tokens)
        domains = find_domains(tokens)
        if not actions or not domains:
            return []

        _, action, _ = actions[0]
        _, domain, phrase = domains[0]
        return [ClaimCandidate(
            action=action,
            domain=domain,
            target=phrase,
            text=sentence,
            confidence=self._adjust(0.85, sentence),
            source="confidence_indicator",
        )]

    def _match_keyword_proximity(self, sentence: str) -> List[ClaimCandidate]:
        tokens = tokenize(sentence)
        actions = find_actions(tokens)
        domains = find_domains(tokens)
        if not actions or not domains:
            return []

        # Closest pair per (action, domain)
        best: Dict[Tuple[ClaimAction, ClaimDomain], Tuple[int, str]] = {}
        for action_pos, action, _ in actions:
            for domain_pos, domain, phrase in domains:
                distance = abs(domain_pos - action_pos)
                if distance > self.config.proximity_window:
                    continue
                key = (action, domain)
                if key not in best or distance < best[key][0]:
                    best[key] = (distance, phrase)

        candidates = []
        for (action, domain), (distance, phrase) in best.items():
            confidence = max(self.config.min_confidence, 1.0 - distance / 100.0)
            candidates.append(ClaimCandidate(
                action=action,
                domain=domain,
                target=phrase,
                text=sentence,
                confidence=self._adjust(confidence, sentence),
                source="keyword_proximity",
            ))
        return candidates

    # =========================================================================
    # Helpers
    # =========================================================================

    def _action_of(self, verb: str) -> Optional[ClaimAction]:
        found = find_actions(tokenize(verb))
        return found[0][1] if found else None

    def _domain_of(self, text: str) -> Tuple[Optional[ClaimDomain], str]:
        found = find_domains(tokenize(text))
        if not found:
            return None, ""
        _, domain, phrase = found[0]
        return domain, phrase

    def _adjust(self, confidence: float, sentence: str) -> float:
        """Apply hedging penalties and specificity boosts to a base confidence."""
        confidence -= 0.1 * count_terms(sentence, HEDGE_TERMS)
        confidence += 0.02 * count_terms(sentence, TECHNICAL_TERMS)
        return min(self.config.confidence_cap, max(0.0, confidence))

    def _merge(
        self,
        candidates: List[ClaimCandidate],
        created_at: Optional[float],
        session_id: Optional[str],
    ) -> List[Claim]:
        grouped: Dict[Tuple[ClaimAction, ClaimDomain], List[ClaimCandidate]] = {}
        for candidate in candidates:
            grouped.setdefault((candidate.action, candidate.domain), []).append(candidate)

        timestamp = created_at if created_at is not None else time.time()
        claims = []
        for group in grouped.values():
            group.sort(key=lambda c: c.confidence, reverse=True)
            best = group[0]
            strategies = sorted({c.source for c in group})

            confidence = best.confidence
            if len(strategies) > 1:
                confidence += (len(strategies) - 1) * self.config.agreement_boost
            confidence = min(self.config.confidence_cap, confidence)

            if confidence < self.config.min_confidence:
                continue

            claims.append(Claim(
                text=best.text,
                domain=best.domain,
                action=best.action,
                target=best.target,
                confidence=confidence,
                created_at=timestamp,
                session_id=session_id,
                sources=tuple(strategies),
            ))

        claims.sort(key=lambda c: c.confidence, reverse=True)
        return claims


_default_extractor: Optional[ClaimExtractor] = None


def extract_claims(text: str, created_at: Optional[float] = None) -> List[Claim]:
    """Extract claims with a default-configured extractor."""
    global _default_extractor
    if _default_extractor is None:
        _default_extractor = ClaimExtractor()
    return _default_extractor.extract(text, created_at=created_at)
