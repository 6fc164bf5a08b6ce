"""
Keyword banks used by the claim extractor.

Phrases are matched on token boundaries, so "ui" never matches inside
"build" and "try-catch" stays a single token.
"""

import re
from typing import Dict, List, Sequence, Tuple

from .models import ClaimAction, ClaimDomain

TOKEN_PATTERN = re.compile(r"[a-z0-9@#]+(?:['\-/][a-z0-9]+)*")


# How assistants describe what they did
ACTION_VERBS: Dict[ClaimAction, List[str]] = {
    ClaimAction.ADD: [
        "added", "implemented", "introduced", "created", "built", "included",
        "inserted", "integrated", "wrote", "put", "placed",
    ],
    ClaimAction.FIX: [
        "fixed", "resolved", "corrected", "repaired", "addressed", "solved",
        "patched", "debugged", "remedied",
    ],
    ClaimAction.IMPROVE: [
        "improved", "enhanced", "optimized", "upgraded", "refined",
        "streamlined", "polished", "boosted", "hardened",
    ],
    ClaimAction.UPDATE: [
        "updated", "modified", "changed", "revised", "adjusted", "tweaked",
        "altered", "refactored", "restructured", "reorganized",
    ],
    ClaimAction.REMOVE: [
        "removed", "deleted", "eliminated", "cleaned", "stripped", "cleared",
        "purged", "dropped",
    ],
    ClaimAction.CONFIGURE: [
        "configured", "set up", "setup", "established", "initialized",
        "arranged", "enabled",
    ],
}

# What assistants claim to have worked on. Order matters only for ties.
DOMAIN_PHRASES: Dict[ClaimDomain, List[str]] = {
    ClaimDomain.STYLING: [
        "responsive design", "responsive layout", "responsive styles", "responsive",
        "mobile-friendly", "mobile responsive", "media queries", "media query",
        "breakpoints", "css", "styles", "styling", "stylesheet", "layout", "theme",
        "dark mode", "light mode", "colors", "color", "typography", "spacing",
        "animation", "animations", "transitions", "flexbox", "css grid",
        "grid layout", "user interface", "ui", "fonts", "visual design",
    ],
    ClaimDomain.SCRIPTING: [
        "error handling", "exception handling", "try-catch", "try catch",
        "error management", "error recovery", "error boundaries", "fault tolerance",
        "async", "await", "async/await", "asynchronous", "promises", "promise chains",
        "non-blocking", "performance", "caching", "lazy loading", "memoization",
        "load time", "bundle size", "types", "type definitions", "interfaces",
        "typescript", "javascript", "input validation", "null checks",
    ],
    ClaimDomain.SECURITY: [
        "security", "secure", "authentication", "authorization", "sanitization",
        "csrf protection", "csrf", "xss prevention", "xss", "sql injection",
        "injection", "vulnerability", "vulnerabilities", "secrets", "encryption",
        "password hashing", "rate limiting",
    ],
    ClaimDomain.TESTING: [
        "unit tests", "integration tests", "e2e tests", "tests", "test cases",
        "test coverage", "test suite", "testing", "automated tests", "specs",
        "mocks", "fixtures",
    ],
    ClaimDomain.ACCESSIBILITY: [
        "accessibility", "a11y", "screen reader", "aria", "aria labels",
        "semantic html", "keyboard navigation", "focus management", "alt text",
        "wcag",
    ],
    ClaimDomain.GENERIC: [
        "bug", "bugs", "issue", "issues", "problem", "code", "codebase",
        "function", "functions", "feature", "features", "component", "components",
        "module", "logic", "endpoint", "api", "build process", "webpack", "vite",
        "configuration", "dependencies",
    ],
}

# Markers an assistant uses when it is (over)confident
CONFIDENCE_MARKERS = [
    "✅", "✓", "✔", "done", "completed", "finished", "successfully",
    "all set", "good to go", "now works", "properly", "correctly",
]

# Hedging lowers extraction confidence
HEDGE_TERMS = ["might", "maybe", "probably", "seems", "appears", "perhaps", "possibly"]

# Terms that mark a sentence as technically specific
TECHNICAL_TERMS = [
    "implemented", "optimized", "refactored", "configured", "media queries",
    "try-catch", "typescript", "error handling", "responsive", "component",
    "function", "class",
]


def tokenize(text: str) -> List[str]:
    """Lowercase word tokens, keeping @media, try-catch and async/await intact."""
    return TOKEN_PATTERN.findall(text.lower())


def _compile_phrases(bank: Dict) -> List[Tuple[Tuple[str, ...], object, str]]:
    compiled = []
    for label, phrases in bank.items():
        for phrase in phrases:
            compiled.append((tuple(tokenize(phrase)), label, phrase))
    # Longest phrases first so "responsive design" wins over "responsive"
    compiled.sort(key=lambda item: -len(item[0]))
    return compiled


_ACTION_INDEX = _compile_phrases(ACTION_VERBS)
_DOMAIN_INDEX = _compile_phrases(DOMAIN_PHRASES)


def _find(tokens: Sequence[str], index) -> List[Tuple[int, object, str]]:
    """Find every non-overlapping phrase occurrence as (position, label, phrase)."""
    found = []
    claimed = set()
    for phrase_tokens, label, phrase in index:
        width = len(phrase_tokens)
        if width == 0:
            continue
        for start in range(len(tokens) - width + 1):
            if tuple(tokens[start:start + width]) != phrase_tokens:
                continue
            span = set(range(start, start + width))
            if span & claimed:
                continue
            claimed |= span
            found.append((start, label, phrase))
    found.sort(key=lambda item: item[0])
    return found


def find_actions(tokens: Sequence[str]) -> List[Tuple[int, ClaimAction, str]]:
    return _find(tokens, _ACTION_INDEX)


def find_domains(tokens: Sequence[str]) -> List[Tuple[int, ClaimDomain, str]]:
    return _find(tokens, _DOMAIN_INDEX)


def count_terms(text: str, terms: Sequence[str]) -> int:
    """Count how many of the given terms occur in text (case-insensitive)."""
    lowered = text.lower()
    count = 0
    for term in terms:
        term = term.lower()
        if term[:1].isalnum():
            if re.search(r"\b" + re.escape(term) + r"\b", lowered):
                count += 1
        elif term in lowered:
            count += 1
    return count
