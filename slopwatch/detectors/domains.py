"""
Domain profiles: which file changes plausibly belong to which claim domain.

Shared by the detectors (in-domain filtering) and the correlation engine
(relatedness of a new change to a pending claim).
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Tuple

from ..claims.models import ClaimDomain
from ..watching.events import FileChangeEvent
from ..watching.filters import is_supported_file

STYLE_EXTENSIONS = frozenset({".css", ".scss", ".sass", ".less", ".styl", ".stylus"})
SCRIPT_EXTENSIONS = frozenset({".js", ".ts", ".jsx", ".tsx", ".mjs", ".cjs", ".vue", ".svelte"})
MARKUP_EXTENSIONS = frozenset({".html", ".htm", ".jsx", ".tsx", ".vue", ".svelte"})
SERVER_EXTENSIONS = frozenset({".py", ".rb", ".go", ".rs", ".java", ".cs", ".php"})


@dataclass(frozen=True)
class DomainProfile:
    """
    How to recognize in-domain changes.

    A change is in-domain when its extension is listed, its path contains a
    path marker, or its diff contains a diff marker.
    """
    domain: ClaimDomain
    extensions: FrozenSet[str] = frozenset()
    diff_markers: Tuple[str, ...] = ()
    path_markers: Tuple[str, ...] = ()
    absence_hint: str = "relevant"
    any_supported_file: bool = False

    def matches(self, change: FileChangeEvent) -> bool:
        if self.any_supported_file:
            return is_supported_file(change.path)
        if change.extension in self.extensions:
            return True
        path = change.path.lower()
        if any(marker in path for marker in self.path_markers):
            return True
        return any(marker in change.diff_summary for marker in self.diff_markers)


DOMAIN_PROFILES: Dict[ClaimDomain, DomainProfile] = {
    ClaimDomain.STYLING: DomainProfile(
        domain=ClaimDomain.STYLING,
        extensions=STYLE_EXTENSIONS,
        diff_markers=("style", "className", "styled-components"),
        absence_hint="style",
    ),
    ClaimDomain.SCRIPTING: DomainProfile(
        domain=ClaimDomain.SCRIPTING,
        extensions=SCRIPT_EXTENSIONS,
        absence_hint="script",
    ),
    ClaimDomain.SECURITY: DomainProfile(
        domain=ClaimDomain.SECURITY,
        extensions=SCRIPT_EXTENSIONS | SERVER_EXTENSIONS | frozenset({".env"}),
        diff_markers=("csrf", "sanitize", "escape", "auth", "token", "password"),
        absence_hint="security-relevant source",
    ),
    ClaimDomain.TESTING: DomainProfile(
        domain=ClaimDomain.TESTING,
        path_markers=(".test.", ".spec.", "test_", "_test.", "tests/", "__tests__/", "spec/"),
        diff_markers=("describe(", "expect(", "assert", "def test_"),
        absence_hint="test",
    ),
    ClaimDomain.ACCESSIBILITY: DomainProfile(
        domain=ClaimDomain.ACCESSIBILITY,
        extensions=MARKUP_EXTENSIONS | STYLE_EXTENSIONS,
        diff_markers=("aria-", "alt=", "role=", "tabindex"),
        absence_hint="markup or accessibility",
    ),
    ClaimDomain.GENERIC: DomainProfile(
        domain=ClaimDomain.GENERIC,
        absence_hint="source file",
        any_supported_file=True,
    ),
}


def profile_for(domain: ClaimDomain) -> DomainProfile:
    return DOMAIN_PROFILES[ClaimDomain(domain)]
