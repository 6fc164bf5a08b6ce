"""
Testing detector.
"""

from ..claims.models import ClaimDomain
from .base import Detector, Signature


class TestingDetector(Detector):
    """Verifies claims that tests, assertions or mocks were written."""

    # Keep pytest from collecting this class
    __test__ = False

    name = "testing"
    domain = ClaimDomain.TESTING

    subcategories = {
        "mocks": ("mock", "stub", "spy", "fake"),
        "fixtures": ("fixture", "setup", "teardown"),
        "tests": ("test", "spec", "coverage", "assert"),
    }

    signatures = (
        Signature("test_functions", r"\b(?:describe|it|test)\s*\(\s*['\"`]|\bdef\s+test_\w+|\bfunc\s+Test\w+", "tests", 0.8,
                  "Test cases"),
        Signature("assertions", r"\bexpect\s*\(|\bassert\w*\b|\bshould\.", "tests", 0.7,
                  "Assertions"),
        Signature("mocks", r"\bjest\.(?:fn|mock|spyOn)\b|\bsinon\.\w+|\b(?:Magic)?Mock\s*\(|\bpatch(?:\.object)?\s*\(|\bmonkeypatch\b|\bvi\.(?:fn|mock)\b", "mocks", 0.8,
                  "Mocks and spies"),
        Signature("fixtures", r"@pytest\.fixture|\b(?:beforeEach|afterEach|beforeAll|afterAll|setUp|tearDown)\s*\(", "fixtures", 0.7,
                  "Fixtures and setup hooks"),
    )

    def signatures_for(self, subcategory):
        # Mock and fixture claims still count test cases as evidence
        signatures = super().signatures_for(subcategory)
        if subcategory in ("mocks", "fixtures"):
            signatures += [s for s in self.signatures if s.category == "tests"]
        return signatures
