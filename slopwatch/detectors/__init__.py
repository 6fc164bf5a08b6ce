"""
Domain detectors for SlopWatch.

Usage:
    from slopwatch.detectors import DetectorRegistry

    registry = DetectorRegistry.from_names(["styling", "scripting", "generic"])
    verdict = registry.analyze(claim, changes)
"""

from .accessibility import AccessibilityDetector
from .base import Detector, Signature
from .domains import DOMAIN_PROFILES, DomainProfile, profile_for
from .generic import GenericDetector
from .registry import DETECTOR_CLASSES, DetectorRegistry
from .scripting import ScriptingDetector
from .security import SecurityDetector
from .styling import StylingDetector
from .testing import TestingDetector

__all__ = [
    "Detector",
    "Signature",
    "DetectorRegistry",
    "DETECTOR_CLASSES",
    "DOMAIN_PROFILES",
    "DomainProfile",
    "profile_for",
    "StylingDetector",
    "ScriptingDetector",
    "SecurityDetector",
    "TestingDetector",
    "AccessibilityDetector",
    "GenericDetector",
]
