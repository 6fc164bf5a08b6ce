"""
Detector registry.

Holds the enabled detectors in configured order and dispatches each claim
to the first one that can handle it.
"""

import logging
from typing import Dict, Iterable, List, Optional, Type

from ..claims.models import Claim
from ..core.config_manager import DEFAULT_DETECTORS, DetectionConfig
from ..core.errors import ConfigurationError
from ..scoring.verdicts import Verdict, VerdictStatus
from ..watching.events import FileChangeEvent
from .accessibility import AccessibilityDetector
from .base import Detector
from .generic import GenericDetector
from .scripting import ScriptingDetector
from .security import SecurityDetector
from .styling import StylingDetector
from .testing import TestingDetector

logger = logging.getLogger(__name__)


DETECTOR_CLASSES: Dict[str, Type[Detector]] = {
    "styling": StylingDetector,
    "scripting": ScriptingDetector,
    "security": SecurityDetector,
    "testing": TestingDetector,
    "accessibility": AccessibilityDetector,
    "generic": GenericDetector,
}


class DetectorRegistry:
    """
    Ordered set of detectors.

    Usage:
        registry = DetectorRegistry.from_names(["styling", "generic"])
        verdict = registry.analyze(claim, changes)
    """

    def __init__(self, detectors: Optional[Iterable[Detector]] = None):
        self._detectors: List[Detector] = list(detectors or [])

    @classmethod
    def from_names(
        cls,
        names: Optional[Iterable[str]] = None,
        config: Optional[DetectionConfig] = None,
    ) -> "DetectorRegistry":
        names = list(DEFAULT_DETECTORS if names is None else names)
        detectors = []
        for name in names:
            detector_cls = DETECTOR_CLASSES.get(name)
            if detector_cls is None:
                raise ConfigurationError(f"Unknown detector: {name}")
            detectors.append(detector_cls(config))
        return cls(detectors)

    def register(self, detector: Detector) -> None:
        """Append a detector; it is consulted after the existing ones."""
        self._detectors.append(detector)

    @property
    def names(self) -> List[str]:
        return [d.name for d in self._detectors]

    def select(self, claim: Claim) -> Optional[Detector]:
        for detector in self._detectors:
            if detector.can_handle(claim):
                return detector
        return None

    def analyze(self, claim: Claim, changes: Iterable[FileChangeEvent]) -> Verdict:
        detector = self.select(claim)
        if detector is None:
            logger.debug(f"[DETECTOR] No detector for {claim.domain.value} claim {claim.id}")
            return Verdict(
                claim_id=claim.id,
                status=VerdictStatus.UNKNOWN,
                confidence=0.0,
                reason="no suitable detector",
            )
        return detector.analyze(claim, changes)
