"""
Tests for the CorrelationEngine state machine.

All timing is driven by a ManualClock; run_due() fires whatever is due.
With the default configuration the window is 30s, the initial delay 10s,
the settle delay 2s and the sweep runs every 60s.
"""

import time

import pytest

from slopwatch.claims.models import ClaimDomain, ClaimState
from slopwatch.scoring.verdicts import VerdictStatus


MEDIA_QUERY = ("@media (max-width: 768px) {", "  .nav { display: none; }", "}")


class RecordingForwarder:
    """Collects everything the engine forwards."""

    name = "recording"

    def __init__(self):
        self.claims = []
        self.verdicts = []

    def send_claim(self, claim):
        self.claims.append(claim)

    def send_verdict(self, verdict):
        self.verdicts.append(verdict)

    def close(self, timeout=5.0):
        pass


def _slow_detector_class(delay_s):
    from slopwatch.detectors.base import Detector

    class SlowDetector(Detector):
        name = "slow"
        domain = ClaimDomain.STYLING

        def analyze(self, claim, changes):
            time.sleep(delay_s)
            return super().analyze(claim, changes)

    return SlowDetector


class BrokenDetector:
    name = "broken"

    def can_handle(self, claim):
        return True

    def analyze(self, claim, changes):
        raise RuntimeError("detector exploded")


def _exploding_styling_detector():
    from slopwatch.detectors.styling import StylingDetector

    class ExplodingStylingDetector(StylingDetector):
        """Raises while selecting for claims that mention 'boom'."""

        def can_handle(self, claim):
            if "boom" in claim.text:
                raise RuntimeError("can_handle exploded")
            return super().can_handle(claim)

    return ExplodingStylingDetector()


class TestClaimLifecycle:
    """Tests for claim states and scheduling."""

    def test_claim_is_scheduled_on_arrival(self, engine, make_claim, manual_clock):
        claim = make_claim()

        assert engine.submit_claim(claim) is True
        assert engine.get_claim_state(claim.id) == ClaimState.SCHEDULED
        assert engine.pending_count == 1

    def test_duplicate_claim_is_ignored(self, engine, make_claim):
        claim = make_claim()

        assert engine.submit_claim(claim) is True
        assert engine.submit_claim(claim) is False
        assert engine.pending_count == 1

    def test_initial_delay_without_changes(self, engine, make_claim, manual_clock):
        """With no activity the claim is evaluated after window / 3 and judged a lie."""
        claim = make_claim()
        engine.submit_claim(claim)

        manual_clock.advance(9)
        assert engine.run_due() == []

        manual_clock.advance(1)
        verdicts = engine.run_due()

        assert len(verdicts) == 1
        assert verdicts[0].status == VerdictStatus.LIE
        assert engine.get_claim_state(claim.id) == ClaimState.RESOLVED

    def test_related_change_rearms_to_settle_delay(self, engine, make_claim, make_change, manual_clock):
        claim = make_claim()
        engine.submit_claim(claim)

        manual_clock.advance(1)
        assert engine.handle_change(make_change("src/styles.css", added=MEDIA_QUERY)) == 1

        manual_clock.advance(1.5)
        assert engine.run_due() == []

        manual_clock.advance(1.0)
        verdicts = engine.run_due()

        assert len(verdicts) == 1
        assert verdicts[0].status == VerdictStatus.VERIFIED
        assert verdicts[0].confidence == pytest.approx(0.9)
        assert verdicts[0].resolved_at == manual_clock.now()

    def test_unrelated_change_does_not_rearm(self, engine, make_claim, make_change, manual_clock):
        claim = make_claim()
        engine.submit_claim(claim)
        deadline = engine.next_deadline()

        manual_clock.advance(1)

        assert engine.handle_change(make_change("src/app.js", added=("run();",))) == 0
        assert engine.next_deadline() == deadline

    def test_rearm_never_passes_window_end(self, engine, make_claim, make_change, manual_clock):
        claim = make_claim()
        engine.submit_claim(claim)

        manual_clock.advance(29)
        engine.handle_change(make_change("src/styles.css", added=MEDIA_QUERY))

        assert engine.next_deadline() == pytest.approx(claim.created_at + 30)

    def test_exactly_one_verdict_per_claim(self, engine, make_claim, make_change, manual_clock):
        received = []
        engine.add_verdict_listener(received.append)
        claim = make_claim()
        engine.submit_claim(claim)
        engine.handle_change(make_change("src/styles.css", added=MEDIA_QUERY))

        manual_clock.advance(5)
        engine.run_due()

        assert engine.analyze_claim(claim.id) is None
        assert engine.analyze_all_pending() == []
        manual_clock.advance(60)
        engine.run_due()

        assert len(received) == 1
        assert len(engine.store) == 1
        assert engine.get_verdict_for_claim(claim.id) == received[0]
        assert engine.get_verdict(received[0].id) is received[0]

    def test_one_change_resolves_two_claims_once_each(self, engine, make_claim, make_change, manual_clock):
        received = []
        engine.add_verdict_listener(received.append)
        first = make_claim()
        engine.submit_claim(first)
        manual_clock.advance(1)
        second = make_claim()
        engine.submit_claim(second)

        manual_clock.advance(1)
        assert engine.handle_change(make_change("src/styles.css", added=MEDIA_QUERY)) == 2

        manual_clock.advance(3)
        verdicts = engine.run_due()

        assert {v.claim_id for v in verdicts} == {first.id, second.id}
        assert all(v.status == VerdictStatus.VERIFIED for v in verdicts)

        manual_clock.advance(60)
        engine.run_due()
        engine.analyze_all_pending()

        assert sorted(v.claim_id for v in received) == sorted([first.id, second.id])
        assert len(engine.store) == 2


class TestCorrelationWindow:
    """Tests for which buffered changes reach the detector."""

    def test_change_shortly_before_claim_counts(self, engine, make_claim, make_change, manual_clock):
        engine.handle_change(make_change("src/styles.css", added=MEDIA_QUERY))
        manual_clock.advance(3)
        claim = make_claim()
        engine.submit_claim(claim)

        verdict = engine.analyze_claim(claim.id)

        assert verdict.status == VerdictStatus.VERIFIED

    def test_change_long_before_claim_is_ignored(self, engine, make_claim, make_change, manual_clock):
        engine.handle_change(make_change("src/styles.css", added=MEDIA_QUERY))
        manual_clock.advance(10)
        claim = make_claim()
        engine.submit_claim(claim)

        verdict = engine.analyze_claim(claim.id)

        assert verdict.status == VerdictStatus.LIE

    def test_change_after_window_is_ignored(self, engine, make_claim, make_change, manual_clock):
        claim = make_claim()
        engine.submit_claim(claim)
        late = make_change(
            "src/styles.css", added=MEDIA_QUERY, occurred_at=claim.created_at + 31
        )
        engine._buffer.append(late)

        assert engine.correlated_changes(claim) == []

    def test_buffer_prunes_old_changes(self, engine, make_change, manual_clock):
        engine.handle_change(make_change("a.css", added=("a { color: red; }",)))
        manual_clock.advance(36)
        recent = make_change("b.css", added=("b { color: blue; }",))
        engine.handle_change(recent)

        assert engine.buffered_changes == [recent]

    def test_buffer_is_bounded(self, manual_clock, make_change):
        from slopwatch.core.config_manager import CorrelationConfig
        from slopwatch.engine import CorrelationEngine

        engine = CorrelationEngine(CorrelationConfig(max_buffered_changes=2), clock=manual_clock)
        for name in ("a.css", "b.css", "c.css"):
            engine.handle_change(make_change(name, added=("x { y: z; }",)))

        assert [c.path for c in engine.buffered_changes] == ["b.css", "c.css"]
        engine.close()


class TestManualAnalysisAndExpiry:
    """Tests for auto_analyze=False and the sweep."""

    @pytest.fixture
    def manual_engine(self, manual_clock):
        from slopwatch.core.config_manager import CorrelationConfig
        from slopwatch.engine import CorrelationEngine

        engine = CorrelationEngine(CorrelationConfig(auto_analyze=False), clock=manual_clock)
        yield engine
        engine.close()

    def test_claims_wait_for_manual_analysis(self, manual_engine, make_claim, make_change, manual_clock):
        claim = make_claim()
        manual_engine.submit_claim(claim)

        assert manual_engine.get_claim_state(claim.id) == ClaimState.PENDING
        assert manual_engine.handle_change(make_change("a.css", added=MEDIA_QUERY)) == 0

        manual_clock.advance(20)
        assert manual_engine.run_due() == []

        verdicts = manual_engine.analyze_all_pending()

        assert len(verdicts) == 1
        assert verdicts[0].status == VerdictStatus.VERIFIED

    def test_stale_claim_expires_on_sweep(self, manual_engine, make_claim, manual_clock):
        claim = make_claim()
        manual_engine.submit_claim(claim)

        manual_clock.advance(61)
        assert manual_engine.run_due() == []

        assert manual_engine.get_claim_state(claim.id) == ClaimState.EXPIRED
        assert manual_engine.get_verdict_for_claim(claim.id) is None
        assert manual_engine.store.expiration_for(claim.id) is not None
        assert manual_engine.analyze_claim(claim.id) is None

        stats = manual_engine.get_stats()
        assert stats["expiredClaims"] == 1
        assert stats["totalAnalyses"] == 0
        assert stats["slopScore"] == 0.0

    def test_sweep_keeps_young_claims(self, manual_engine, make_claim, manual_clock):
        claim = make_claim()
        manual_engine.submit_claim(claim)
        manual_clock.advance(59)

        assert manual_engine.sweep() == []
        assert manual_engine.get_claim_state(claim.id) == ClaimState.PENDING

    def test_sweep_purges_past_retention(self, manual_engine, make_claim, manual_clock):
        cutoffs = []
        manual_engine.add_cleanup_hook(cutoffs.append)
        claim = make_claim()
        manual_engine.submit_claim(claim)
        manual_engine.analyze_claim(claim.id)

        manual_clock.advance(25 * 3600)
        manual_engine.sweep()

        assert len(manual_engine.store) == 0
        assert manual_engine.get_claim_state(claim.id) is None
        assert cutoffs == [manual_clock.now() - 24 * 3600]


class TestDetectorIsolation:
    """Detector timeouts and failures become unknown verdicts."""

    def test_timeout_becomes_unknown(self, manual_clock, make_claim):
        from slopwatch.core.config_manager import CorrelationConfig
        from slopwatch.detectors import DetectorRegistry
        from slopwatch.engine import CorrelationEngine

        registry = DetectorRegistry([_slow_detector_class(0.5)()])
        engine = CorrelationEngine(
            CorrelationConfig(detector_timeout_ms=50), registry=registry, clock=manual_clock
        )
        claim = make_claim()
        engine.submit_claim(claim)

        verdict = engine.analyze_claim(claim.id)

        assert verdict.status == VerdictStatus.UNKNOWN
        assert verdict.detector_name == "slow"
        assert "timed out" in verdict.reason
        assert engine.get_claim_state(claim.id) == ClaimState.RESOLVED
        engine.close()

    def test_failure_becomes_unknown(self, manual_clock, make_claim):
        from slopwatch.detectors import DetectorRegistry
        from slopwatch.engine import CorrelationEngine

        engine = CorrelationEngine(registry=DetectorRegistry([BrokenDetector()]), clock=manual_clock)
        claim = make_claim()
        engine.submit_claim(claim)

        verdict = engine.analyze_claim(claim.id)

        assert verdict.status == VerdictStatus.UNKNOWN
        assert verdict.confidence == 0.0
        assert "detector exploded" in verdict.reason
        engine.close()

    def test_selection_failure_does_not_block_other_claims(self, manual_clock, make_claim):
        from slopwatch.detectors import DetectorRegistry
        from slopwatch.engine import CorrelationEngine

        registry = DetectorRegistry([_exploding_styling_detector()])
        engine = CorrelationEngine(registry=registry, clock=manual_clock)
        bad = make_claim("Added boom styles with media queries")
        good = make_claim()
        engine.submit_claim(bad)
        engine.submit_claim(good)

        manual_clock.advance(11)
        verdicts = engine.run_due()

        assert len(verdicts) == 2
        bad_verdict = engine.get_verdict_for_claim(bad.id)
        assert bad_verdict.status == VerdictStatus.UNKNOWN
        assert "can_handle exploded" in bad_verdict.reason
        assert engine.get_verdict_for_claim(good.id).status == VerdictStatus.LIE
        assert engine.get_claim_state(bad.id) == ClaimState.RESOLVED
        assert engine.get_claim_state(good.id) == ClaimState.RESOLVED
        engine.close()

    def test_selection_failure_during_manual_analysis(self, manual_clock, make_claim):
        from slopwatch.core.config_manager import CorrelationConfig
        from slopwatch.detectors import DetectorRegistry
        from slopwatch.engine import CorrelationEngine

        engine = CorrelationEngine(
            CorrelationConfig(auto_analyze=False),
            registry=DetectorRegistry([_exploding_styling_detector()]),
            clock=manual_clock,
        )
        bad = make_claim("Added boom styles with media queries")
        good = make_claim()
        engine.submit_claim(bad)
        engine.submit_claim(good)

        verdicts = engine.analyze_all_pending()

        assert {v.claim_id for v in verdicts} == {bad.id, good.id}
        assert engine.pending_count == 0
        engine.close()

    def test_failing_listener_does_not_lose_verdict(self, engine, make_claim):
        def bad_listener(verdict):
            raise RuntimeError("listener down")

        engine.add_verdict_listener(bad_listener)
        claim = make_claim()
        engine.submit_claim(claim)

        verdict = engine.analyze_claim(claim.id)

        assert engine.get_verdict_for_claim(claim.id) == verdict


class TestForwardingAndStats:
    """Tests for forwarding and the statistics view."""

    def test_claims_and_verdicts_are_forwarded(self, manual_clock, make_claim):
        from slopwatch.engine import CorrelationEngine

        forwarder = RecordingForwarder()
        engine = CorrelationEngine(clock=manual_clock, forwarder=forwarder)
        claim = make_claim()
        engine.submit_claim(claim)
        verdict = engine.analyze_claim(claim.id)

        assert forwarder.claims == [claim]
        assert forwarder.verdicts == [verdict]
        engine.close()

    def test_stats(self, engine, make_claim, make_change, manual_clock):
        lie = make_claim()
        engine.submit_claim(lie)
        engine.analyze_claim(lie.id)

        engine.handle_change(make_change("src/styles.css", added=MEDIA_QUERY))
        good = make_claim()
        engine.submit_claim(good)
        engine.analyze_claim(good.id)

        engine.submit_claim(make_claim())

        stats = engine.get_stats()

        assert stats["totalClaims"] == 3
        assert stats["totalAnalyses"] == 2
        assert stats["pendingClaims"] == 1
        assert stats["slopScore"] == pytest.approx(0.5)
        assert stats["statusBreakdown"] == {"verified": 1, "lie": 1, "partial": 0, "unknown": 0}
        assert stats["detectorBreakdown"] == {"styling": 2}
        assert stats["recentFileChanges"] == 1

    def test_recent_verdicts_window(self, engine, make_claim, manual_clock):
        old = make_claim()
        engine.submit_claim(old)
        engine.analyze_claim(old.id)

        manual_clock.advance(400)
        new = make_claim()
        engine.submit_claim(new)
        engine.analyze_claim(new.id)

        assert [v.claim_id for v in engine.get_recent_verdicts()] == [new.id]
        assert [v.claim_id for v in engine.get_recent_verdicts(since=0)] == [new.id, old.id]

    def test_pending_claims_listing(self, engine, make_claim):
        first = make_claim(domain=ClaimDomain.TESTING)
        engine.submit_claim(first)

        assert engine.get_pending_claims() == [first]


class TestCloseAndReopen:
    """close() releases resources; open() makes the engine usable again."""

    def test_reopen_rearms_sweep_and_pending_claims(self, engine, make_claim, manual_clock):
        claim = make_claim()
        engine.submit_claim(claim)

        engine.close()
        assert engine.next_deadline() is None

        engine.open()
        assert engine.next_deadline() == pytest.approx(claim.created_at + 10)

        manual_clock.advance(10)
        verdicts = engine.run_due()

        assert [v.claim_id for v in verdicts] == [claim.id]
        assert verdicts[0].status == VerdictStatus.LIE

    def test_closed_engine_still_analyzes(self, engine, make_claim):
        engine.close()
        engine.open()
        claim = make_claim()
        engine.submit_claim(claim)

        verdict = engine.analyze_claim(claim.id)

        assert verdict.status == VerdictStatus.LIE
        assert engine.get_claim_state(claim.id) == ClaimState.RESOLVED

    def test_sweep_runs_after_reopen(self, manual_clock, make_claim):
        from slopwatch.core.config_manager import CorrelationConfig
        from slopwatch.engine import CorrelationEngine

        engine = CorrelationEngine(CorrelationConfig(auto_analyze=False), clock=manual_clock)
        claim = make_claim()
        engine.submit_claim(claim)
        engine.close()
        engine.open()

        manual_clock.advance(61)
        engine.run_due()

        assert engine.get_claim_state(claim.id) == ClaimState.EXPIRED
        assert engine.store.expiration_for(claim.id) is not None
        engine.close()
