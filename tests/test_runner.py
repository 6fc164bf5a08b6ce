"""
Tests for EngineRunner, the engine's single execution context.

These use the real clock with a short correlation window.
"""

import threading
import time

import pytest

from slopwatch.scoring.verdicts import VerdictStatus


@pytest.fixture
def fast_engine():
    from slopwatch.core.config_manager import CorrelationConfig
    from slopwatch.engine import CorrelationEngine

    config = CorrelationConfig(analysis_window_ms=300, settle_delay_ms=50)
    return CorrelationEngine(config)


@pytest.fixture
def runner(fast_engine):
    from slopwatch.engine import EngineRunner

    runner = EngineRunner(fast_engine)
    yield runner
    runner.stop()
    fast_engine.close()


def _claim(**kwargs):
    from slopwatch.claims.models import Claim, ClaimDomain

    return Claim(
        text="Added responsive design with media queries",
        domain=kwargs.pop("domain", ClaimDomain.STYLING),
        **kwargs,
    )


def _css_change():
    from slopwatch.watching.events import FileChangeEvent

    return FileChangeEvent(
        path="src/styles.css",
        diff_summary="+ @media (max-width: 768px) {\n+ .nav { display: none; }\n+ }",
        lines_added=3,
    )


class TestEngineRunner:
    """Tests for EngineRunner."""

    def test_submit_requires_running(self, runner):
        from slopwatch.core.errors import EngineNotRunningError

        with pytest.raises(EngineNotRunningError):
            runner.submit_claim(_claim())

    def test_claim_and_change_produce_verdict(self, runner, fast_engine):
        done = threading.Event()
        received = []

        def on_verdict(verdict):
            received.append(verdict)
            done.set()

        fast_engine.add_verdict_listener(on_verdict)
        runner.start()

        runner.submit_claim(_claim())
        runner.submit_change(_css_change())

        assert done.wait(timeout=5.0)
        assert received[0].status == VerdictStatus.VERIFIED
        assert runner.processed >= 2

    def test_claim_without_changes_resolves_as_lie(self, runner, fast_engine):
        done = threading.Event()
        received = []

        def on_verdict(verdict):
            received.append(verdict)
            done.set()

        fast_engine.add_verdict_listener(on_verdict)
        runner.start()
        runner.submit_claim(_claim())

        assert done.wait(timeout=5.0)
        assert received[0].status == VerdictStatus.LIE

    def test_request_analysis(self):
        from slopwatch.core.config_manager import CorrelationConfig
        from slopwatch.engine import CorrelationEngine, EngineRunner

        engine = CorrelationEngine(CorrelationConfig(auto_analyze=False))
        runner = EngineRunner(engine)
        done = threading.Event()
        engine.add_verdict_listener(lambda verdict: done.set())
        runner.start()

        claim = _claim()
        runner.submit_claim(claim)
        time.sleep(0.2)
        assert engine.get_verdict_for_claim(claim.id) is None

        runner.request_analysis()

        assert done.wait(timeout=5.0)
        assert engine.get_verdict_for_claim(claim.id) is not None
        runner.stop()
        engine.close()

    def test_stop_is_idempotent(self, runner):
        runner.start()
        runner.stop()
        runner.stop()

        assert not runner.running

    def test_stop_resolves_pending_claims(self):
        from slopwatch.core.config_manager import CorrelationConfig
        from slopwatch.engine import CorrelationEngine, EngineRunner

        engine = CorrelationEngine(CorrelationConfig())
        runner = EngineRunner(engine)
        runner.start()
        claim = _claim()
        runner.submit_claim(claim)

        runner.stop()

        assert engine.pending_count == 0
        assert engine.get_verdict_for_claim(claim.id).status == VerdictStatus.LIE
        engine.close()

    def test_runner_can_restart(self, runner, fast_engine):
        done = threading.Event()
        fast_engine.add_verdict_listener(lambda verdict: done.set())
        runner.start()
        runner.stop()

        runner.start()
        runner.submit_claim(_claim())

        assert done.wait(timeout=5.0)
        assert runner.running
