"""
Pytest fixtures and configuration for the SlopWatch test suite.
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Ensure slopwatch and api are importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp(prefix="slopwatch_test_"))
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def manual_clock():
    """A clock that only moves when the test advances it."""
    from slopwatch.engine.clock import ManualClock
    return ManualClock(1_700_000_000.0)


@pytest.fixture
def make_claim(manual_clock):
    """Factory for claims stamped with the manual clock."""
    from slopwatch.claims.models import Claim, ClaimAction, ClaimDomain

    def _make(
        text: str = "Added responsive design with media queries",
        domain: ClaimDomain = ClaimDomain.STYLING,
        action: ClaimAction = ClaimAction.ADD,
        created_at: float = None,
        **kwargs,
    ):
        return Claim(
            text=text,
            domain=domain,
            action=action,
            target=kwargs.pop("target", ""),
            confidence=kwargs.pop("confidence", 0.9),
            created_at=manual_clock.now() if created_at is None else created_at,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_change(manual_clock):
    """Factory for file changes; `added` lines become '+ ' diff entries."""
    from slopwatch.watching.events import ChangeKind, FileChangeEvent

    def _make(
        path: str = "src/styles.css",
        added=(),
        removed=(),
        kind: ChangeKind = ChangeKind.MODIFY,
        occurred_at: float = None,
    ):
        entries = [f"+ {line}" for line in added] + [f"- {line}" for line in removed]
        return FileChangeEvent(
            path=path,
            kind=kind,
            diff_summary="\n".join(entries),
            lines_added=len(added),
            lines_removed=len(removed),
            occurred_at=manual_clock.now() if occurred_at is None else occurred_at,
        )
    return _make


@pytest.fixture
def correlation_config():
    """Default correlation settings with the real 30s window."""
    from slopwatch.core.config_manager import CorrelationConfig
    return CorrelationConfig()


@pytest.fixture
def engine(correlation_config, manual_clock):
    """A correlation engine driven by the manual clock."""
    from slopwatch.engine.correlation import CorrelationEngine

    engine = CorrelationEngine(correlation_config, clock=manual_clock)
    yield engine
    engine.close()


@pytest.fixture
def service(manual_clock):
    """An unstarted service installed as the process-wide instance."""
    from slopwatch.core.config_manager import SlopWatchConfig
    from slopwatch.service import SlopWatchService, set_service

    service = SlopWatchService(config=SlopWatchConfig(), clock=manual_clock)
    set_service(service)
    yield service
    service.engine.close()
    set_service(None)


# FastAPI test client fixtures
@pytest.fixture
def test_app(service):
    """The FastAPI application bound to the test service."""
    from api.server import app
    return app


@pytest.fixture
async def async_client(test_app):
    """Create an async HTTP client for testing FastAPI endpoints."""
    from httpx import ASGITransport, AsyncClient

    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
