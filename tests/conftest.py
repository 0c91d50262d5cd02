"""
Global pytest fixtures for the Slink dashboard test suite.

Responsibilities:
    - Provide a seeded in-memory link store and analytics engine
    - Provide a fake shared rate-limit store driven by a controllable clock
    - Provide a DashboardPipeline and a FastAPI TestClient wired to those fakes

Why an app factory?
    Using `create_app()` with injected collaborators gives each test fresh
    state and keeps Redis/PostgreSQL out of the default run.

LLM Prompt Example:
    "Show how to structure pytest fixtures to isolate service state and
    support both integration and unit tests without external dependencies."
"""

import os

# main.py builds a module-level app on import; keep it off Redis.
os.environ.setdefault("SLINK_ENV", "development")

from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from main import create_app
from slink_dashboard.analytics.analytics import Analytics
from slink_dashboard.links.resolver import LinkResolver
from slink_dashboard.pipeline.dashboard import DashboardPipeline
from slink_dashboard.ratelimit.base import BaseRateLimitStore, RateLimitDecision
from slink_dashboard.ratelimit.limiter import RateLimiter
from slink_dashboard.storage.base import LinkRecord, ProjectRecord
from slink_dashboard.storage.storage import Storage

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)
DEMO_WORKSPACE = "ws_test_demo"


class FakeClock:
    """Manually advanced clock (seconds)."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRateLimitStore(BaseRateLimitStore):
    """Fixed-window counters in a dict; stands in for Redis."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.windows: Dict[str, Tuple[float, int]] = {}
        self.calls = []

    def increment_and_check(
        self, key: str, ceiling: int, window_seconds: int, timeout: Optional[float] = None
    ) -> RateLimitDecision:
        self.calls.append((key, ceiling, window_seconds))
        now = self.clock()
        started, count = self.windows.get(key, (now, 0))
        if now >= started + window_seconds:
            started, count = now, 0
        count += 1
        self.windows[key] = (started, count)
        return RateLimitDecision(allowed=count <= ceiling, count=count, limit=ceiling)


def _link(key: str, plan: str = "free", usage: int = 0, usage_limit: int = 1000,
          dashboard: bool = True, conversion: bool = False) -> LinkRecord:
    return LinkRecord(
        id=f"link_{key}",
        domain="example.com",
        key=key,
        dashboard=dashboard,
        project_id=f"ws_{key}",
        project=ProjectRecord(plan=plan, usage=usage, usage_limit=usage_limit, conversion_enabled=conversion),
    )


@pytest.fixture
def link_store() -> Storage:
    """
    In-memory store seeded with one link per interesting policy state.

        example.com/open        free, within quota, dashboard on
        example.com/abc         dashboard off
        example.com/pro         pro plan
        example.com/over        free, usage above limit
        example.com/biz         business, conversion enabled
        example.com/biz-noconv  business, conversion disabled
        example.com/orphan      dashboard on, no project
    """
    store = Storage()
    store.save_link(_link("open"))
    store.save_link(_link("abc", dashboard=False))
    store.save_link(_link("pro", plan="pro"))
    store.save_link(_link("over", usage=1500, usage_limit=1000))
    store.save_link(_link("biz", plan="business", conversion=True))
    store.save_link(_link("biz-noconv", plan="business"))
    store.save_link(LinkRecord(id="link_orphan", domain="example.com", key="orphan", dashboard=True))
    store.lookups = 0
    return store


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_store(clock: FakeClock) -> FakeRateLimitStore:
    return FakeRateLimitStore(clock)


@pytest.fixture
def limiter(rate_store: FakeRateLimitStore) -> RateLimiter:
    """Production-mode limiter over the fake store."""
    return RateLimiter(store=rate_store, enabled=True)


@pytest.fixture
def engine() -> Analytics:
    engine = Analytics(clock=lambda: NOW.timestamp())
    engine.log_click("link_open", timestamp=NOW.timestamp() - 60, country="US", device="Desktop")
    engine.log_click("link_open", timestamp=NOW.timestamp() - 120, country="DE", device="Mobile")
    engine.log_click("link_open", timestamp=NOW.timestamp() - 180, country="US", device="Mobile")
    engine.log_click("link_demo_try", timestamp=NOW.timestamp() - 30, country="FR")
    return engine


@pytest.fixture
def pipeline(link_store, limiter, engine) -> DashboardPipeline:
    return DashboardPipeline(
        resolver=LinkResolver(link_store, demo_workspace_id=DEMO_WORKSPACE),
        limiter=limiter,
        engine=engine,
        now=lambda: NOW,
    )


@pytest.fixture
def client(link_store, limiter, engine) -> TestClient:
    """
    Fresh TestClient over an app wired to the fakes.

    The app's pipeline clock is pinned to NOW so date-range checks are stable.
    """
    app = create_app(storage=link_store, rate_limiter=limiter, engine=engine, now=lambda: NOW)
    return TestClient(app, raise_server_exceptions=False)
