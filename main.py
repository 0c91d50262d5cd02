"""
Main API module for the Slink analytics dashboard.

Responsibilities:
    - Expose the public, unauthenticated dashboard endpoint for shared links
    - Run every request through the admission pipeline (parse, resolve, plan,
      quota, rate limit) before asking the analytics engine
    - Render refusals as a uniform {code, message} JSON envelope

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - Link store, rate limiter and analytics engine are chosen from env by
      their factories, or injected directly (tests pass fakes).
    - The pipeline owns the decisions; this module only translates HTTP.

LLM Prompt Example:
    "Explain how to structure a FastAPI service with an application factory,
    injected dependencies, and a clean separation between API and policy logic."
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from slink_dashboard.analytics.base import BaseAnalyticsEngine
from slink_dashboard.analytics.factory import get_analytics_engine
from slink_dashboard.config import settings
from slink_dashboard.deadline import Deadline
from slink_dashboard.errors import Failure, internal_error_response
from slink_dashboard.links.resolver import LinkResolver
from slink_dashboard.pipeline.dashboard import DashboardPipeline
from slink_dashboard.policy.plans import PlanLookbackTable, load_plan_table
from slink_dashboard.ratelimit.factory import get_rate_limiter
from slink_dashboard.ratelimit.limiter import RateLimiter
from slink_dashboard.storage.base import BaseLinkStore
from slink_dashboard.storage.storage_factory import get_storage


def client_ip(request: Request) -> str:
    """
    Caller address used in the rate-limit key.

    Order: x-real-ip, first x-forwarded-for hop, socket peer, "unknown".
    """
    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded.strip():
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def request_deadline(request: Request, default_seconds: float) -> Deadline:
    """Deadline from settings, shortened by a valid X-Request-Timeout header."""
    raw = request.headers.get("x-request-timeout")
    try:
        seconds = float(raw) if raw else default_seconds
    except ValueError:
        seconds = default_seconds
    return Deadline(min(default_seconds, seconds) if seconds > 0 else default_seconds)


def create_app(
    storage: Optional[BaseLinkStore] = None,
    rate_limiter: Optional[RateLimiter] = None,
    engine: Optional[BaseAnalyticsEngine] = None,
    plan_table: Optional[PlanLookbackTable] = None,
    now: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        storage (BaseLinkStore, optional): Link store; defaults to get_storage().
        rate_limiter (RateLimiter, optional): Limiter; defaults to get_rate_limiter().
        engine (BaseAnalyticsEngine, optional): Analytics engine; defaults to get_analytics_engine().
        plan_table (PlanLookbackTable, optional): Tier limits; defaults to SLINK_PLAN_TABLE_PATH or built-in.
        now (Callable[[], datetime], optional): Clock for plan-window checks; defaults to UTC now.

    Returns:
        FastAPI: A fully configured application instance with isolated collaborators.
    """
    app = FastAPI(
        title="Slink Dashboard",
        description="Public analytics dashboard gate for shared links",
        docs_url="/docs",
    )
    log = logging.getLogger("slink")
    if not logging.getLogger().handlers:
        logging.basicConfig(level=settings.LOG_LEVEL)

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    storage = storage or get_storage()
    rate_limiter = rate_limiter or get_rate_limiter()
    engine = engine or get_analytics_engine()
    pipeline = DashboardPipeline(
        resolver=LinkResolver(storage, demo_workspace_id=settings.DEMO_WORKSPACE_ID),
        limiter=rate_limiter,
        engine=engine,
        plan_table=plan_table or load_plan_table(settings.PLAN_TABLE_PATH),
        request_timeout=settings.REQUEST_TIMEOUT,
        now=now,
    )
    app.state.pipeline = pipeline

    log.info(
        "Slink dashboard (%s): storage=%s rate_limiting=%s engine=%s",
        settings.ENV,
        type(storage).__name__,
        "on" if rate_limiter.enabled else "off",
        type(engine).__name__,
    )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        log.exception("Unhandled error on %s", request.url.path)
        return internal_error_response()

    # Health check
    @app.get("/health")
    def health():
        return {"status": "ok"}

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.get("/analytics/dashboard")
    def analytics_dashboard(request: Request) -> Response:
        """
        Aggregated analytics for a shared link's public dashboard.

        Query:
            groupBy, domain, key, interval | start/end, event, timezone,
            plus any analytics dimension (country, device, ...) passed through.

        Returns:
            200 with the engine's JSON, or the error envelope:
            400 bad_request / missing_identifier, 403 forbidden,
            429 rate_limit_exceeded, 502 upstream_failure, 504 timeout.
        """
        outcome = pipeline.run(
            dict(request.query_params),
            client_ip(request),
            deadline=request_deadline(request, settings.REQUEST_TIMEOUT),
        )
        if isinstance(outcome, Failure):
            return outcome.to_response()

        response = JSONResponse(outcome.data)
        if outcome.rate_limit.limit:
            response.headers["X-RateLimit-Limit"] = str(outcome.rate_limit.limit)
            response.headers["X-RateLimit-Remaining"] = str(outcome.rate_limit.remaining)
        return response

    return app


# `uvicorn main:app` and `from main import app` keep working.
app = create_app()
