"""
DashboardPipeline: admission control for the public analytics dashboard.

Responsibilities:
    - Run the gate stages in a fixed order:
        parse -> resolve -> check_plan -> check_quota -> rate_limit -> dispatch
    - Stop at the first stage that returns a Failure; later stages never run
    - Forward admitted queries to the analytics engine and return its result verbatim

Design notes:
    - Every stage takes the accumulated DashboardContext and returns either an
      enriched copy or a Failure. Nothing is raised for expected refusals.
    - Demo identities skip check_plan and check_quota but are still rate limited.
    - Plan is checked before quota so a request breaking both reports the plan.
    - Collaborators (store, limiter, engine) are injected; no module-level singletons.

LLM Prompt Example:
    "Show how to compose independent policy checks into a short-circuiting
    pipeline with injected collaborators, so each check is unit-testable and
    their order is observable from the outside."
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Union

from ..analytics.base import BaseAnalyticsEngine
from ..deadline import Deadline
from ..errors import CollaboratorTimeout, ErrorKind, Failure, UpstreamError
from ..links.identity import DemoIdentity, LinkIdentity
from ..links.resolver import LinkResolver
from ..params import RequestParams, parse_params
from ..policy.plans import DEFAULT_PLAN_TABLE, PlanLookbackTable, validate_plan_range
from ..policy.quota import check_usage
from ..ratelimit.base import RateLimitDecision
from ..ratelimit.limiter import RateLimiter, RateLimitKey

log = logging.getLogger("slink.dashboard")

STAGES = ("parse", "resolve", "check_plan", "check_quota", "rate_limit", "dispatch")


@dataclass(frozen=True)
class DashboardContext:
    """Request state accumulated stage by stage."""
    raw: Mapping[str, str]
    client_ip: str
    deadline: Deadline
    params: Optional[RequestParams] = None
    identity: Optional[LinkIdentity] = None
    rate_limit: Optional[RateLimitDecision] = None
    result: Any = None


@dataclass(frozen=True)
class DashboardResult:
    """Successful outcome: engine payload plus the rate-limit decision that admitted it."""
    data: Any
    rate_limit: RateLimitDecision


Outcome = Union[DashboardContext, Failure]


class DashboardPipeline:
    """
    Gate and forward dashboard requests.

    Args:
        resolver (LinkResolver): (domain, key) -> identity.
        limiter (RateLimiter): Shared-store rate limiter (disabled in development).
        engine (BaseAnalyticsEngine): Computes the analytics result.
        plan_table (PlanLookbackTable, optional): Tier limits; defaults to DEFAULT_PLAN_TABLE.
        request_timeout (float): Deadline budget when the caller does not supply one.
        now (Callable[[], datetime], optional): Timezone-aware clock for plan checks.
    """

    def __init__(
        self,
        resolver: LinkResolver,
        limiter: RateLimiter,
        engine: BaseAnalyticsEngine,
        plan_table: Optional[PlanLookbackTable] = None,
        request_timeout: float = 10.0,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.resolver = resolver
        self.limiter = limiter
        self.engine = engine
        self.plan_table = plan_table or DEFAULT_PLAN_TABLE
        self.request_timeout = request_timeout
        self._now = now or (lambda: datetime.now(timezone.utc))

    # ---------------------------------------------------------------------
    # Runner
    # ---------------------------------------------------------------------
    def run(
        self,
        raw: Mapping[str, str],
        client_ip: str,
        deadline: Optional[Deadline] = None,
    ) -> Union[DashboardResult, Failure]:
        """
        Run every stage in order, stopping at the first Failure.

        Args:
            raw (Mapping[str, str]): Query parameters as received.
            client_ip (str): Caller address, part of the rate-limit key.
            deadline (Deadline, optional): Inherited request deadline.

        Returns:
            Union[DashboardResult, Failure]: Engine result, or the first refusal.
        """
        ctx: Outcome = DashboardContext(
            raw=raw,
            client_ip=client_ip,
            deadline=deadline or Deadline(self.request_timeout),
        )
        for name in STAGES:
            ctx = getattr(self, name)(ctx)
            if isinstance(ctx, Failure):
                log.info("Dashboard request stopped at %s: %s (%s)", name, ctx.code, ctx.message)
                return ctx
        return DashboardResult(data=ctx.result, rate_limit=ctx.rate_limit)

    # ---------------------------------------------------------------------
    # Stages
    # ---------------------------------------------------------------------
    def parse(self, ctx: DashboardContext) -> Outcome:
        params = parse_params(ctx.raw)
        if isinstance(params, Failure):
            return params
        return replace(ctx, params=params)

    def resolve(self, ctx: DashboardContext) -> Outcome:
        identity = self.resolver.resolve(ctx.params.domain, ctx.params.key, ctx.deadline)
        if isinstance(identity, Failure):
            return identity
        return replace(ctx, identity=identity)

    def check_plan(self, ctx: DashboardContext) -> Outcome:
        if isinstance(ctx.identity, DemoIdentity):
            return ctx
        failure = validate_plan_range(ctx.identity.policy, ctx.params, self.plan_table, self._now())
        return failure or ctx

    def check_quota(self, ctx: DashboardContext) -> Outcome:
        if isinstance(ctx.identity, DemoIdentity):
            return ctx
        failure = check_usage(ctx.identity.policy, self.plan_table)
        return failure or ctx

    def rate_limit(self, ctx: DashboardContext) -> Outcome:
        key = RateLimitKey(
            link_id=ctx.identity.link_id,
            client_ip=ctx.client_ip,
            group_by=ctx.params.group_by,
        )
        decision = self.limiter.check(key, ctx.identity, ctx.deadline)
        if isinstance(decision, Failure):
            return decision
        return replace(ctx, rate_limit=decision)

    def dispatch(self, ctx: DashboardContext) -> Outcome:
        if ctx.deadline.expired():
            return Failure(ErrorKind.TIMEOUT, "Request deadline exceeded before fetching analytics")

        query = ctx.params.to_query()
        query["linkId"] = ctx.identity.link_id
        if ctx.identity.workspace_id:
            query["workspaceId"] = ctx.identity.workspace_id

        try:
            result = self.engine.fetch(query, timeout=ctx.deadline.remaining())
        except CollaboratorTimeout:
            return Failure(ErrorKind.TIMEOUT, "Analytics engine timed out")
        except UpstreamError as exc:
            log.warning("Analytics engine failed for link %s: %s", ctx.identity.link_id, exc)
            return Failure(ErrorKind.UPSTREAM_FAILURE, "Failed to fetch analytics")
        return replace(ctx, result=result)
