"""
Plan-tier policy: how far back a public dashboard may look, and which
analytics a tier unlocks.

Responsibilities:
    - Hold the PlanLookbackTable (tier -> PlanLimits), swappable from a JSON file
    - Compute the span a query asks for, from its interval or start/end
    - Refuse spans beyond the tier's window and conversion analytics the tier lacks

The check looks at the larger of `end - start` and `now - start`, so a short
window placed far in the past is still bounded by the lookback. A one-day
grace absorbs partial days and timezone offsets at the edges.

JSON table format (SLINK_PLAN_TABLE_PATH):
    {
      "free": {"label": "Free", "max_days": 30, "conversion": false,
               "upgrade_hint": "Upgrade to Pro or Business ..."},
      "business": {"label": "Business", "max_days": null, "conversion": true}
    }
    A "free" entry is required; unknown tiers resolve to it.

LLM Prompt Example:
    "Show how to keep plan limits as versionable data instead of constants
    scattered through request handlers."
"""

import json
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Mapping, Optional, Union

from ..errors import ErrorKind, Failure
from ..links.identity import DEFAULT_PLAN, ProjectPolicy
from ..params import DEFAULT_INTERVAL, RequestParams, interval_start

LOOKBACK_GRACE = timedelta(days=1)


@dataclass(frozen=True)
class PlanLimits:
    """
    Limits of a single plan tier.

    Attributes:
        name (str): Tier identifier as stored on the project ("free", "pro", ...).
        label (str): Display name used in messages.
        max_days (Optional[int]): Lookback window in days; None means unlimited.
        conversion (bool): Whether the tier includes conversion analytics.
        upgrade_hint (str): Sentence appended to refusals.
    """

    name: str
    label: str
    max_days: Optional[int]
    conversion: bool = False
    upgrade_hint: str = "Upgrade to a higher plan to get analytics for longer periods."

    def window_label(self) -> str:
        if self.max_days is None:
            return "all time"
        if self.max_days % 365 == 0:
            years = self.max_days // 365
            return "1 year" if years == 1 else f"{years} years"
        return f"{self.max_days} days"


class PlanLookbackTable:
    """Mapping of plan tier -> PlanLimits with a fallback tier."""

    def __init__(self, plans: Mapping[str, PlanLimits], fallback: str = DEFAULT_PLAN):
        if fallback not in plans:
            raise ValueError(f"Plan table must define the fallback tier {fallback!r}")
        self._plans = dict(plans)
        self.fallback = fallback

    def get(self, plan: Optional[str]) -> PlanLimits:
        return self._plans.get((plan or "").lower(), self._plans[self.fallback])

    def __contains__(self, plan: str) -> bool:
        return plan in self._plans

    @classmethod
    def from_dict(cls, raw: Mapping[str, Mapping]) -> "PlanLookbackTable":
        plans = {}
        for name, entry in raw.items():
            name = name.lower()
            plans[name] = PlanLimits(
                name=name,
                label=entry.get("label", name.title()),
                max_days=entry.get("max_days"),
                conversion=bool(entry.get("conversion", False)),
                upgrade_hint=entry.get("upgrade_hint", PlanLimits.upgrade_hint),
            )
        return cls(plans)

    @classmethod
    def from_json_file(cls, path: str) -> "PlanLookbackTable":
        with open(path, "r", encoding="utf-8") as fh:
            return cls.from_dict(json.load(fh))


DEFAULT_PLAN_TABLE = PlanLookbackTable(
    {
        "free": PlanLimits(
            name="free",
            label="Free",
            max_days=30,
            upgrade_hint="Upgrade to Pro or Business to get analytics for longer periods.",
        ),
        "pro": PlanLimits(
            name="pro",
            label="Pro",
            max_days=365,
            upgrade_hint="Upgrade to Business to get analytics for longer periods.",
        ),
        "business": PlanLimits(name="business", label="Business", max_days=None, conversion=True),
        "enterprise": PlanLimits(name="enterprise", label="Enterprise", max_days=None, conversion=True),
    }
)


def load_plan_table(path: str = "") -> PlanLookbackTable:
    """Return the table from `path` when given, else the built-in default."""
    return PlanLookbackTable.from_json_file(path) if path else DEFAULT_PLAN_TABLE


def requested_span(params: RequestParams, now: datetime) -> Optional[timedelta]:
    """
    How far back a query reaches.

    Returns:
        Optional[timedelta]: The span, or None for the unbounded "all" interval.
    """
    if params.start is not None:
        end = params.end or now
        return max(end - params.start, now - params.start)

    start = interval_start(params.interval or DEFAULT_INTERVAL, now)
    return None if start is None else now - start


def validate_plan_range(
    policy: ProjectPolicy,
    params: RequestParams,
    table: PlanLookbackTable,
    now: datetime,
) -> Union[None, Failure]:
    """
    Check a query against the workspace's plan tier.

    Args:
        policy (ProjectPolicy): Plan and conversion flag of the link's workspace.
        params (RequestParams): Validated query.
        table (PlanLookbackTable): Tier limits.
        now (datetime): Timezone-aware current time.

    Returns:
        Union[None, Failure]: None when allowed, else a FORBIDDEN failure
        naming the tier and the upgrade path.
    """
    limits = table.get(policy.plan)

    if limits.max_days is not None:
        span = requested_span(params, now)
        if span is None or span > timedelta(days=limits.max_days) + LOOKBACK_GRACE:
            return Failure(
                ErrorKind.FORBIDDEN,
                f"You can only get analytics for up to {limits.window_label()} "
                f"on a {limits.label} plan. {limits.upgrade_hint}",
                field="interval" if params.start is None else "start",
            )

    if params.event.is_conversion:
        if not limits.conversion:
            return Failure(
                ErrorKind.FORBIDDEN,
                f"Conversion analytics are not available on a {limits.label} plan. "
                "Upgrade to Business to track leads and sales.",
                field="event",
            )
        if not policy.conversion_enabled:
            return Failure(
                ErrorKind.FORBIDDEN,
                "Conversion tracking is not enabled for this workspace.",
                field="event",
            )

    return None
