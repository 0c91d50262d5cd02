"""
Rate limiter for the public analytics dashboard.

Responsibilities:
    - Pick a window/ceiling pair for the link kind and groupBy dimension
    - Count the request in the shared store under a per-(link, IP, groupBy) key
    - Refuse with RATE_LIMITED once the ceiling is passed
    - Stay out of the way entirely in development mode

Default policy (swappable through SLINK_RATE_LIMIT_TABLE_PATH):
    demo links, low-cardinality groupBy ("count")  : 15 requests / 10 s
    demo links, any other groupBy                  : 15 requests / 60 s
    persisted links                                : 10 requests / 10 s

JSON table format:
    {
      "demo_low_cardinality": {"ceiling": 15, "window_seconds": 10},
      "demo": {"ceiling": 15, "window_seconds": 60},
      "persisted": {"ceiling": 10, "window_seconds": 10},
      "low_cardinality_group_by": ["count"]
    }

LLM Prompt Example:
    "Show how to inject a rate-limit store into a service so production uses
    Redis while tests substitute a fake with a controllable clock."
"""

import json
import logging
from dataclasses import dataclass
from typing import FrozenSet, Mapping, Optional, Union

from ..deadline import Deadline
from ..errors import CollaboratorTimeout, ErrorKind, Failure
from ..links.identity import DemoIdentity, LinkIdentity
from ..params import GroupBy
from .base import BaseRateLimitStore, RateLimitDecision

log = logging.getLogger("slink.ratelimit")

RATE_LIMITED_MESSAGE = "Don't DDoS me pls 🥺"
KEY_PREFIX = "analytics-dashboard"


@dataclass(frozen=True)
class RateLimitKey:
    """Counter identity: one bucket per link, client address and groupBy."""
    link_id: str
    client_ip: str
    group_by: GroupBy

    def __str__(self) -> str:
        return f"{KEY_PREFIX}:{self.link_id}:{self.client_ip}:{self.group_by.value}"


@dataclass(frozen=True)
class RateLimitRule:
    ceiling: int
    window_seconds: int


@dataclass(frozen=True)
class RateLimitPolicy:
    demo_low_cardinality: RateLimitRule = RateLimitRule(ceiling=15, window_seconds=10)
    demo: RateLimitRule = RateLimitRule(ceiling=15, window_seconds=60)
    persisted: RateLimitRule = RateLimitRule(ceiling=10, window_seconds=10)
    low_cardinality_group_by: FrozenSet[GroupBy] = frozenset({GroupBy.COUNT})

    def select(self, identity: LinkIdentity, group_by: GroupBy) -> RateLimitRule:
        if isinstance(identity, DemoIdentity):
            if group_by in self.low_cardinality_group_by:
                return self.demo_low_cardinality
            return self.demo
        return self.persisted

    @classmethod
    def from_dict(cls, raw: Mapping) -> "RateLimitPolicy":
        default = cls()

        def _rule(name: str) -> RateLimitRule:
            entry = raw.get(name)
            if entry is None:
                return getattr(default, name)
            return RateLimitRule(ceiling=int(entry["ceiling"]), window_seconds=int(entry["window_seconds"]))

        low = raw.get("low_cardinality_group_by")
        return cls(
            demo_low_cardinality=_rule("demo_low_cardinality"),
            demo=_rule("demo"),
            persisted=_rule("persisted"),
            low_cardinality_group_by=(
                frozenset(GroupBy(v) for v in low) if low is not None else default.low_cardinality_group_by
            ),
        )

    @classmethod
    def from_json_file(cls, path: str) -> "RateLimitPolicy":
        with open(path, "r", encoding="utf-8") as fh:
            return cls.from_dict(json.load(fh))


def load_rate_limit_policy(path: str = "") -> RateLimitPolicy:
    return RateLimitPolicy.from_json_file(path) if path else RateLimitPolicy()


class RateLimiter:
    """
    Per-key request ceiling over an injected shared store.

    Args:
        store (Optional[BaseRateLimitStore]): Counter store; may be None only when disabled.
        policy (RateLimitPolicy): Window/ceiling table.
        enabled (bool): False in development mode; every request is then admitted.
    """

    def __init__(
        self,
        store: Optional[BaseRateLimitStore],
        policy: Optional[RateLimitPolicy] = None,
        enabled: bool = True,
    ):
        if enabled and store is None:
            raise ValueError("A rate-limit store is required when rate limiting is enabled")
        self.store = store
        self.policy = policy or RateLimitPolicy()
        self.enabled = enabled

    def check(
        self, key: RateLimitKey, identity: LinkIdentity, deadline: Deadline
    ) -> Union[RateLimitDecision, Failure]:
        """
        Count this request and decide whether it may proceed.

        Returns:
            Union[RateLimitDecision, Failure]: The decision when admitted,
            RATE_LIMITED when over the ceiling, TIMEOUT when the store is too slow.
        """
        if not self.enabled:
            return RateLimitDecision(allowed=True)

        rule = self.policy.select(identity, key.group_by)
        if deadline.expired():
            return Failure(ErrorKind.TIMEOUT, "Request deadline exceeded before rate limiting")
        try:
            decision = self.store.increment_and_check(
                str(key), rule.ceiling, rule.window_seconds, timeout=deadline.remaining()
            )
        except CollaboratorTimeout:
            return Failure(ErrorKind.TIMEOUT, "Rate-limit store timed out")
        # Stores may bound the call by their own socket timeout instead of ours
        if deadline.expired():
            return Failure(ErrorKind.TIMEOUT, "Request deadline exceeded during rate limiting")

        if not decision.allowed:
            log.info("Rate limited %s (%d/%d per %ds)", key, decision.count, rule.ceiling, rule.window_seconds)
            return Failure(ErrorKind.RATE_LIMITED, RATE_LIMITED_MESSAGE)
        return decision
