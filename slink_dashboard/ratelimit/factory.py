"""
Rate-limiter factory – build the limiter for the current execution mode
=======================================================================

- Development mode: limiter disabled, no store is created.
- Otherwise: a Redis store is required (SLINK_REDIS_URL); a missing URL fails
  at startup rather than silently admitting everything.

Environment variables (read at call time)
-----------------------------------------
- SLINK_ENV
- SLINK_REDIS_URL
- SLINK_REDIS_SOCKET_TIMEOUT
- SLINK_RATE_LIMIT_TABLE_PATH
"""

import logging
import os
from typing import Optional

from .base import BaseRateLimitStore
from .limiter import RateLimiter, load_rate_limit_policy

log = logging.getLogger("slink.ratelimit")


def get_rate_limiter(env: Optional[str] = None, store: Optional[BaseRateLimitStore] = None) -> RateLimiter:
    """
    Return a RateLimiter for `env` (defaults to SLINK_ENV).

    Args:
        env (str, optional): "development" disables limiting.
        store (BaseRateLimitStore, optional): Injected store; skips Redis construction.
    """
    mode = (env or os.getenv("SLINK_ENV", "production")).strip().lower()
    policy = load_rate_limit_policy(os.getenv("SLINK_RATE_LIMIT_TABLE_PATH", ""))

    if mode == "development":
        log.info("Rate limiting disabled in development mode")
        return RateLimiter(store=store, policy=policy, enabled=False)

    if store is None:
        url = os.getenv("SLINK_REDIS_URL", "")
        if not url:
            raise ValueError("REDIS_URL is required when rate limiting is enabled (env SLINK_REDIS_URL)")
        from .redis_store import RedisRateLimitStore

        timeout = float(os.getenv("SLINK_REDIS_SOCKET_TIMEOUT", "2.0"))
        store = RedisRateLimitStore.from_url(url, socket_timeout=timeout)

    return RateLimiter(store=store, policy=policy, enabled=True)
