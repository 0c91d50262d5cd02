"""
RedisRateLimitStore – fixed-window counters shared by every app instance
=======================================================================

INCR and the first EXPIRE run inside one Lua script, so concurrent requests
for the same key (from any process) see a strictly increasing count and the
window starts with the first request. After the key expires the count
restarts at 1.

Example
-------
>>> store = RedisRateLimitStore.from_url("redis://localhost:6379/0")
>>> store.increment_and_check("analytics-dashboard:link_1:1.2.3.4:count", 10, 10).allowed
True
"""

import logging
from typing import Optional

import redis
from redis.exceptions import TimeoutError as RedisTimeoutError

from ..errors import CollaboratorTimeout
from .base import BaseRateLimitStore, RateLimitDecision

log = logging.getLogger("slink.ratelimit")

_INCREMENT_LUA = """
-- KEYS[1] = counter key
-- ARGV[1] = window ttl seconds
-- ARGV[2] = ceiling
local c = redis.call('INCR', KEYS[1])
if c == 1 or redis.call('TTL', KEYS[1]) == -1 then
  redis.call('EXPIRE', KEYS[1], tonumber(ARGV[1]))
end
if c > tonumber(ARGV[2]) then
  return {0, c}
end
return {1, c}
"""


class RedisRateLimitStore(BaseRateLimitStore):
    """
    Redis implementation of the counter store.

    Args:
        client (redis.Redis): Connected client; its socket timeout bounds each call.
        prefix (str): Namespace prepended to every key.
    """

    def __init__(self, client: "redis.Redis", prefix: str = "slink"):
        self.client = client
        self.prefix = prefix.strip(":")
        self._script = client.register_script(_INCREMENT_LUA)

    @classmethod
    def from_url(cls, url: str, socket_timeout: float = 2.0, prefix: str = "slink") -> "RedisRateLimitStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=socket_timeout,
            socket_timeout=socket_timeout,
        )
        return cls(client, prefix=prefix)

    def _k(self, key: str) -> str:
        return f"{self.prefix}:{key}" if self.prefix else key

    def increment_and_check(
        self, key: str, ceiling: int, window_seconds: int, timeout: Optional[float] = None
    ) -> RateLimitDecision:
        """
        Count one request in the current window.

        `timeout` is not applied per call: redis-py bounds every command by the
        client's socket_timeout (SLINK_REDIS_SOCKET_TIMEOUT). RateLimiter
        re-checks the request deadline after this returns.

        Raises:
            CollaboratorTimeout: If Redis did not answer within socket_timeout.
        """
        try:
            allowed, count = self._script(keys=[self._k(key)], args=[window_seconds, ceiling])
        except RedisTimeoutError as exc:
            log.warning("Rate-limit store timed out for %s", key)
            raise CollaboratorTimeout("rate-limit store timed out") from exc
        return RateLimitDecision(allowed=bool(int(allowed)), count=int(count), limit=ceiling)
