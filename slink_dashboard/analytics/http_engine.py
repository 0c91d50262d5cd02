"""
HTTPAnalyticsEngine – forward dashboard queries to a remote analytics service
=============================================================================

GET {base_url}/analytics with the query as parameters; the JSON body is
returned untouched. No retries: a timeout or any non-2xx answer is reported
once and the caller decides what to do.

Example
-------
>>> engine = HTTPAnalyticsEngine("http://analytics.internal:8080")
>>> engine.fetch({"groupBy": "count", "linkId": "link_1", "interval": "7d"}, timeout=3)
{'clicks': 42}
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..errors import CollaboratorTimeout, UpstreamError
from .base import BaseAnalyticsEngine

log = logging.getLogger("slink.analytics")


class HTTPAnalyticsEngine(BaseAnalyticsEngine):
    """
    Remote analytics engine client.

    Args:
        base_url (str): Service root, e.g. "http://analytics:8080".
        client (httpx.Client, optional): Pre-built client (tests pass one with a MockTransport).
    """

    def __init__(self, base_url: str, client: Optional[httpx.Client] = None):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(base_url=self.base_url)

    def fetch(self, query: Dict[str, Any], timeout: Optional[float] = None) -> Any:
        params = {k: v for k, v in query.items() if v is not None}
        try:
            resp = self.client.get("/analytics", params=params, timeout=timeout)
            resp.raise_for_status()
            return resp.json()
        except httpx.TimeoutException as exc:
            log.warning("Analytics engine timed out after %ss", timeout)
            raise CollaboratorTimeout("analytics engine timed out") from exc
        except httpx.HTTPStatusError as exc:
            log.warning("Analytics engine answered %s", exc.response.status_code)
            raise UpstreamError(f"analytics engine returned {exc.response.status_code}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamError(f"analytics engine request failed: {exc}") from exc

    def close(self) -> None:
        self.client.close()
