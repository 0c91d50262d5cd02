"""
Analytics engine factory – in-memory or remote engine from config.

Environment variables (read at call time)
-----------------------------------------
- SLINK_ANALYTICS_BACKEND: "memory" (default) or "http"
- SLINK_ANALYTICS_URL:     engine base URL if backend=="http"
"""

import os
from typing import Optional

from .analytics import Analytics
from .base import BaseAnalyticsEngine


def get_analytics_engine(backend: Optional[str] = None, **kwargs) -> BaseAnalyticsEngine:
    be = (backend or os.getenv("SLINK_ANALYTICS_BACKEND", "memory")).lower()

    if be == "memory":
        return Analytics()

    if be == "http":
        url = kwargs.get("url") or os.getenv("SLINK_ANALYTICS_URL", "")
        if not url:
            raise ValueError("ANALYTICS_URL is required for http backend (env SLINK_ANALYTICS_URL)")
        from .http_engine import HTTPAnalyticsEngine
        return HTTPAnalyticsEngine(url)

    raise ValueError(f"Unknown analytics backend: {be!r}")
