"""
In-memory analytics engine for the Slink dashboard.

Responsibilities:
    - Record click (and conversion) events per link
    - Answer dashboard queries: totals, timeseries and top-N per dimension
    - Honor the query window (interval or start/end) and pass-through filters

Used for local development and tests. Production deployments point
SLINK_ANALYTICS_BACKEND at the remote engine (see `http_engine.py`).

Attributes:
    event_logs (Dict[str, List[Dict]]): Maps link_id -> list of events

LLM Prompt Example:
    "Explain how to extend this analytics module to store click events
    in a persistent database while preserving existing API."
"""

import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from ..errors import UpstreamError
from ..params import DEFAULT_INTERVAL, GroupBy, Interval, interval_start
from .base import BaseAnalyticsEngine

# groupBy -> event attribute it aggregates on
DIMENSIONS: Dict[GroupBy, str] = {
    GroupBy.CONTINENTS: "continent",
    GroupBy.REGIONS: "region",
    GroupBy.COUNTRIES: "country",
    GroupBy.CITIES: "city",
    GroupBy.DEVICES: "device",
    GroupBy.BROWSERS: "browser",
    GroupBy.OS: "os",
    GroupBy.TRIGGERS: "trigger",
    GroupBy.REFERERS: "referer",
    GroupBy.REFERER_URLS: "referer_url",
    GroupBy.TOP_LINKS: "link_id",
    GroupBy.TOP_URLS: "url",
    GroupBy.UTM_SOURCES: "utm_source",
    GroupBy.UTM_MEDIUMS: "utm_medium",
    GroupBy.UTM_CAMPAIGNS: "utm_campaign",
    GroupBy.UTM_TERMS: "utm_term",
    GroupBy.UTM_CONTENTS: "utm_content",
}

# Query filters the engine understands; other pass-through keys are ignored here.
_FILTERABLE = set(DIMENSIONS.values())


class Analytics(BaseAnalyticsEngine):
    def __init__(self, clock: Optional[Callable[[], float]] = None):
        """
        Initialize empty event log dictionary.

        event_logs structure:
        { link_id: [ {"timestamp": float, "event": str, "country": str, ...}, ... ] }
        """
        self.event_logs: Dict[str, List[Dict[str, Any]]] = {}
        self._clock = clock or time.time

    def log_click(self, link_id: str, timestamp: Optional[float] = None, **attributes: Any) -> None:
        """
        Log a click event for a link.

        Args:
            link_id (str): Link the click belongs to.
            timestamp (Optional[float]): Epoch seconds; defaults to now.
            **attributes: Dimension values (country, device, browser, referer, ...).
        """
        self.log_event(link_id, "clicks", timestamp=timestamp, **attributes)

    def log_event(self, link_id: str, event: str, timestamp: Optional[float] = None, **attributes: Any) -> None:
        """Log any event kind ("clicks", "leads", "sales") for a link."""
        record = {
            "timestamp": timestamp if timestamp is not None else self._clock(),
            "event": event,
            "link_id": link_id,
        }
        record.update(attributes)
        self.event_logs.setdefault(link_id, []).append(record)

    def _window(self, query: Dict[str, Any]) -> tuple:
        now = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        if query.get("start"):
            start = datetime.fromisoformat(query["start"])
            end = datetime.fromisoformat(query["end"]) if query.get("end") else now
            return start, end
        return interval_start(Interval(query.get("interval", DEFAULT_INTERVAL.value)), now), now

    def _select(self, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        start, end = self._window(query)
        lo = start.timestamp() if start is not None else float("-inf")
        hi = end.timestamp()
        event = query.get("event", "clicks")
        filters = {k: v for k, v in query.items() if k in _FILTERABLE}

        logs = self.event_logs.get(query["linkId"], [])
        return [
            log for log in logs
            if lo <= log["timestamp"] <= hi
            and (event == "composite" or log["event"] == event)
            and all(str(log.get(k)) == v for k, v in filters.items())
        ]

    def fetch(self, query: Dict[str, Any], timeout: Optional[float] = None) -> Any:
        """
        Compute analytics for one link.

        Returns:
            - count:      {"clicks": int, "leads": int, "sales": int}
            - timeseries: [{"start": iso, "clicks": int}, ...] hourly for 24h, daily otherwise
            - dimensions: [{<attribute>: value, "clicks": int}, ...] sorted by count desc

        Raises:
            UpstreamError: If the query lacks linkId or names an unknown groupBy.
        """
        if not query.get("linkId"):
            raise UpstreamError("linkId is required")
        try:
            group_by = GroupBy(query.get("groupBy", GroupBy.COUNT.value))
        except ValueError as exc:
            raise UpstreamError(f"Unsupported groupBy: {query.get('groupBy')!r}") from exc

        logs = self._select(query)

        if group_by is GroupBy.COUNT:
            totals = {"clicks": 0, "leads": 0, "sales": 0}
            for log in logs:
                totals[log["event"]] = totals.get(log["event"], 0) + 1
            return totals

        if group_by is GroupBy.TIMESERIES:
            return self._timeseries(logs, query)

        attribute = DIMENSIONS[group_by]
        counts: Dict[str, int] = {}
        for log in logs:
            value = log.get(attribute) or "Unknown"
            counts[value] = counts.get(value, 0) + 1
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [{attribute: value, "clicks": n} for value, n in ranked]

    def _timeseries(self, logs: List[Dict[str, Any]], query: Dict[str, Any]) -> List[Dict[str, Any]]:
        hourly = query.get("interval") == Interval.LAST_24H.value
        step = timedelta(hours=1) if hourly else timedelta(days=1)

        def _bucket(ts: float) -> datetime:
            dt = datetime.fromtimestamp(ts, tz=timezone.utc)
            dt = dt.replace(minute=0, second=0, microsecond=0)
            return dt if hourly else dt.replace(hour=0)

        counts: Dict[datetime, int] = {}
        for log in logs:
            bucket = _bucket(log["timestamp"])
            counts[bucket] = counts.get(bucket, 0) + 1
        if not counts:
            return []

        series = []
        cursor, last = min(counts), max(counts)
        while cursor <= last:
            series.append({"start": cursor.isoformat(), "clicks": counts.get(cursor, 0)})
            cursor += step
        return series
