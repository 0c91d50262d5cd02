"""
Query parameter parsing for the public analytics dashboard.

Responsibilities:
    - Turn raw query strings into a typed RequestParams
    - Report the first problem as a Failure (never raise)
    - Keep unknown analytics dimensions aside so they reach the engine untouched

Rules:
    - domain and key are checked first; missing either is MISSING_IDENTIFIER,
      whatever else the query contains.
    - interval and start/end are mutually exclusive; with neither, interval is "24h".
    - start/end accept ISO-8601 strings or epoch milliseconds; naive values are UTC.

LLM Prompt Example:
    "Show how to wrap pydantic validation in a parse function that returns a
    typed value or a failure object carrying the offending field."
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ErrorKind, Failure


class GroupBy(str, Enum):
    COUNT = "count"
    TIMESERIES = "timeseries"
    CONTINENTS = "continents"
    REGIONS = "regions"
    COUNTRIES = "countries"
    CITIES = "cities"
    DEVICES = "devices"
    BROWSERS = "browsers"
    OS = "os"
    TRIGGERS = "triggers"
    REFERERS = "referers"
    REFERER_URLS = "referer_urls"
    TOP_LINKS = "top_links"
    TOP_URLS = "top_urls"
    UTM_SOURCES = "utm_sources"
    UTM_MEDIUMS = "utm_mediums"
    UTM_CAMPAIGNS = "utm_campaigns"
    UTM_TERMS = "utm_terms"
    UTM_CONTENTS = "utm_contents"


class Interval(str, Enum):
    LAST_24H = "24h"
    LAST_7D = "7d"
    LAST_30D = "30d"
    LAST_90D = "90d"
    LAST_YEAR = "1y"
    MONTH_TO_DATE = "mtd"
    QUARTER_TO_DATE = "qtd"
    YEAR_TO_DATE = "ytd"
    ALL = "all"


class EventType(str, Enum):
    CLICKS = "clicks"
    LEADS = "leads"
    SALES = "sales"
    COMPOSITE = "composite"

    @property
    def is_conversion(self) -> bool:
        return self is not EventType.CLICKS


DEFAULT_INTERVAL = Interval.LAST_24H

_FIXED_INTERVALS: Dict[Interval, timedelta] = {
    Interval.LAST_24H: timedelta(days=1),
    Interval.LAST_7D: timedelta(days=7),
    Interval.LAST_30D: timedelta(days=30),
    Interval.LAST_90D: timedelta(days=90),
    Interval.LAST_YEAR: timedelta(days=365),
}


def interval_start(interval: Interval, now: datetime) -> Optional[datetime]:
    """First instant covered by `interval` as of `now`; None for "all"."""
    if interval is Interval.ALL:
        return None
    if interval in _FIXED_INTERVALS:
        return now - _FIXED_INTERVALS[interval]
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if interval is Interval.MONTH_TO_DATE:
        return midnight.replace(day=1)
    if interval is Interval.QUARTER_TO_DATE:
        return midnight.replace(month=3 * ((now.month - 1) // 3) + 1, day=1)
    return midnight.replace(month=1, day=1)


# Query names owned by this module; everything else goes to `filters`.
_TYPED_PARAMS = {
    "groupBy": "group_by",
    "domain": "domain",
    "key": "key",
    "interval": "interval",
    "start": "start",
    "end": "end",
    "event": "event",
    "timezone": "timezone",
}
_QUERY_NAME = {field: name for name, field in _TYPED_PARAMS.items()}


class RequestParams(BaseModel):
    """Validated dashboard query."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    group_by: GroupBy = GroupBy.COUNT
    domain: str
    key: str
    interval: Optional[Interval] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    event: EventType = EventType.CLICKS
    timezone: Optional[str] = None
    filters: Dict[str, str] = Field(default_factory=dict)

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        if value is None or isinstance(value, datetime):
            return value
        text = str(value).strip()
        if text.isdigit():
            try:
                return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
            except (OverflowError, OSError) as exc:
                # pydantic only reports ValueError/AssertionError as validation errors
                raise ValueError("timestamp out of range") from exc
        return datetime.fromisoformat(text.replace("Z", "+00:00"))

    @field_validator("start", "end")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_query(self) -> Dict[str, Any]:
        """Flatten back to the camelCase query shape the analytics engine expects."""
        query: Dict[str, Any] = dict(self.filters)
        query["groupBy"] = self.group_by.value
        query["domain"] = self.domain
        query["key"] = self.key
        query["event"] = self.event.value
        if self.interval is not None:
            query["interval"] = self.interval.value
        if self.start is not None:
            query["start"] = self.start.isoformat()
        if self.end is not None:
            query["end"] = self.end.isoformat()
        if self.timezone:
            query["timezone"] = self.timezone
        return query


def parse_params(raw: Mapping[str, str]) -> Union[RequestParams, Failure]:
    """
    Validate raw query parameters.

    Args:
        raw (Mapping[str, str]): Query string values, one per name.

    Returns:
        Union[RequestParams, Failure]: Typed params, or the first problem found.
    """
    domain = (raw.get("domain") or "").strip()
    key = (raw.get("key") or "").strip()
    if not domain or not key:
        return Failure(
            ErrorKind.MISSING_IDENTIFIER,
            "Missing domain or key query parameter",
            field="domain" if not domain else "key",
        )

    data: Dict[str, Any] = {}
    filters: Dict[str, str] = {}
    for name, value in raw.items():
        if name in _TYPED_PARAMS:
            if value != "":
                data[_TYPED_PARAMS[name]] = value
        else:
            filters[name] = value
    data.update(domain=domain, key=key, filters=filters)

    try:
        params = RequestParams.model_validate(data)
    except ValidationError as exc:
        error = exc.errors()[0]
        field = _QUERY_NAME.get(str(error["loc"][0]), str(error["loc"][0])) if error["loc"] else None
        return Failure(ErrorKind.INVALID_REQUEST, f"Invalid '{field}' query parameter: {error['msg']}", field=field)

    return _check_range(params)


def _check_range(params: RequestParams) -> Union[RequestParams, Failure]:
    if params.interval is not None and (params.start is not None or params.end is not None):
        return Failure(
            ErrorKind.INVALID_REQUEST,
            "Use either interval or start/end, not both",
            field="interval",
        )
    if params.end is not None and params.start is None:
        return Failure(ErrorKind.INVALID_REQUEST, "end requires start", field="end")
    if params.start is not None and params.end is not None and params.start > params.end:
        return Failure(ErrorKind.INVALID_REQUEST, "start must be before end", field="start")
    if params.interval is None and params.start is None:
        return params.model_copy(update={"interval": DEFAULT_INTERVAL})
    return params
