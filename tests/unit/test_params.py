"""
Unit tests for query parameter parsing.

Covers:
    - missing domain/key wins over every other problem
    - enum and timestamp validation with field context
    - interval vs start/end exclusivity and the 24h default
    - pass-through of unknown analytics dimensions
"""

from datetime import datetime, timezone

import pytest

from slink_dashboard.errors import ErrorKind, Failure
from slink_dashboard.params import EventType, GroupBy, Interval, RequestParams, parse_params


@pytest.mark.parametrize(
    "raw",
    [
        {},
        {"domain": "example.com"},
        {"key": "abc"},
        {"domain": "", "key": "abc"},
        {"domain": "example.com", "key": "   "},
        {"key": "abc", "groupBy": "not-a-group", "interval": "forever"},
        {"domain": "example.com", "start": "garbage", "end": "also-garbage"},
    ],
)
def test_missing_identifier_regardless_of_other_params(raw):
    result = parse_params(raw)
    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.MISSING_IDENTIFIER
    assert result.status_code == 400


def test_defaults_applied():
    params = parse_params({"domain": "example.com", "key": "abc"})
    assert isinstance(params, RequestParams)
    assert params.group_by is GroupBy.COUNT
    assert params.interval is Interval.LAST_24H
    assert params.event is EventType.CLICKS
    assert params.filters == {}


def test_unknown_group_by_is_invalid_request():
    result = parse_params({"domain": "example.com", "key": "abc", "groupBy": "planets"})
    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.INVALID_REQUEST
    assert result.field == "groupBy"
    assert result.code == "bad_request"


def test_unknown_interval_is_invalid_request():
    result = parse_params({"domain": "example.com", "key": "abc", "interval": "2w"})
    assert isinstance(result, Failure)
    assert result.field == "interval"


def test_malformed_start_is_invalid_request():
    result = parse_params({"domain": "example.com", "key": "abc", "start": "yesterday"})
    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.INVALID_REQUEST
    assert result.field == "start"


@pytest.mark.parametrize("value", ["9" * 17, "9" * 30, "9" * 400])
def test_out_of_range_epoch_millis_is_invalid_request(value):
    result = parse_params({"domain": "example.com", "key": "abc", "start": value})
    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.INVALID_REQUEST
    assert result.field == "start"


def test_iso_and_epoch_millis_accepted():
    params = parse_params({
        "domain": "example.com",
        "key": "abc",
        "start": "2026-01-01T00:00:00Z",
        "end": str(int(datetime(2026, 1, 8, tzinfo=timezone.utc).timestamp() * 1000)),
    })
    assert isinstance(params, RequestParams)
    assert params.start == datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert params.end == datetime(2026, 1, 8, tzinfo=timezone.utc)
    assert params.interval is None


def test_naive_dates_are_utc():
    params = parse_params({"domain": "example.com", "key": "abc", "start": "2026-01-01"})
    assert params.start.tzinfo is not None
    assert params.start.utcoffset().total_seconds() == 0


def test_interval_and_start_are_exclusive():
    result = parse_params({"domain": "example.com", "key": "abc", "interval": "7d", "start": "2026-01-01"})
    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.INVALID_REQUEST


def test_end_without_start_rejected():
    result = parse_params({"domain": "example.com", "key": "abc", "end": "2026-01-01"})
    assert isinstance(result, Failure)
    assert result.field == "end"


def test_start_after_end_rejected():
    result = parse_params({"domain": "example.com", "key": "abc", "start": "2026-02-01", "end": "2026-01-01"})
    assert isinstance(result, Failure)
    assert result.field == "start"


def test_extra_dimensions_pass_through():
    params = parse_params({"domain": "example.com", "key": "abc", "country": "US", "device": "Mobile"})
    assert params.filters == {"country": "US", "device": "Mobile"}
    query = params.to_query()
    assert query["country"] == "US"
    assert query["device"] == "Mobile"
    assert query["groupBy"] == "count"
    assert query["interval"] == "24h"
    assert query["domain"] == "example.com"
