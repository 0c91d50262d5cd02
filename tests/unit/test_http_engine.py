import httpx
import pytest

from slink_dashboard.analytics.http_engine import HTTPAnalyticsEngine
from slink_dashboard.errors import CollaboratorTimeout, UpstreamError


def _engine(handler):
    client = httpx.Client(base_url="http://analytics.test", transport=httpx.MockTransport(handler))
    return HTTPAnalyticsEngine("http://analytics.test", client=client)


def test_result_returned_verbatim_and_query_forwarded():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=[{"country": "US", "clicks": 7}])

    result = _engine(handler).fetch(
        {"groupBy": "countries", "linkId": "link_1", "workspaceId": "ws_1", "browser": "Chrome", "end": None},
        timeout=2,
    )
    assert result == [{"country": "US", "clicks": 7}]
    assert seen["path"] == "/analytics"
    assert seen["params"] == {"groupBy": "countries", "linkId": "link_1", "workspaceId": "ws_1", "browser": "Chrome"}


def test_timeout_maps_to_collaborator_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(CollaboratorTimeout):
        _engine(handler).fetch({"groupBy": "count", "linkId": "link_1"}, timeout=0.1)


def test_error_status_maps_to_upstream_error():
    with pytest.raises(UpstreamError, match="503"):
        _engine(lambda request: httpx.Response(503)).fetch({"groupBy": "count", "linkId": "link_1"})


def test_connection_error_maps_to_upstream_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(UpstreamError):
        _engine(handler).fetch({"groupBy": "count", "linkId": "link_1"})


def test_invalid_json_maps_to_upstream_error():
    with pytest.raises(UpstreamError):
        _engine(lambda request: httpx.Response(200, content=b"not json")).fetch({"linkId": "link_1"})
