from __future__ import annotations

import httpx
import pytest

from decs_provider.config import DEFAULT_TIMEOUT_SECONDS, READ_TIMEOUT_SECONDS
from decs_provider.domain.exceptions import DecodeError, TransportError
from decs_provider.infra.http.decs_client import DecsApiClient


def make_client(transport: httpx.BaseTransport, *, retries: int = 0, **kwargs) -> DecsApiClient:
    kwargs.setdefault("jwt", "token-123")
    return DecsApiClient(
        baseUrl="https://decs.local/",
        retries=retries,
        retryBackoffSeconds=0,
        transport=transport,
        **kwargs,
    )


def test_post_json_sends_empty_post_with_query_and_bearer():
    def responder(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/restmachine/cloudapi/images/list"
        assert dict(request.url.params) == {"accountId": "3", "cloudspaceId": "11"}
        assert request.content == b""
        assert request.headers["Authorization"] == "bearer token-123"
        return httpx.Response(200, json=[{"id": 1}])

    client = make_client(httpx.MockTransport(responder))

    data = client.postJson("/restmachine/cloudapi/images/list", {"accountId": "3", "cloudspaceId": "11"})

    assert data == [{"id": 1}]


def test_basic_auth_used_without_jwt():
    def responder(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"].startswith("Basic ")
        return httpx.Response(200, json=[])

    client = make_client(httpx.MockTransport(responder), jwt=None, username="user", password="secret")

    assert client.postJson("/list") == []


def test_timeouts_are_fixed_ceilings():
    client = make_client(httpx.MockTransport(lambda request: httpx.Response(200, json=[])))

    assert client.client.timeout.read == READ_TIMEOUT_SECONDS
    assert client.client.timeout.connect == DEFAULT_TIMEOUT_SECONDS


def test_http_error_raises_transport_error_with_status_and_body():
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="no such API")

    client = make_client(httpx.MockTransport(responder))

    with pytest.raises(TransportError) as exc:
        client.postJson("/list")

    assert exc.value.status_code == 404
    assert exc.value.body == "no such API"
    assert exc.value.code == "HTTP_4XX"
    assert "HTTP 404" in str(exc.value)


def test_unauthorized_code():
    client = make_client(httpx.MockTransport(lambda request: httpx.Response(401, text="denied")))

    with pytest.raises(TransportError) as exc:
        client.postJson("/list")

    assert exc.value.code == "UNAUTHORIZED"


def test_no_retry_by_default():
    calls = {"count": 0}

    def responder(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(503, text="busy")

    client = make_client(httpx.MockTransport(responder))

    with pytest.raises(TransportError) as exc:
        client.postJson("/list")

    assert calls["count"] == 1
    assert exc.value.code == "HTTP_5XX"
    assert client.getRetryAttempts() == 0


def test_retries_on_500_when_enabled():
    calls = {"count": 0}

    def responder(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] == 1:
            return httpx.Response(500, text="fail")
        return httpx.Response(200, json=[])

    client = make_client(httpx.MockTransport(responder), retries=1)

    assert client.postJson("/list") == []
    assert client.getRetryAttempts() == 1


def test_network_error_raises_transport_error():
    def responder(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom")

    client = make_client(httpx.MockTransport(responder))

    with pytest.raises(TransportError) as exc:
        client.postJson("/list")

    assert exc.value.code == "NETWORK_ERROR"
    assert exc.value.status_code is None


def test_invalid_json_raises_decode_error():
    client = make_client(httpx.MockTransport(lambda request: httpx.Response(200, text="<html>")))

    with pytest.raises(DecodeError) as exc:
        client.postJson("/list")

    assert exc.value.code == "INVALID_JSON"


def test_empty_body_raises_decode_error():
    client = make_client(httpx.MockTransport(lambda request: httpx.Response(200, text="")))

    with pytest.raises(DecodeError):
        client.postJson("/list")


def test_base_url_is_required():
    with pytest.raises(ValueError):
        DecsApiClient(baseUrl="")
