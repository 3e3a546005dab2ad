import httpx
import pytest

import goudron.goudron_http as http_mod
from goudron.goudron_http import HttpResult, http_request, normalize_http_config


class DummyResp:
    def __init__(self, status, text):
        self.status_code = status
        self.text = text


class DummyAsyncClient:
    """Records what it was asked; raises for urls containing 'down'."""
    instances = []

    def __init__(self, *args, **kwargs):
        self.kwargs = kwargs
        self.requests = []
        DummyAsyncClient.instances.append(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def request(self, method, url, headers=None, content=None):
        self.requests.append((method, url, dict(headers or {}), content))
        if "down" in url:
            raise httpx.ConnectError("refused")
        return DummyResp(418, "teapot")


@pytest.fixture
def dummy_client(monkeypatch):
    DummyAsyncClient.instances = []
    monkeypatch.setattr(http_mod.httpx, "AsyncClient", DummyAsyncClient)
    return DummyAsyncClient


def test_normalize_http_config_defaults():
    assert normalize_http_config(None) == {
        'timeout': 5.0,
        'retries': 0,
        'backoff': 0.2,
        'headers': {},
        'follow-redirects': False,
    }
    cfg = normalize_http_config({'timeout': '2', 'headers': {'X-Token': 7}, 'follow-redirects': 1})
    assert cfg['timeout'] == 2.0
    assert cfg['headers'] == {'X-Token': '7'}
    assert cfg['follow-redirects'] is True


@pytest.mark.asyncio
async def test_any_status_is_a_result(dummy_client):
    out = await http_request("get", "http://example/api")
    assert out == HttpResult(418, "teapot")
    client = dummy_client.instances[0]
    method, url, headers, content = client.requests[0]
    assert (method, url, content) == ("GET", "http://example/api", None)
    assert "Content-Type" not in headers
    assert client.kwargs == {"timeout": 5.0, "follow_redirects": False}


@pytest.mark.asyncio
async def test_body_is_sent_as_utf8_text(dummy_client):
    await http_request("PUT", "http://example/api", data="héllo", config={"headers": {"X-A": "1"}})
    _, _, headers, content = dummy_client.instances[0].requests[0]
    assert content == "héllo".encode("utf-8")
    assert headers["Content-Type"] == "text/plain; charset=utf-8"
    assert headers["X-A"] == "1"


@pytest.mark.asyncio
async def test_configured_content_type_wins(dummy_client):
    await http_request("POST", "http://example/api", data="{}", config={"headers": {"content-type": "application/json"}})
    _, _, headers, _ = dummy_client.instances[0].requests[0]
    assert headers == {"content-type": "application/json"}


@pytest.mark.asyncio
async def test_transport_error_returns_none_after_retries(dummy_client):
    out = await http_request("GET", "http://down/", config={"retries": 2, "backoff": 0})
    assert out is None
    assert len(dummy_client.instances[0].requests) == 3


@pytest.mark.asyncio
async def test_live_server_roundtrip(http_server):
    assert await http_request("GET", f"{http_server}/ping") == HttpResult(200, "pong")
    assert await http_request("PUT", f"{http_server}/k", data="v") == HttpResult(200, "v")
    assert await http_request("GET", f"{http_server}/k") == HttpResult(200, "v")
    assert await http_request("DELETE", f"{http_server}/k") == HttpResult(200, "deleted")
    assert (await http_request("GET", f"{http_server}/k")).status == 404


@pytest.mark.asyncio
async def test_redirects_are_not_followed_by_default(http_server):
    assert (await http_request("GET", f"{http_server}/redirect")).status == 302
    followed = await http_request("GET", f"{http_server}/redirect", config={"follow-redirects": True})
    assert followed == HttpResult(200, "pong")


@pytest.mark.asyncio
async def test_unreachable_and_invalid_urls_are_transport_failures():
    assert await http_request("GET", "http://127.0.0.1:1/", config={"timeout": 1}) is None
    assert await http_request("GET", "not a url") is None
