import asyncio

import httpx
import pytest
from django.test import override_settings

from core.clients import HttpAccessControlClient, LocalAccessControlClient, get_access_client
from core.exceptions import AccessFetchError


def _client(handler):
    return HttpAccessControlClient("http://access.test/", transport=httpx.MockTransport(handler))


def test_http_client_unwraps_data():
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(200, json={"success": True, "data": ["view_fees"]})

    result = asyncio.run(_client(handler).fetch_permissions("7"))

    assert result == ["view_fees"]
    assert seen == ["/api/access/7/permissions/"]


def test_http_client_modules_path():
    def handler(request):
        assert request.url.path == "/api/access/7/modules/"
        return httpx.Response(200, json={"data": []})

    assert asyncio.run(_client(handler).fetch_modules("7")) == []


def test_http_client_raises_on_error_status():
    client = _client(lambda request: httpx.Response(503, json={"success": False}))

    with pytest.raises(AccessFetchError) as excinfo:
        asyncio.run(client.fetch_permissions("7"))
    assert excinfo.value.status_code == 503


def test_http_client_raises_on_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(AccessFetchError):
        asyncio.run(_client(handler).fetch_modules("7"))


def test_http_client_raises_on_invalid_json():
    client = _client(lambda request: httpx.Response(200, content=b"<html>"))

    with pytest.raises(AccessFetchError):
        asyncio.run(client.fetch_permissions("7"))


@override_settings(NAVIGATION={"ACCESS_CLIENT": "http", "ACCESS_SERVICE_URL": "http://access.test"})
def test_get_access_client_http():
    client = get_access_client()
    assert isinstance(client, HttpAccessControlClient)
    assert client.base_url == "http://access.test"


@override_settings(NAVIGATION={"ACCESS_CLIENT": "local"})
def test_get_access_client_local():
    assert isinstance(get_access_client(), LocalAccessControlClient)


@override_settings(NAVIGATION={"ACCESS_CLIENT": "http", "ACCESS_SERVICE_URL": ""})
def test_get_access_client_requires_url():
    with pytest.raises(AccessFetchError):
        get_access_client()
