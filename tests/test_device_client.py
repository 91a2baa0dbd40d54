"""Tests for the httpx-based DeviceServiceClient."""

import asyncio
import json

import httpx
import pytest

from equipsync.common.config import ConnectionConfig
from equipsync.common.exceptions import DeviceCommunicationError
from equipsync.services.binding.device_client import DeviceServiceClient


def _client(handler, **connection):
    conn = ConnectionConfig(id="c1", host="relay.local", port=8080, **connection)
    return DeviceServiceClient([conn], transport=httpx.MockTransport(handler))


def _call(client, method, *args):
    async def scenario():
        try:
            return await getattr(client, method)(*args)
        finally:
            await client.close()

    return asyncio.run(scenario())


def test_put_sends_json_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"isOn": True})

    res = _call(_client(handler), "put", "c1", "/state/device/b1", {"isOn": True, "latch": 7000})

    assert seen == {
        "method": "PUT",
        "url": "http://relay.local:8080/state/device/b1",
        "body": {"isOn": True, "latch": 7000},
    }
    assert res.ok
    assert res.status.message == "OK"
    assert res.body == {"isOn": True}


def test_get_uses_base_path():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"hasFault": False})

    res = _call(_client(handler, base_path="api/v1/"), "get", "c1", "/status/device/b1")

    assert seen["url"] == "http://relay.local:8080/api/v1/status/device/b1"
    assert res.body == {"hasFault": False}


def test_non_200_is_returned_not_raised():
    def handler(request):
        return httpx.Response(503, text="relay busy")

    res = _call(_client(handler), "put", "c1", "/state/device/b1", {"isOn": True})

    assert not res.ok
    assert res.status.code == 503
    assert res.status.message == "Service Unavailable"
    assert res.body == "relay busy"


def test_empty_body_decodes_to_none():
    res = _call(_client(lambda request: httpx.Response(204)), "get", "c1", "/status/device/b1")

    assert res.status.code == 204
    assert res.body is None


def test_transport_error_raises_communication_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DeviceCommunicationError) as exc_info:
        _call(_client(handler), "get", "c1", "/status/device/b1")

    assert exc_info.value.connection_id == "c1"
    assert exc_info.value.path == "/status/device/b1"


def test_unknown_connection_raises():
    client = _client(lambda request: httpx.Response(200))

    with pytest.raises(DeviceCommunicationError):
        _call(client, "put", "missing", "/state/device/b1", {"isOn": False})


def test_add_connection():
    client = DeviceServiceClient()
    client.add_connection(ConnectionConfig(id="c2", host="10.0.0.2", port=80))

    assert client.get_connection("c2").base_url == "http://10.0.0.2:80"
