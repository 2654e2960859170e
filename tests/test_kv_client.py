"""
Tests for the Consul HTTP KV client against a local aiohttp server.
"""

import base64

import pytest
from aiohttp import web
from aiohttp import test_utils

from consul_config.domain.models import RawEntry
from consul_config.infrastructure.exceptions import TransportError
from consul_config.infrastructure.kv_client import ConsulKVClient, QueryOptions


def encode(text):
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class FakeConsul:
    """Minimal stand-in for the Consul KV endpoint that records requests."""

    def __init__(self, status=200, body=None, index="42", text=None):
        self.status = status
        self.body = body if body is not None else []
        self.index = index
        self.text = text
        self.requests = []

    async def handle(self, request):
        self.requests.append(request)
        headers = {"X-Consul-Index": self.index} if self.index else {}
        if self.text is not None:
            return web.Response(status=self.status, text=self.text, headers=headers)
        return web.json_response(self.body, status=self.status, headers=headers)

    def app(self):
        app = web.Application()
        app.router.add_get("/v1/kv/{key:.*}", self.handle)
        return app


def address_of(server):
    return str(server.make_url("")).rstrip("/")


class TestList:
    """Test decoding of successful responses."""

    @pytest.mark.asyncio
    async def test_entries_are_decoded(self):
        consul = FakeConsul(body=[
            {"Key": "app/base/db", "Value": encode('{"host": "a"}')},
            {"Key": "app/base/", "Value": None},
        ])

        async with test_utils.TestServer(consul.app()) as server:
            async with ConsulKVClient(address_of(server)) as client:
                result = await client.list("app/", QueryOptions())

        assert result.last_index == 42
        assert result.entries == (
            RawEntry("app/base/db", b'{"host": "a"}'),
            RawEntry("app/base/", None),
        )

    @pytest.mark.asyncio
    async def test_request_carries_prefix_token_and_datacenter(self):
        consul = FakeConsul()

        async with test_utils.TestServer(consul.app()) as server:
            async with ConsulKVClient(address_of(server), token="default-token") as client:
                await client.list("app/", QueryOptions(datacenter="dc1"))
                await client.list("app/", QueryOptions(token="override-token"))

        first, second = consul.requests
        assert first.path == "/v1/kv/app/"
        assert first.query["recurse"] == "true"
        assert first.query["dc"] == "dc1"
        assert "index" not in first.query
        assert first.headers["X-Consul-Token"] == "default-token"
        assert second.headers["X-Consul-Token"] == "override-token"

    @pytest.mark.asyncio
    async def test_blocking_query_parameters(self):
        consul = FakeConsul()

        async with test_utils.TestServer(consul.app()) as server:
            async with ConsulKVClient(address_of(server)) as client:
                await client.list("app/", QueryOptions(wait_index=17, wait_time=10.0))

        request = consul.requests[0]
        assert request.query["index"] == "17"
        assert request.query["wait"] == "10s"
        assert "X-Consul-Token" not in request.headers

    @pytest.mark.asyncio
    @pytest.mark.parametrize("wait_time,expected", [(0.5, "1s"), (2.2, "3s")])
    async def test_fractional_wait_rounds_up_to_whole_seconds(self, wait_time, expected):
        consul = FakeConsul()

        async with test_utils.TestServer(consul.app()) as server:
            async with ConsulKVClient(address_of(server)) as client:
                await client.list("app/", QueryOptions(wait_index=3, wait_time=wait_time))

        assert consul.requests[0].query["wait"] == expected

    @pytest.mark.asyncio
    async def test_missing_prefix_is_empty(self):
        consul = FakeConsul(status=404, text="", index="9")

        async with test_utils.TestServer(consul.app()) as server:
            async with ConsulKVClient(address_of(server)) as client:
                result = await client.list("missing/", QueryOptions())

        assert result.entries == ()
        assert result.last_index == 9

    @pytest.mark.asyncio
    async def test_malformed_index_header_is_ignored(self):
        consul = FakeConsul(index="not-a-number")

        async with test_utils.TestServer(consul.app()) as server:
            async with ConsulKVClient(address_of(server)) as client:
                result = await client.list("app/", QueryOptions())

        assert result.last_index == 0


class TestFailures:
    """Test mapping of failures to TransportError."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [403, 500])
    async def test_error_status_raises(self, status):
        consul = FakeConsul(status=status, text="denied")

        async with test_utils.TestServer(consul.app()) as server:
            async with ConsulKVClient(address_of(server)) as client:
                with pytest.raises(TransportError) as exc_info:
                    await client.list("app/", QueryOptions())

        assert exc_info.value.status_code == status
        assert exc_info.value.to_dict()["error_code"] == "TRANSPORT_ERROR"

    @pytest.mark.asyncio
    async def test_malformed_body_raises(self):
        consul = FakeConsul(text="<html>")

        async with test_utils.TestServer(consul.app()) as server:
            async with ConsulKVClient(address_of(server)) as client:
                with pytest.raises(TransportError):
                    await client.list("app/", QueryOptions())

    @pytest.mark.asyncio
    async def test_unreachable_store_raises(self):
        async with ConsulKVClient("http://127.0.0.1:1") as client:
            with pytest.raises(TransportError) as exc_info:
                await client.list("app/", QueryOptions())

        assert exc_info.value.cause is not None


class TestQueryOptions:
    def test_blocking_needs_index_and_wait(self):
        assert not QueryOptions().is_blocking
        assert not QueryOptions(wait_index=3).is_blocking
        assert not QueryOptions(wait_time=5.0).is_blocking
        assert QueryOptions(wait_index=3, wait_time=5.0).is_blocking
