"""Unit tests for the Metal registry client"""
import json
import httpx
import pytest

from app.services.errors import RegistryUnavailableError
from app.services.metal_client import MetalClient


def make_client(handler) -> MetalClient:
    return MetalClient(
        base_url="https://metal.test",
        api_key="secret",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


class TestMetalClient:
    """Tests for MetalClient request shaping and error mapping"""

    @pytest.mark.asyncio
    async def test_create_token_request(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["key"] = request.headers.get("x-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"jobId": "job-1", "status": "pending"})

        client = make_client(handler)
        await client.connect()
        data = await client.create_token("Alpha", "ALP", "0xM", can_lp=False)
        await client.disconnect()

        assert data == {"jobId": "job-1", "status": "pending"}
        assert seen["method"] == "POST"
        assert seen["path"] == "/merchant/create-token"
        assert seen["key"] == "secret"
        assert seen["body"] == {
            "name": "Alpha",
            "symbol": "ALP",
            "merchantAddress": "0xM",
            "canDistribute": True,
            "canLP": False,
        }

    @pytest.mark.asyncio
    async def test_endpoint_paths(self):
        paths = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append((request.method, request.url.path))
            return httpx.Response(200, json={})

        client = make_client(handler)
        await client.connect()
        await client.get_job_status("job-1")
        await client.get_token("0xA")
        await client.create_liquidity("0xA")
        await client.get_or_create_holder("42")
        await client.distribute("0xA", "0xB", 5)
        await client.disconnect()

        assert paths == [
            ("GET", "/merchant/create-token/status/job-1"),
            ("GET", "/token/0xA"),
            ("POST", "/token/0xA/liquidity"),
            ("PUT", "/holder/42"),
            ("POST", "/token/0xA/distribute"),
        ]

    @pytest.mark.asyncio
    async def test_list_tokens_normalizes_bare_list(self):
        client = make_client(lambda request: httpx.Response(200, json=[{"symbol": "A"}]))
        await client.connect()
        assert await client.list_tokens() == {"tokens": [{"symbol": "A"}]}
        await client.disconnect()

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        client = make_client(lambda request: httpx.Response(404, text="no such token"))
        await client.connect()
        with pytest.raises(RegistryUnavailableError) as exc_info:
            await client.get_token("0xMISSING")
        await client.disconnect()

        assert exc_info.value.upstream_status == 404
        assert exc_info.value.http_status == 404
        assert exc_info.value.body == "no such token"

    @pytest.mark.asyncio
    async def test_server_error_maps_to_bad_gateway(self):
        client = make_client(lambda request: httpx.Response(500, text="oops"))
        await client.connect()
        with pytest.raises(RegistryUnavailableError) as exc_info:
            await client.list_tokens()
        await client.disconnect()
        assert exc_info.value.http_status == 502

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler)
        await client.connect()
        with pytest.raises(RegistryUnavailableError) as exc_info:
            await client.get_job_status("job-1")
        await client.disconnect()
        assert exc_info.value.upstream_status is None

    def test_requires_connect(self):
        with pytest.raises(RuntimeError):
            _ = MetalClient(base_url="https://metal.test", api_key="k").client
