"""Tests for fileupload services."""
import io
import json
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from PIL import Image

from fileupload.models import StorageCredentials
from fileupload.services.client_cache import (
    DEFAULT_REGION,
    RemoteClientCache,
    build_s3_client,
    prefix_endpoint,
)
from fileupload.services.dimensions import DimensionResolver, measure_image
from fileupload.services.secrets import HTTPSecretProvider


CREDS = StorageCredentials("AKIDEXAMPLE", "secret", "s3.example.com")


def _png(width: int, height: int) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 10, 10)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestPrefixEndpoint:
    def test_adds_scheme(self):
        assert prefix_endpoint("s3.example.com") == "https://s3.example.com"

    def test_keeps_existing_scheme(self):
        assert prefix_endpoint("http://localhost:9000") == "http://localhost:9000"
        assert prefix_endpoint("https://s3.example.com/base") == "https://s3.example.com/base"


class TestBuildS3Client:
    def test_path_style_and_defaults(self):
        client = build_s3_client(CREDS)

        assert client.meta.endpoint_url == "https://s3.example.com"
        assert client.meta.region_name == DEFAULT_REGION
        assert client.meta.config.s3["addressing_style"] == "path"

    def test_explicit_region(self):
        client = build_s3_client(CREDS, "eu-central-1")
        assert client.meta.region_name == "eu-central-1"


class TestRemoteClientCache:
    def test_memoizes_equal_credentials(self):
        factory = Mock(side_effect=lambda creds, region: object())
        cache = RemoteClientCache(factory)

        first = cache.acquire(CREDS, "us-east-1")
        second = cache.acquire(StorageCredentials("AKIDEXAMPLE", "secret", "s3.example.com"), "us-east-1")

        assert first is second
        assert cache.constructed == 1
        factory.assert_called_once_with(CREDS, "us-east-1")

    def test_replaces_on_credential_change(self):
        cache = RemoteClientCache(lambda creds, region: object())

        first = cache.acquire(CREDS)
        rotated = cache.acquire(StorageCredentials("AKIDEXAMPLE", "rotated", "s3.example.com"))

        assert first is not rotated
        assert cache.client is rotated
        assert cache.constructed == 2

    def test_region_does_not_rebuild(self):
        factory = Mock(side_effect=lambda creds, region: object())
        cache = RemoteClientCache(factory)

        first = cache.acquire(CREDS, "eu-west-1")
        second = cache.acquire(CREDS, "us-west-2")

        assert first is second
        assert cache.constructed == 1
        factory.assert_called_once_with(CREDS, "eu-west-1")

    def test_invalidate(self):
        cache = RemoteClientCache(lambda creds, region: object())
        cache.acquire(CREDS)
        cache.invalidate()
        assert cache.client is None
        cache.acquire(CREDS)
        assert cache.constructed == 2


class TestDimensionResolver:
    def test_measure_image(self):
        assert measure_image(_png(32, 16)) == (32, 16)

    @pytest.mark.asyncio
    async def test_resolve_follows_redirects(self):
        image = _png(64, 48)

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old.png":
                return httpx.Response(302, headers={"Location": "https://cdn.example/new.png"})
            return httpx.Response(200, content=image, headers={"Content-Type": "image/png"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            resolver = DimensionResolver(client)
            assert await resolver.resolve("https://cdn.example/old.png") == (64, 48)

    @pytest.mark.asyncio
    async def test_resolve_raises_on_http_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await DimensionResolver(client).resolve("https://cdn.example/missing.png")

    @pytest.mark.asyncio
    async def test_resolve_raises_on_non_image(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"not an image"))
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(Exception):
                await DimensionResolver(client).resolve("https://cdn.example/file.txt")


class TestHTTPSecretProvider:
    @pytest.mark.asyncio
    async def test_returns_json_token(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=json.dumps("tok-123")))
        async with httpx.AsyncClient(transport=transport) as client:
            provider = HTTPSecretProvider("https://ship.example/secret", http_client=client)
            assert await provider() == "tok-123"

    @pytest.mark.asyncio
    async def test_retries_server_errors(self, monkeypatch):
        monkeypatch.setattr("fileupload.services.secrets.asyncio.sleep", AsyncMock())
        responses = iter([httpx.Response(503), httpx.Response(200, content=json.dumps("tok-456"))])
        transport = httpx.MockTransport(lambda request: next(responses))

        async with httpx.AsyncClient(transport=transport) as client:
            provider = HTTPSecretProvider("https://ship.example/secret", http_client=client)
            assert await provider() == "tok-456"

    @pytest.mark.asyncio
    async def test_client_error_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(403, text="forbidden"))
        async with httpx.AsyncClient(transport=transport) as client:
            provider = HTTPSecretProvider("https://ship.example/secret", http_client=client)
            with pytest.raises(RuntimeError, match="403"):
                await provider()

    @pytest.mark.asyncio
    async def test_empty_token_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=json.dumps("")))
        async with httpx.AsyncClient(transport=transport) as client:
            provider = HTTPSecretProvider("https://ship.example/secret", http_client=client)
            with pytest.raises(RuntimeError, match="no token"):
                await provider()
