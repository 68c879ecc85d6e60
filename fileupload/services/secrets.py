"""HTTP adapter for fetching short-lived upload tokens."""
from __future__ import annotations

import asyncio
from typing import Optional

import httpx


class HTTPSecretProvider:
    """
    Fetch a bearer token from a secret endpoint.

    The endpoint answers GET with a JSON-encoded string. Implements the
    ISecretProvider protocol.
    """

    def __init__(
        self,
        url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: int = 30,
        max_retries: int = 3,
    ):
        self._url = url
        self._client = http_client
        self._timeout = timeout
        self._max_retries = max_retries

    async def __call__(self) -> str:
        if self._client is not None:
            return await self._fetch(self._client)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await self._fetch(client)

    async def _fetch(self, client: httpx.AsyncClient) -> str:
        last_exception = None

        for attempt in range(self._max_retries):
            try:
                response = await client.get(self._url)

                if response.status_code >= 500 and attempt < self._max_retries - 1:
                    await asyncio.sleep(0.5 * (attempt + 1))
                    continue

                if response.status_code >= 400:
                    raise RuntimeError(
                        f"Secret error {response.status_code} on GET {self._url}: {response.text}"
                    )

                token = response.json()
                if not isinstance(token, str) or not token:
                    raise RuntimeError(f"Secret endpoint {self._url} returned no token")
                return token
            except (httpx.RequestError, httpx.TimeoutException) as exc:
                last_exception = exc
                if attempt < self._max_retries - 1:
                    await asyncio.sleep(0.5 * (attempt + 1))
                    continue
                raise

        if last_exception:
            raise last_exception
        raise RuntimeError(f"Failed to GET {self._url} after {self._max_retries} attempts")
