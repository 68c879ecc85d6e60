"""
Dimension Resolver - Single Responsibility: measure uploaded images.

Downloads the image at its public URL and reads its size with Pillow.
"""
import asyncio
import io
from typing import Callable, Optional, Tuple

import httpx
from PIL import Image


def measure_image(data: bytes) -> Tuple[int, int]:
    """Return (width, height) of an encoded image."""
    with Image.open(io.BytesIO(data)) as image:
        width, height = image.size
    return width, height


class DimensionResolver:
    """
    Service for resolving pixel dimensions of remote images.

    Implements IDimensionResolver protocol.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: int = 30,
        http_provider: Optional[Callable[[], httpx.AsyncClient]] = None,
    ):
        """
        Args:
            http_client: Client to reuse for every download
            timeout: Timeout for the throwaway client used when none is given
            http_provider: Called per download to get the current client
        """
        self._client = http_client
        self._timeout = timeout
        self._http_provider = http_provider

    async def resolve(self, url: str) -> Tuple[int, int]:
        """
        Fetch an image and measure it.

        Args:
            url: Public URL of the uploaded image

        Returns:
            (width, height) in pixels
        """
        client = self._http_provider() if self._http_provider is not None else self._client
        if client is not None:
            response = await client.get(url, follow_redirects=True)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, follow_redirects=True)

        response.raise_for_status()

        # Decoding is CPU work, keep it off the loop
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, measure_image, response.content)
