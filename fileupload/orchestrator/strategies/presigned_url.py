"""Upload through a proxy that redirects to a signed bucket URL."""
import logging
from typing import Callable, Optional

import httpx

from ...errors import UploadError
from ...models import FileUploadRecord, PresignedUrlConfiguration
from ...protocols import ISecretProvider, IUploadStrategy

logger = logging.getLogger(__name__)


class PresignedUrlStrategy(IUploadStrategy):
    """
    Two-step proxy upload.

    1. PUT the body to ``{proxy}/{key}?token=...``; the proxy redirects to a
       time-limited signed URL and the client follows it. The token lives in
       the query string only, so it does not survive the redirect.
    2. GET ``{proxy}/{key}`` to learn the durable public URL, returned as a
       JSON string. Reads then go straight to the bucket, not the proxy.
    """

    label = "Hosting"

    def __init__(
        self,
        configuration: PresignedUrlConfiguration,
        http_provider: Callable[[], httpx.AsyncClient],
        secret_provider: Optional[ISecretProvider] = None,
    ):
        self._config = configuration
        self._http_provider = http_provider
        self._secret_provider = secret_provider

    def object_url(self, key: str) -> str:
        return f"{self._config.proxy_base_url.rstrip('/')}/{key}"

    async def upload(self, record: FileUploadRecord) -> str:
        url = self.object_url(record.key)

        params = None
        if self._secret_provider is not None:
            params = {"token": await self._secret_provider()}

        http = self._http_provider()
        response = await http.put(
            url,
            params=params,
            content=record.file.data,
            headers={"Content-Type": record.file.content_type},
            follow_redirects=True,
        )
        if response.status_code != 200:
            raise UploadError(response.text or "Incorrect response status")

        logger.debug(f"Proxy accepted {record.key}, resolving public url")
        file_url_response = await http.get(url, follow_redirects=True)
        if file_url_response.status_code != 200:
            raise UploadError(file_url_response.text or "Incorrect response status")

        file_url = file_url_response.json()
        if not isinstance(file_url, str) or not file_url:
            raise UploadError(f"proxy returned no url for {record.key}")
        return file_url

    def describe_error(self, error: BaseException) -> str:
        detail = str(error) or type(error).__name__
        return f"{self.label} upload error: {detail}, contact support if it persists."
