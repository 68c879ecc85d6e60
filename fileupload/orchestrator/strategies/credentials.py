"""Upload directly to an S3-compatible bucket."""
import asyncio
import functools
import logging
from typing import Callable
from urllib.parse import urljoin

from ...errors import UploadError
from ...models import CredentialsConfiguration, FileUploadRecord
from ...protocols import IS3Client, IUploadStrategy

logger = logging.getLogger(__name__)

PUBLIC_READ = "public-read"


class CredentialsStrategy(IUploadStrategy):
    """
    Put objects with a credentialed client and publish them public-read.

    The client is looked up once per dispatch, so a credential rotation
    during a transfer does not swap the client under it.
    """

    label = "S3"

    def __init__(
        self,
        configuration: CredentialsConfiguration,
        client_provider: Callable[[], IS3Client],
    ):
        self._config = configuration
        self._client_provider = client_provider

    async def upload(self, record: FileUploadRecord) -> str:
        if not self._config.bucket:
            raise UploadError("no bucket configured")

        client = self._client_provider()
        loop = asyncio.get_running_loop()

        # boto3 is blocking
        await loop.run_in_executor(
            None,
            functools.partial(
                client.put_object,
                Bucket=self._config.bucket,
                Key=record.key,
                Body=record.file.data,
                ContentType=record.file.content_type,
                ContentLength=record.file.size,
                ACL=PUBLIC_READ,
            ),
        )
        logger.debug(f"Stored {record.key} in bucket {self._config.bucket}")

        return await loop.run_in_executor(None, self.public_url, client, record.key)

    def public_url(self, client: IS3Client, key: str) -> str:
        """
        Externally visible URL of an uploaded object.

        With a configured base the key is joined onto it. Otherwise a signed
        URL is requested and its query string dropped: the object is
        public-read, so the bare URL is valid.
        """
        if self._config.public_url_base:
            return urljoin(self._config.public_url_base, key)

        signed = client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self._config.bucket, "Key": key},
        )
        return signed.split("?")[0]

    def describe_error(self, error: BaseException) -> str:
        detail = str(error) or type(error).__name__
        return f"{self.label} upload error: {detail}, check your S3 configuration."
