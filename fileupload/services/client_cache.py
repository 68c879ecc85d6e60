"""
Remote Client Cache - Single Responsibility: hold one S3 client per credential set.

Construction is local only; botocore does not open a connection until the
first request, so failures surface at transfer time.
"""
import logging
import re
from typing import Any, Callable, Optional

import boto3
from botocore.config import Config

from ..models import StorageCredentials

logger = logging.getLogger(__name__)

# us-east-1 keeps non-AWS providers (filebase, minio, ...) happy
DEFAULT_REGION = "us-east-1"

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def prefix_endpoint(endpoint: str) -> str:
    """Add an https scheme to endpoints given as bare hosts."""
    return endpoint if _SCHEME_RE.match(endpoint) else f"https://{endpoint}"


def build_s3_client(credentials: StorageCredentials, region: str = "") -> Any:
    """Build a path-style boto3 S3 client for an S3-compatible endpoint."""
    session = boto3.session.Session(
        aws_access_key_id=credentials.access_key_id,
        aws_secret_access_key=credentials.secret_access_key,
    )
    return session.client(
        "s3",
        endpoint_url=prefix_endpoint(credentials.endpoint),
        region_name=region or DEFAULT_REGION,
        config=Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
        ),
    )


class RemoteClientCache:
    """
    Lazily builds and memoizes a single remote storage client.

    The cached client is replaced, never mutated, when credentials change,
    so dispatches holding the old instance finish undisturbed. The region is
    fixed by the first acquire for a credential set; later acquires with the
    same credentials share that client whatever region they ask for.
    """

    def __init__(
        self,
        factory: Callable[[StorageCredentials, str], Any] = build_s3_client,
    ):
        self._factory = factory
        self._client: Optional[Any] = None
        self._credentials: Optional[StorageCredentials] = None
        self._constructed = 0

    @property
    def client(self) -> Optional[Any]:
        return self._client

    @property
    def constructed(self) -> int:
        """Number of clients built so far."""
        return self._constructed

    def acquire(self, credentials: StorageCredentials, region: str = "") -> Any:
        """
        Return the client for credentials, building it on first use.

        Args:
            credentials: Credential set (compared by value)
            region: Bucket region used when a client is built, defaults to us-east-1

        Returns:
            Memoized storage client
        """
        if self._client is not None and self._credentials == credentials:
            return self._client

        if self._client is not None:
            logger.debug("Credentials changed, replacing storage client")

        self._client = self._factory(credentials, region)
        self._credentials = credentials
        self._constructed += 1
        logger.debug(f"Created storage client for {credentials.endpoint}")
        return self._client

    def invalidate(self) -> None:
        """Forget the cached client."""
        self._client = None
        self._credentials = None
