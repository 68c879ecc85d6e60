"""Delivery strategies, one per storage service."""
from typing import Callable, Optional

import httpx

from ...models import (
    CredentialsConfiguration,
    PresignedUrlConfiguration,
    StorageConfiguration,
)
from ...protocols import IS3Client, ISecretProvider, IUploadStrategy
from .credentials import CredentialsStrategy
from .presigned_url import PresignedUrlStrategy


def build_strategy(
    configuration: StorageConfiguration,
    *,
    http_provider: Callable[[], httpx.AsyncClient],
    client_provider: Callable[[], IS3Client],
    secret_provider: Optional[ISecretProvider] = None,
) -> IUploadStrategy:
    """Pick the strategy for a configuration snapshot."""
    if isinstance(configuration, PresignedUrlConfiguration):
        return PresignedUrlStrategy(configuration, http_provider, secret_provider)
    if isinstance(configuration, CredentialsConfiguration):
        return CredentialsStrategy(configuration, client_provider)
    raise TypeError(f"Unsupported storage configuration: {configuration!r}")


__all__ = [
    "CredentialsStrategy",
    "PresignedUrlStrategy",
    "build_strategy",
]
