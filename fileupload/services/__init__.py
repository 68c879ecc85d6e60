"""Services for fileupload module."""
from .client_cache import RemoteClientCache, build_s3_client, prefix_endpoint
from .dimensions import DimensionResolver
from .secrets import HTTPSecretProvider

__all__ = [
    "RemoteClientCache",
    "build_s3_client",
    "prefix_endpoint",
    "DimensionResolver",
    "HTTPSecretProvider",
]
