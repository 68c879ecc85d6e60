"""
fileupload - Upload orchestration for S3-compatible storage.

Follows SOLID principles:
- Single Responsibility: cache, strategies, dispatcher and store are separate
- Open/Closed: new backends are new strategies
- Dependency Injection: clients, resolvers and secret providers are injected

Usage:
    from fileupload import UploadStore, SourceFile, CredentialsConfiguration

    async with UploadStore(owner="zod", credentials=creds) as store:
        uploader = store.get_or_create(
            "chat-attachments",
            CredentialsConfiguration(bucket="att", public_url_base="https://cdn.example/"),
        )
        uploader.upload_files([SourceFile.from_path(path)])
        await store.wait()
        record = uploader.get_most_recent()

    # Proxy-mediated uploads
    store = UploadStore(owner="zod", secret_provider=HTTPSecretProvider(secret_url))
    uploader = store.get_or_create(
        "chat-attachments",
        PresignedUrlConfiguration(proxy_base_url="https://proxy.example"),
    )
"""
from .errors import ConfigurationError, InvalidTransition, UnknownUploaderError, UploadError
from .keys import KeyGenerator
from .models import (
    CredentialsConfiguration,
    FileUploadRecord,
    PresignedUrlConfiguration,
    SourceFile,
    StorageConfiguration,
    StorageCredentials,
    StorageService,
    UploadStatus,
)
from .orchestrator import UploadStore, Uploader
from .services import DimensionResolver, HTTPSecretProvider, RemoteClientCache

__version__ = "0.1.0"
__all__ = [
    # Main
    "UploadStore",
    "Uploader",
    "KeyGenerator",
    # Models
    "FileUploadRecord",
    "UploadStatus",
    "SourceFile",
    "StorageCredentials",
    "StorageConfiguration",
    "StorageService",
    "PresignedUrlConfiguration",
    "CredentialsConfiguration",
    # Services
    "RemoteClientCache",
    "DimensionResolver",
    "HTTPSecretProvider",
    # Errors
    "UploadError",
    "InvalidTransition",
    "UnknownUploaderError",
    "ConfigurationError",
]
