"""
Protocols (Interfaces) for Dependency Inversion.

Small interfaces for the collaborators the store depends on.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Protocol, Tuple, runtime_checkable

from .models import FileUploadRecord


@runtime_checkable
class ISecretProvider(Protocol):
    """Interface for fetching a short-lived upload token."""

    async def __call__(self) -> str:
        """Return a bearer token for the proxy PUT."""
        ...


@runtime_checkable
class IDimensionResolver(Protocol):
    """Interface for measuring an uploaded image."""

    async def resolve(self, url: str) -> Tuple[int, int]:
        """Return (width, height) of the image at url."""
        ...


@runtime_checkable
class IS3Client(Protocol):
    """The subset of the boto3 S3 client the credentials strategy uses."""

    def put_object(self, **kwargs) -> Dict[str, Any]:
        ...

    def generate_presigned_url(
        self,
        ClientMethod: str,
        Params: Optional[Dict[str, Any]] = None,
        ExpiresIn: int = 3600,
    ) -> str:
        ...


class IUploadStrategy(ABC):
    """Interface for a remote delivery strategy."""

    label: str = "Upload"

    @abstractmethod
    async def upload(self, record: FileUploadRecord) -> str:
        """Deliver the record's file and return its retrievable URL."""
        pass

    def describe_error(self, error: BaseException) -> str:
        """Turn a failure into a message naming the backend."""
        detail = str(error) or type(error).__name__
        return f"{self.label} upload error: {detail}"
