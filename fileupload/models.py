"""
Models for fileupload module.

Immutable dataclasses: records move through their lifecycle by returning
new instances, so a reader never sees a half-applied transition.
"""
import mimetypes
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

from .errors import InvalidTransition


DEFAULT_CONTENT_TYPE = "application/octet-stream"


class UploadStatus(Enum):
    """Lifecycle of a single file transfer."""
    INITIAL = "initial"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadStatus.SUCCESS, UploadStatus.ERROR)

    def can_move_to(self, target: "UploadStatus") -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS = {
    UploadStatus.INITIAL: {UploadStatus.LOADING},
    UploadStatus.LOADING: {UploadStatus.SUCCESS, UploadStatus.ERROR},
    UploadStatus.SUCCESS: set(),
    UploadStatus.ERROR: set(),
}


class StorageService(Enum):
    """Supported delivery strategies."""
    PRESIGNED_URL = "presigned-url"
    CREDENTIALS = "credentials"


@dataclass(frozen=True)
class StorageCredentials:
    """Credential set for an S3-compatible provider."""
    access_key_id: str
    secret_access_key: str
    endpoint: str

    @property
    def is_complete(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key and self.endpoint)

    def __repr__(self) -> str:
        return (
            f"StorageCredentials(access_key_id={self.access_key_id!r}, "
            f"secret_access_key='***', endpoint={self.endpoint!r})"
        )


@dataclass(frozen=True)
class PresignedUrlConfiguration:
    """Upload through a trusted proxy that hands out signed URLs."""
    proxy_base_url: str

    @property
    def service(self) -> StorageService:
        return StorageService.PRESIGNED_URL


@dataclass(frozen=True)
class CredentialsConfiguration:
    """Upload straight to a bucket with the configured credentials."""
    bucket: str
    region: str = ""
    public_url_base: Optional[str] = None

    @property
    def service(self) -> StorageService:
        return StorageService.CREDENTIALS


StorageConfiguration = Union[PresignedUrlConfiguration, CredentialsConfiguration]


@dataclass(frozen=True)
class SourceFile:
    """A local file handed over for upload."""
    name: str
    data: bytes
    content_type: str = DEFAULT_CONTENT_TYPE

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")

    @classmethod
    def from_path(cls, path: Path, content_type: Optional[str] = None) -> "SourceFile":
        """Read a file from disk, guessing its MIME type from the extension."""
        path = Path(path)
        if content_type is None:
            content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            data=path.read_bytes(),
            content_type=content_type or DEFAULT_CONTENT_TYPE,
        )

    def __repr__(self) -> str:
        return f"SourceFile(name={self.name!r}, size={self.size}, content_type={self.content_type!r})"


@dataclass(frozen=True)
class FileUploadRecord:
    """Tracked state of one file transfer attempt."""
    key: str
    file: SourceFile
    status: UploadStatus = UploadStatus.INITIAL
    remote_url: Optional[str] = None
    dimensions: Optional[Tuple[int, int]] = None
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == UploadStatus.SUCCESS

    def _move(self, status: UploadStatus, **changes) -> "FileUploadRecord":
        if not self.status.can_move_to(status):
            raise InvalidTransition(
                f"{self.key}: cannot move from {self.status.value} to {status.value}"
            )
        return replace(self, status=status, **changes)

    def loading(self) -> "FileUploadRecord":
        return self._move(UploadStatus.LOADING)

    def succeed(self, url: str) -> "FileUploadRecord":
        if not url:
            raise ValueError(f"{self.key}: a successful upload needs a remote url")
        return self._move(UploadStatus.SUCCESS, remote_url=url)

    def fail(self, message: str) -> "FileUploadRecord":
        if not message:
            raise ValueError(f"{self.key}: a failed upload needs an error message")
        return self._move(UploadStatus.ERROR, error_message=message)

    def with_dimensions(self, dimensions: Tuple[int, int]) -> "FileUploadRecord":
        """Attach pixel size; only meaningful once the transfer succeeded."""
        if self.status != UploadStatus.SUCCESS:
            raise InvalidTransition(
                f"{self.key}: dimensions can only be set on a successful upload"
            )
        width, height = dimensions
        return replace(self, dimensions=(int(width), int(height)))
