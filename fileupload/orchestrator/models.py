"""Orchestrator data models."""
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from ..models import FileUploadRecord, SourceFile, StorageConfiguration
from ..protocols import IUploadStrategy

if TYPE_CHECKING:
    from .core import UploadStore


@dataclass
class Uploader:
    """
    A named destination owning the records of its transfers.

    Configuration and strategy are fixed at creation. Records are only
    changed through the owning store's update path.
    """
    key: str
    configuration: StorageConfiguration
    strategy: IUploadStrategy
    store: "UploadStore" = field(repr=False, compare=False)
    files: Dict[str, FileUploadRecord] = field(default_factory=dict)

    def upload_files(self, files: Iterable[SourceFile]) -> List[str]:
        return self.store.upload_files(self.key, files)

    def clear(self) -> None:
        self.store.clear(self.key)

    def remove_by_url(self, url: str) -> None:
        self.store.remove_by_url(self.key, url)

    def get_most_recent(self) -> Optional[FileUploadRecord]:
        return self.store.get_most_recent(self.key)
