"""Per-file dispatch through an uploader's strategy."""
import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from ..models import FileUploadRecord
from ..protocols import IDimensionResolver
from .models import Uploader

if TYPE_CHECKING:
    from .core import UploadStore

logger = logging.getLogger(__name__)


class UploadDispatcher:
    """
    Drives one record through ``loading -> success | error``.

    Every transition is written with a single store update. Failures stay
    inside the record: nothing raised by a strategy reaches the caller or
    sibling transfers.
    """

    def __init__(
        self,
        store: "UploadStore",
        dimension_resolver: Optional[IDimensionResolver] = None,
    ):
        self._store = store
        self._resolver = dimension_resolver

    def dispatch(self, uploader: Uploader, file_key: str) -> asyncio.Task:
        """Mark the record loading and schedule its transfer."""
        self._store.update(uploader.key, lambda files: _transition(files, file_key, FileUploadRecord.loading))
        return self._store.spawn(self._run(uploader, file_key))

    async def _run(self, uploader: Uploader, file_key: str) -> None:
        record = uploader.files.get(file_key)
        if record is None:
            logger.debug(f"Record {file_key} vanished before transfer started")
            return

        strategy = uploader.strategy
        logger.info(f"Uploading {file_key} ({record.file.size} bytes) via {strategy.label}")

        try:
            url = await strategy.upload(record)
        except Exception as e:
            message = strategy.describe_error(e)
            logger.warning(f"Upload of {file_key} failed: {message}")
            self._store.update(uploader.key, lambda files: _transition(files, file_key, lambda r: r.fail(message)))
            return

        logger.info(f"Uploaded {file_key} -> {url}")
        self._store.update(uploader.key, lambda files: _transition(files, file_key, lambda r: r.succeed(url)))

        if self._resolver is not None and record.file.is_image:
            self._store.spawn(self._resolve_dimensions(uploader.key, file_key, url))

    async def _resolve_dimensions(self, uploader_key: str, file_key: str, url: str) -> None:
        try:
            dimensions = await self._resolver.resolve(url)
        except Exception as e:
            logger.warning(f"Could not measure {url}: {e}")
            return

        self._store.update(
            uploader_key,
            lambda files: _transition(files, file_key, lambda r: r.with_dimensions(dimensions)),
        )


def _transition(files, file_key, move) -> None:
    """Replace one record with its successor, leaving the rest of the map alone."""
    current = files.get(file_key)
    if current is None:
        logger.debug(f"Dropping update for removed record {file_key}")
        return
    files[file_key] = move(current)
