"""Core store - registry of uploaders and their file records."""
import asyncio
import logging
from typing import Any, Callable, Coroutine, Dict, Iterable, List, Optional, Set

import httpx

from ..errors import UnknownUploaderError
from ..keys import KeyGenerator
from ..models import (
    CredentialsConfiguration,
    FileUploadRecord,
    PresignedUrlConfiguration,
    SourceFile,
    StorageConfiguration,
    StorageCredentials,
)
from ..protocols import IDimensionResolver, ISecretProvider
from ..services.client_cache import RemoteClientCache
from ..services.dimensions import DimensionResolver
from ..utils.events import EventEmitter
from .dispatcher import UploadDispatcher
from .models import Uploader
from .strategies import build_strategy

logger = logging.getLogger(__name__)

CHANGE_EVENT = "change"

FilesMutation = Callable[[Dict[str, FileUploadRecord]], None]


class UploadStore:
    """
    Single source of truth for uploads.

    Holds the remote client cache and every uploader created through it.
    Instantiate one per process (or per test); nothing here is global.

    Usage:
        async with UploadStore(owner="zod", credentials=creds) as store:
            uploader = store.get_or_create("chat", CredentialsConfiguration(bucket="att"))
            keys = uploader.upload_files([SourceFile.from_path(path)])
            await store.wait()
            print(store.snapshot("chat")[keys[0]].remote_url)

    Listen for changes with ``store.events.on("change", callback)``; the
    callback receives the uploader key and a snapshot of its records.
    """

    def __init__(
        self,
        owner: str,
        credentials: Optional[StorageCredentials] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        secret_provider: Optional[ISecretProvider] = None,
        client_cache: Optional[RemoteClientCache] = None,
        dimension_resolver: Optional[IDimensionResolver] = None,
        key_generator: Optional[KeyGenerator] = None,
        timeout: int = 60,
    ):
        """
        Initialize an empty store.

        Args:
            owner: Owner/session identifier used as key prefix
            credentials: Credential set for the credentials strategy
            http_client: Shared HTTP client (created lazily when omitted, and
                recreated on next use after aclose)
            secret_provider: Async callable returning a proxy upload token
            client_cache: Remote client cache (default builds boto3 clients)
            dimension_resolver: Image measurer (default uses the HTTP client)
            key_generator: Key generator (default derives from owner)
            timeout: Timeout for the HTTP client the store creates itself
        """
        self._credentials = credentials
        self._secret_provider = secret_provider
        self._client_cache = client_cache or RemoteClientCache()
        self._keys = key_generator or KeyGenerator(owner)
        self._timeout = timeout

        self._http_client = http_client
        self._owns_http_client = http_client is None

        if dimension_resolver is None:
            dimension_resolver = DimensionResolver(http_provider=self._http)
        self._dispatcher = UploadDispatcher(self, dimension_resolver)

        self._uploaders: Dict[str, Uploader] = {}
        self._tasks: Set[asyncio.Task] = set()
        self.events = EventEmitter()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    @property
    def client_cache(self) -> RemoteClientCache:
        return self._client_cache

    @property
    def credentials(self) -> Optional[StorageCredentials]:
        return self._credentials

    @property
    def uploaders(self) -> List[str]:
        return list(self._uploaders)

    def set_credentials(self, credentials: Optional[StorageCredentials]) -> None:
        """Replace the credential set; the next dispatch picks it up."""
        self._credentials = credentials

    # =========================================================================
    # Registry
    # =========================================================================

    def get_uploader(self, key: str) -> Optional[Uploader]:
        return self._uploaders.get(key)

    def get_or_create(
        self,
        key: str,
        configuration: StorageConfiguration,
    ) -> Optional[Uploader]:
        """
        Return the uploader for key, creating it when prerequisites hold.

        Args:
            key: Uploader name (e.g. "chat-attachments")
            configuration: Configuration snapshot to bind a new uploader to

        Returns:
            Uploader, or None when the backend is not usable yet
        """
        uploader = self._uploaders.get(key)
        if uploader is not None:
            return uploader

        if not self._prerequisites_met(configuration):
            logger.debug(f"Uploader {key} not created: {configuration.service.value} prerequisites unmet")
            return None

        if isinstance(configuration, CredentialsConfiguration):
            # The client must exist before the uploader is handed out
            self._current_client(configuration.region)

        strategy = build_strategy(
            configuration,
            http_provider=self._http,
            client_provider=lambda: self._current_client(configuration.region),
            secret_provider=self._secret_provider,
        )
        uploader = Uploader(
            key=key,
            configuration=configuration,
            strategy=strategy,
            store=self,
        )
        self._uploaders[key] = uploader
        logger.info(f"Created uploader {key} ({configuration.service.value})")
        return uploader

    def _prerequisites_met(self, configuration: StorageConfiguration) -> bool:
        if isinstance(configuration, PresignedUrlConfiguration):
            return bool(configuration.proxy_base_url)
        if isinstance(configuration, CredentialsConfiguration):
            return self._credentials is not None and self._credentials.is_complete
        return False

    def _current_client(self, region: str):
        if self._credentials is None or not self._credentials.is_complete:
            raise RuntimeError("storage credentials are missing")
        return self._client_cache.acquire(self._credentials, region)

    def _http(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    def _require(self, key: str) -> Uploader:
        uploader = self._uploaders.get(key)
        if uploader is None:
            raise UnknownUploaderError(key)
        return uploader

    # =========================================================================
    # Records
    # =========================================================================

    def update(self, uploader_key: str, mutation: FilesMutation) -> None:
        """
        Apply an in-place mutation to one uploader's records.

        The only sanctioned write path. Mutations run without yielding to the
        event loop, so readers see either the old or the new state.
        """
        uploader = self._require(uploader_key)
        mutation(uploader.files)
        if self.events.has_listeners(CHANGE_EVENT):
            self.events.emit_nowait(CHANGE_EVENT, uploader_key, dict(uploader.files))

    def upload_files(self, uploader_key: str, files: Iterable[SourceFile]) -> List[str]:
        """
        Seed records for files and start one transfer per file.

        Returns as soon as every record is loading; progress is observable
        through snapshots and change events. Must be called from inside the
        running event loop; otherwise RuntimeError is raised and no record
        is added.

        Returns:
            Keys of the new records, in submission order
        """
        uploader = self._require(uploader_key)
        records = [FileUploadRecord(key=self._keys.make_key(f.name), file=f) for f in files]
        if not records:
            return []
        # Fail before seeding so no record is left half-dispatched
        asyncio.get_running_loop()

        def seed(current: Dict[str, FileUploadRecord]) -> None:
            for record in records:
                current[record.key] = record

        self.update(uploader_key, seed)

        for record in records:
            self._dispatcher.dispatch(uploader, record.key)
        return [record.key for record in records]

    def clear(self, uploader_key: str) -> None:
        """Forget every record; the uploader itself stays registered."""
        self.update(uploader_key, lambda files: files.clear())

    def remove_by_url(self, uploader_key: str, url: str) -> None:
        """Drop every record whose remote url equals url."""
        def remove(files: Dict[str, FileUploadRecord]) -> None:
            for key in [k for k, record in files.items() if record.remote_url and record.remote_url == url]:
                del files[key]

        self.update(uploader_key, remove)

    def get_most_recent(self, uploader_key: str) -> Optional[FileUploadRecord]:
        uploader = self._uploaders.get(uploader_key)
        if uploader is None or not uploader.files:
            return None
        return uploader.files[max(uploader.files)]

    def snapshot(self, uploader_key: str) -> Dict[str, FileUploadRecord]:
        """Copy of an uploader's records, safe to hold across awaits."""
        return dict(self._require(uploader_key).files)

    # =========================================================================
    # Tasks
    # =========================================================================

    def spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        """Schedule a background task and keep it referenced until done."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def wait(self) -> None:
        """Wait for every transfer and enrichment, including ones started meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self.events.drain()

    async def aclose(self) -> None:
        await self.wait()
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
