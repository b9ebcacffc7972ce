"""
Upload facade.

Provides a simplified interface for file uploads.
Follows Facade Pattern - hides the strategy selection, chunked protocol
and batch queue behind a few calls.
"""
from pathlib import Path
from typing import Iterable, Optional, Union

from ..api import EventEmitter, TransferConfig, Transport, UploadAPIClient, UploadOptions
from ..logging import get_logger
from .engine import ChunkTransferEngine
from .interceptor import InterceptingTransport
from .models import BatchSummary, Entry, TransferPlan, TransferResult, TransferStrategy
from .protocols import ContentSource, ProgressCallback, ProgressObserver
from .queue import SequentialUploadQueue
from .services import DirectUploader, LocalFileSource, MergeStatusPoller
from .strategies import create_plan, plan_for_entry


class UploadFacade:
    """
    Simplified interface for uploads.

    Example:
        >>> uploader = UploadFacade(api)
        >>> result = await uploader.upload("movie.mkv", name="films/movie.mkv")
        >>> summary = await uploader.upload_entries(entries)
    """

    def __init__(
        self,
        api: UploadAPIClient,
        config: Optional[TransferConfig] = None,
        observer: Optional[ProgressObserver] = None,
        events: Optional[EventEmitter] = None,
        poller: Optional[MergeStatusPoller] = None
    ):
        """
        Initialize upload facade.

        Args:
            api: Upload API client
            config: Transfer tuning (defaults to the client's)
            observer: Batch progress observer
            events: Emitter for ``listing_changed``
            poller: Merge status poller (built from config if not given)
        """
        self._api = api
        self._config = config or api.config.transfer
        self._logger = get_logger('chunkdrop.upload')

        self._direct = DirectUploader(api)
        self._engine = ChunkTransferEngine(api, self._config, poller=poller)
        self._queue = SequentialUploadQueue(
            self._direct,
            self._engine,
            self._config,
            observer=observer,
            events=events
        )

    @property
    def engine(self) -> ChunkTransferEngine:
        return self._engine

    @property
    def queue(self) -> SequentialUploadQueue:
        return self._queue

    @property
    def events(self) -> EventEmitter:
        return self._queue.events

    def plan(self, entry: Entry) -> TransferPlan:
        """
        Plan an entry without sending anything.

        Raises:
            ValidationError: If the file exceeds the chunk cap
        """
        return plan_for_entry(entry, self._config.chunk_size, self._config.max_chunks)

    async def upload_entries(
        self,
        entries: Iterable[Entry],
        options: Optional[UploadOptions] = None
    ) -> BatchSummary:
        """Upload a batch through the sequential queue."""
        return await self._queue.run(entries, options)

    async def upload_source(
        self,
        source: ContentSource,
        path: str,
        options: Optional[UploadOptions] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> TransferResult:
        """
        Upload one content source to ``path``.

        Raises:
            ChunkDropException: If the upload fails
        """
        options = options or UploadOptions()
        plan = create_plan(
            path,
            source.size,
            source.content_type,
            self._config.chunk_size,
            self._config.max_chunks
        )
        if plan.strategy is TransferStrategy.DIRECT:
            return await self._direct.upload(plan, source, options)
        return await self._engine.transfer(plan, source, options, progress_callback)

    async def upload(
        self,
        file_path: Union[str, Path],
        name: Optional[str] = None,
        options: Optional[UploadOptions] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> TransferResult:
        """
        Upload a local file.

        Args:
            file_path: Path to file to upload
            name: Target relative path (file name if not given)
            options: Page-context parameters
            progress_callback: Chunk progress callback (chunked files only)

        Returns:
            Canonical upload result

        Raises:
            FileNotFoundError: If file doesn't exist
            ChunkDropException: If the upload fails
        """
        path = Path(file_path) if isinstance(file_path, str) else file_path
        source = await LocalFileSource.open(path)
        return await self.upload_source(source, name or path.name, options, progress_callback)

    def intercepting_transport(self, inner: Optional[Transport] = None) -> InterceptingTransport:
        """Wrap ``inner`` (the client's transport by default) so large uploads are chunked."""
        return InterceptingTransport(
            inner or self._api.transport,
            self._engine,
            upload_path=self._api.config.upload_path
        )
