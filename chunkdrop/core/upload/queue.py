"""
Sequential upload queue.

Uploads a batch one file at a time, smallest first, and aggregates
progress across the whole batch. A failed file is recorded and the batch
moves on.
"""
import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from ..api import LISTING_CHANGED, EventEmitter, TransferConfig, UploadOptions
from ..exceptions import ChunkDropException
from ..logging import get_logger
from ..utils import format_size
from .engine import ChunkTransferEngine
from .models import (
    BatchProgress,
    BatchSummary,
    ChunkProgress,
    Entry,
    TransferResult,
    TransferStrategy,
)
from .protocols import ProgressObserver
from .services import DirectUploader
from .strategies import plan_for_entry


class BaseProgressObserver:
    """Observer that ignores every notification; subclass what you need."""

    def on_batch_start(self, progress: BatchProgress) -> None:
        pass

    def on_file_start(self, entry: Entry, progress: BatchProgress) -> None:
        pass

    def on_file_progress(self, entry: Entry, chunk: ChunkProgress, progress: BatchProgress) -> None:
        pass

    def on_file_done(
        self,
        entry: Entry,
        result: Optional[TransferResult],
        error: Optional[BaseException],
        progress: BatchProgress
    ) -> None:
        pass

    def on_batch_complete(self, summary: BatchSummary) -> None:
        pass


class SequentialUploadQueue:
    """
    Drives a batch of entries through the direct or chunked path.

    ``BatchProgress`` is owned by the queue and only mutated by the task
    running ``run``; observers receive it read-only.

    Example:
        >>> queue = SequentialUploadQueue(DirectUploader(api), ChunkTransferEngine(api))
        >>> summary = await queue.run(entries, UploadOptions(upload_folder="backups"))
        >>> print(summary.success_count, summary.fail_count)
    """

    def __init__(
        self,
        direct_uploader: DirectUploader,
        engine: ChunkTransferEngine,
        config: Optional[TransferConfig] = None,
        observer: Optional[ProgressObserver] = None,
        events: Optional[EventEmitter] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize queue.

        Args:
            direct_uploader: Uploader for files at or under the threshold
            engine: Chunk transfer engine for larger files
            config: Transfer tuning (defaults to the engine's)
            observer: Progress observer
            events: Emitter notified with ``listing_changed`` after a batch
            sleep: Coroutine function used for the inter-file delay
            clock: Clock used to time the batch
        """
        self._direct = direct_uploader
        self._engine = engine
        self._config = config or engine.config
        self._observer = observer or BaseProgressObserver()
        self._events = events or EventEmitter()
        self._sleep = sleep
        self._clock = clock
        self._logger = get_logger('chunkdrop.upload.queue')

    @property
    def events(self) -> EventEmitter:
        return self._events

    def delay_after(self, entry: Entry) -> float:
        """Pause inserted after ``entry`` before the next file starts."""
        if entry.size > self._config.chunk_size:
            return self._config.large_file_delay
        return self._config.small_file_delay

    async def run(self, entries: Iterable[Entry], options: Optional[UploadOptions] = None) -> BatchSummary:
        """
        Upload every entry, one at a time.

        Args:
            entries: Files to upload
            options: Page-context parameters shared by the batch

        Returns:
            Summary with exact success and failure counts
        """
        options = options or UploadOptions()
        ordered = sorted(entries, key=lambda entry: entry.size)
        progress = BatchProgress(
            total_files=len(ordered),
            total_bytes=sum(entry.size for entry in ordered)
        )
        results: Dict[str, TransferResult] = {}
        started = self._clock()

        self._logger.info(f"Uploading {progress.total_files} files ({format_size(progress.total_bytes)})")
        self._observer.on_batch_start(progress)

        for position, entry in enumerate(ordered):
            progress.start_file(entry)
            self._observer.on_file_start(entry, progress)
            result = None
            error = None

            try:
                result = await self._upload_entry(entry, options, progress)
            except (ChunkDropException, OSError) as e:
                error = e
                record = progress.record_failure(entry, e)
                self._logger.warning(f"Failed {record.path} ({format_size(record.size)}): {record.error}")
            else:
                progress.record_success(entry)
                results[entry.path] = result
                self._logger.info(
                    f"Uploaded {entry.path} ({progress.completed_files}/{progress.total_files}, "
                    f"{progress.percentage:.0f}%)"
                )

            self._observer.on_file_done(entry, result, error, progress)

            if position < len(ordered) - 1:
                await self._sleep(self.delay_after(entry))

        summary = BatchSummary(
            success_count=progress.success_count,
            fail_count=progress.fail_count,
            failures=tuple(progress.failures),
            results=results,
            total_files=progress.total_files,
            total_bytes=progress.total_bytes,
            elapsed=self._clock() - started
        )

        if summary.fail_count:
            self._logger.warning(f"Batch done: {summary.success_count} succeeded, {summary.fail_count} failed")
        else:
            self._logger.info(f"Batch done: {summary.success_count} files in {summary.elapsed:.2f}s")

        self._observer.on_batch_complete(summary)
        self._events.emit(LISTING_CHANGED, summary)
        return summary

    async def _upload_entry(self, entry: Entry, options: UploadOptions, progress: BatchProgress) -> TransferResult:
        plan = plan_for_entry(entry, self._config.chunk_size, self._config.max_chunks)
        if plan.strategy is TransferStrategy.DIRECT:
            return await self._direct.upload(plan, entry.source, options)

        def on_chunk(chunk: ChunkProgress) -> None:
            self._observer.on_file_progress(entry, chunk, progress)

        return await self._engine.transfer(plan, entry.source, options, on_chunk)
