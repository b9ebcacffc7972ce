"""
Chunk transfer engine.

Drives one file through the chunked protocol:
init -> uploading -> merging -> (completed | polling -> completed) | failed.
Depends on the API client and a chunking strategy, both injected.
"""
import asyncio
import time
from typing import List, Optional

from ..api import TransferConfig, UploadAPIClient, UploadOptions
from ..exceptions import MergeFailedError, ValidationError
from ..logging import get_logger
from .models import (
    DEFAULT_CONTENT_TYPE,
    ChunkInfo,
    ChunkProgress,
    ChunkSession,
    SessionState,
    TransferPlan,
    TransferResult,
    TransferStrategy,
)
from .protocols import ChunkingStrategy, ContentSource, ProgressCallback
from .services import ChunkUploader, MergeStatusPoller
from .services.poll_service import FAILED_STATUSES, PENDING_STATUSES
from .strategies import FixedSizeChunkingStrategy


class ChunkTransferEngine:
    """
    Runs the chunked upload protocol for a single file.

    Chunks are dispatched in index order, in runs of
    ``max_concurrent_chunks``; each run is joined before the next one starts,
    which bounds both in-flight requests and buffered chunk data. The
    session state and progress are updated only from the controlling task.

    Example:
        >>> engine = ChunkTransferEngine(api)
        >>> plan = engine.plan("videos/big.mp4", 45 * 1024 * 1024, "video/mp4")
        >>> result = await engine.transfer(plan, source, UploadOptions())
        >>> print(result.src)
    """

    def __init__(
        self,
        api: UploadAPIClient,
        config: Optional[TransferConfig] = None,
        chunking: Optional[ChunkingStrategy] = None,
        poller: Optional[MergeStatusPoller] = None
    ):
        """
        Initialize engine.

        Args:
            api: Upload API client
            config: Transfer tuning (defaults to the client's)
            chunking: Chunking strategy (fixed size chunks of the plan's
                      chunk size if not given)
            poller: Merge status poller
        """
        self._api = api
        self._config = config or api.config.transfer
        self._chunking = chunking
        self._poller = poller or MergeStatusPoller(
            api,
            interval=self._config.poll_interval,
            timeout=self._config.poll_timeout
        )
        self._logger = get_logger('chunkdrop.upload.engine')

    @property
    def config(self) -> TransferConfig:
        return self._config

    @property
    def threshold(self) -> int:
        """Largest size sent directly; anything bigger is chunked."""
        return self._config.chunk_size

    def plan(self, path: str, size: int, content_type: Optional[str] = None) -> TransferPlan:
        """
        Build a validated chunked plan with this engine's chunk settings.

        Raises:
            ValidationError: If the file exceeds the chunk cap
        """
        return TransferPlan(
            path=path,
            size=size,
            strategy=TransferStrategy.CHUNKED,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            chunk_size=self._config.chunk_size,
            max_chunks=self._config.max_chunks
        ).validate()

    def _calculate_chunks(self, plan: TransferPlan) -> List[ChunkInfo]:
        chunking = self._chunking or FixedSizeChunkingStrategy(plan.chunk_size)
        chunks = chunking.calculate_chunks(plan.size)
        if len(chunks) != plan.chunk_count:
            raise ValidationError(
                f"Chunking produced {len(chunks)} chunks for {plan.path}, expected {plan.chunk_count}"
            )
        return chunks

    async def transfer(
        self,
        plan: TransferPlan,
        source: ContentSource,
        options: UploadOptions,
        progress_callback: Optional[ProgressCallback] = None,
        session: Optional[ChunkSession] = None
    ) -> TransferResult:
        """
        Transfer a file through the chunked protocol.

        Args:
            plan: Validated transfer plan
            source: Content to read chunks from
            options: Page-context parameters (base folder, channel, auth code)
            progress_callback: Called after every chunk and on phase changes
            session: Session state to drive (created if not given)

        Returns:
            Canonical result of the merge

        Raises:
            ValidationError: Chunk cap exceeded or empty file (before any request)
            ProtocolError: Missing upload id or malformed status reply
            TransportError: Failed request, with the chunk index for chunk failures
            MergeFailedError: Server reported a failed merge
            MergeTimeoutError: Deferred merge did not finish in time
        """
        plan.validate()
        if plan.size <= 0:
            raise ValidationError(f"Nothing to transfer: {plan.path} is empty")
        chunks = self._calculate_chunks(plan)
        total = len(chunks)
        session = session or ChunkSession(plan.path, total)
        options = options.with_folder(plan.folder)

        size_mb = plan.size / (1024 * 1024)
        start_time = time.time()
        self._logger.info(f"Starting chunked upload: {plan.path} ({size_mb:.2f} MB, {total} chunks)")

        try:
            session.upload_id = await self._api.init_chunked(plan.path, plan.content_type, total, options)
            self._logger.debug(f"Session {session.upload_id} opened for {plan.path}")
            session.transition(SessionState.UPLOADING)

            uploader = ChunkUploader(self._api, session.upload_id, plan, source, options)
            await self._upload_chunks(session, uploader, chunks, progress_callback)

            session.transition(SessionState.MERGING)
            self._notify(progress_callback, ChunkProgress(session.completed_count, total, 'merging'))
            reply = await self._api.merge_chunks(session.upload_id, total, plan.path, plan.content_type, options)
            payload = await self._resolve_merge(session, reply, options, progress_callback)
            session.transition(SessionState.COMPLETED)
        except Exception as e:
            session.fail(e)
            self._logger.error(f"Chunked upload of {plan.path} failed at {self._failed_stage(e)}: {e}")
            raise

        elapsed = time.time() - start_time
        speed = (size_mb / elapsed) if elapsed > 0 else 0
        self._logger.info(f"Chunked upload completed in {elapsed:.2f}s ({speed:.2f} MB/s): {plan.path}")
        return TransferResult.from_payload(payload)

    async def _upload_chunks(
        self,
        session: ChunkSession,
        uploader: ChunkUploader,
        chunks: List[ChunkInfo],
        progress_callback: Optional[ProgressCallback]
    ) -> None:
        """
        Upload chunks in runs of ``max_concurrent_chunks``.

        A failing chunk lets the rest of its run settle, then the first
        failure is raised and no further run is dispatched.
        """
        window = self._config.max_concurrent_chunks
        total = len(chunks)

        for offset in range(0, total, window):
            run = [asyncio.ensure_future(uploader.upload_chunk(chunk)) for chunk in chunks[offset:offset + window]]
            failure = None
            try:
                for next_done in asyncio.as_completed(run):
                    try:
                        index = await next_done
                    except Exception as e:
                        if failure is None:
                            failure = e
                        continue
                    session.mark_chunk_done(index)
                    self._notify(progress_callback, ChunkProgress(session.completed_count, total))
            except asyncio.CancelledError:
                for task in run:
                    task.cancel()
                raise
            if failure is not None:
                raise failure

            self._logger.debug(f"{session.path}: {session.completed_count}/{total} chunks uploaded")

    async def _resolve_merge(
        self,
        session: ChunkSession,
        reply,
        options: UploadOptions,
        progress_callback: Optional[ProgressCallback]
    ):
        status = reply.get('status') if isinstance(reply, dict) else None
        if status in FAILED_STATUSES:
            message = reply.get('message') or reply.get('error') or status
            raise MergeFailedError(f"Merge failed: {message}", upload_id=session.upload_id)
        if status not in PENDING_STATUSES:
            return reply

        session.transition(SessionState.POLLING)
        self._notify(progress_callback, ChunkProgress(session.completed_count, session.total_chunks, 'waiting'))
        return await self._poller.wait(session.upload_id, options)

    @staticmethod
    def _notify(callback: Optional[ProgressCallback], progress: ChunkProgress) -> None:
        if callback:
            callback(progress)

    @staticmethod
    def _failed_stage(error: BaseException) -> str:
        return getattr(error, 'stage', None) or type(error).__name__
