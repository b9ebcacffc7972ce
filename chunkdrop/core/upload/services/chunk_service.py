"""
Chunk upload service.

Handles pushing the chunks of one chunked session.
"""
import time

from ...api import UploadAPIClient, UploadOptions
from ...exceptions import ChunkReadError
from ...logging import get_logger
from ..models import ChunkInfo, TransferPlan
from ..protocols import ContentSource


class ChunkUploader:
    """
    Uploads the chunks of a single session.

    Responsibilities:
    - Read the chunk's byte range from the content source
    - Send it with the session id, index and file metadata
    - Attach the chunk index to every failure
    """

    def __init__(
        self,
        api: UploadAPIClient,
        upload_id: str,
        plan: TransferPlan,
        source: ContentSource,
        options: UploadOptions
    ):
        """
        Initialize chunk uploader.

        Args:
            api: Upload API client
            upload_id: Session id returned by init
            plan: Transfer plan of the file
            source: Content to read chunks from
            options: Page-context parameters
        """
        self._api = api
        self._upload_id = upload_id
        self._plan = plan
        self._source = source
        self._options = options
        self._logger = get_logger('chunkdrop.upload.chunk')

    @property
    def upload_id(self) -> str:
        return self._upload_id

    async def upload_chunk(self, chunk: ChunkInfo) -> int:
        """
        Read and upload one chunk.

        Args:
            chunk: Chunk to send

        Returns:
            Index of the uploaded chunk

        Raises:
            TransportError: If the server rejects the chunk or the network fails
            ChunkReadError: If the chunk cannot be read
        """
        total = self._plan.chunk_count
        try:
            data = await self._source.read(chunk.start, chunk.end)
        except OSError as e:
            raise ChunkReadError(
                f"Chunk {chunk.index + 1}/{total}: cannot read source: {e}", chunk_index=chunk.index
            ) from e
        if len(data) != chunk.size:
            raise ChunkReadError(
                f"Chunk {chunk.index + 1}/{total}: read {len(data)} of {chunk.size} bytes",
                chunk_index=chunk.index
            )

        chunk_size_mb = chunk.size / (1024 * 1024)
        upload_start = time.time()
        self._logger.debug(f"Uploading chunk {chunk.index + 1}/{total} ({chunk_size_mb:.2f} MB)")

        try:
            await self._api.upload_chunk(
                self._upload_id,
                chunk.index,
                total,
                data,
                self._plan.path,
                self._plan.content_type,
                self._options
            )
        except Exception as e:
            elapsed = time.time() - upload_start
            self._logger.error(f"Chunk {chunk.index + 1}/{total} failed after {elapsed:.2f}s: {e}")
            raise

        elapsed = time.time() - upload_start
        speed = (chunk_size_mb / elapsed) if elapsed > 0 else 0
        self._logger.debug(f"Chunk {chunk.index + 1}/{total} uploaded in {elapsed:.2f}s ({speed:.2f} MB/s)")
        return chunk.index
