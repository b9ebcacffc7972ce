"""
Protocol definitions for upload module.

Defines interfaces (protocols) for dependency injection and strategy pattern.
"""
from typing import Protocol, List, Optional, Callable, runtime_checkable, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ChunkInfo, ChunkProgress, BatchProgress, BatchSummary, Entry, TransferResult


@runtime_checkable
class ContentSource(Protocol):
    """
    Readable byte source with a known length.

    Backs every ``Entry``; chunks are read from it range by range so a file
    is never held in memory whole.
    """

    @property
    def size(self) -> int:
        """Total length in bytes."""
        ...

    @property
    def content_type(self) -> Optional[str]:
        """MIME type, if known."""
        ...

    async def read(self, start: int, end: int) -> bytes:
        """
        Read bytes ``[start, end)``.

        Raises:
            OSError: If the underlying source cannot be read
        """
        ...


class ChunkingStrategy(Protocol):
    """
    Protocol for file chunking strategies.

    Allows different chunking algorithms to be plugged in.
    """

    def calculate_chunks(self, file_size: int) -> List['ChunkInfo']:
        """
        Calculate chunk boundaries for a file.

        Args:
            file_size: Total file size in bytes

        Returns:
            Contiguous chunks covering the file
        """
        ...


# Per-file progress callback: invoked after every chunk and on phase changes
ProgressCallback = Callable[['ChunkProgress'], None]


class ProgressObserver(Protocol):
    """Receives batch level progress from the upload queue."""

    def on_batch_start(self, progress: 'BatchProgress') -> None:
        ...

    def on_file_start(self, entry: 'Entry', progress: 'BatchProgress') -> None:
        ...

    def on_file_progress(self, entry: 'Entry', chunk: 'ChunkProgress', progress: 'BatchProgress') -> None:
        ...

    def on_file_done(
        self,
        entry: 'Entry',
        result: Optional['TransferResult'],
        error: Optional[BaseException],
        progress: 'BatchProgress'
    ) -> None:
        ...

    def on_batch_complete(self, summary: 'BatchSummary') -> None:
        ...
