"""
Content sources.

Single Responsibility: each class exposes one kind of byte source through
the ``ContentSource`` protocol.
"""
import mimetypes
from pathlib import Path
from typing import Optional, Union

import aiofiles
import aiofiles.os

from ...logging import get_logger


def guess_content_type(name: str) -> Optional[str]:
    """Guess MIME type from a file name."""
    return mimetypes.guess_type(name)[0]


class LocalFileSource:
    """
    Content source over a local file.

    Uses aiofiles for non-blocking I/O. Each read opens its own handle so
    several chunks of the same file can be read concurrently.
    """

    def __init__(self, path: Union[str, Path], size: int, content_type: Optional[str] = None):
        """
        Initialize source.

        Args:
            path: Path to the file
            size: File size in bytes
            content_type: MIME type (guessed from the name if not given)
        """
        self._path = Path(path)
        self._size = size
        self._content_type = content_type or guess_content_type(self._path.name)
        self._logger = get_logger('chunkdrop.upload.file')

    @classmethod
    async def open(cls, path: Union[str, Path]) -> 'LocalFileSource':
        """
        Create a source for ``path``, reading its size.

        Raises:
            FileNotFoundError: If file doesn't exist
            IsADirectoryError: If path is a directory
        """
        path = Path(path)
        if await aiofiles.os.path.isdir(path):
            raise IsADirectoryError(f"Path is not a file: {path}")
        size = await aiofiles.os.path.getsize(path)
        return cls(path, size)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def size(self) -> int:
        return self._size

    @property
    def content_type(self) -> Optional[str]:
        return self._content_type

    async def read(self, start: int, end: int) -> bytes:
        """
        Read a byte range.

        Raises:
            OSError: If the file cannot be read
        """
        try:
            async with aiofiles.open(self._path, 'rb') as f:
                await f.seek(start)
                data = await f.read(end - start)
        except OSError as e:
            self._logger.error(f"Failed to read {self._path} [{start}-{end}]: {e}")
            raise
        self._logger.debug(f"Read {self._path.name}: {start}-{end} ({len(data)} bytes)")
        return data

    def __repr__(self) -> str:
        return f"LocalFileSource({str(self._path)!r}, size={self._size})"


class BytesSource:
    """Content source over bytes already in memory."""

    def __init__(self, data: bytes, content_type: Optional[str] = None):
        self._data = bytes(data)
        self._content_type = content_type

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def content_type(self) -> Optional[str]:
        return self._content_type

    async def read(self, start: int, end: int) -> bytes:
        return self._data[start:end]

    def __repr__(self) -> str:
        return f"BytesSource(size={len(self._data)})"
