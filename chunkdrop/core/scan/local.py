"""
Local filesystem handles.

Directory listings are served in pages of ``batch_size`` entries so local
drops go through the same paginated path as any other directory source.
"""
import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

import aiofiles.os

from ..logging import get_logger
from ..upload.services import LocalFileSource
from .protocols import EntryHandle, EntryKind


DEFAULT_BATCH_SIZE = 100

logger = get_logger('chunkdrop.scan.local')


class LocalFileHandle:
    """Handle of a local file."""

    kind = EntryKind.FILE

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def path(self) -> Path:
        return self._path

    async def get_source(self) -> LocalFileSource:
        """
        Open the file's content source.

        Raises:
            OSError: If the file vanished or cannot be stat'ed
        """
        return await LocalFileSource.open(self._path)

    def __repr__(self) -> str:
        return f"LocalFileHandle({str(self._path)!r})"


class LocalOtherHandle:
    """Handle of something that is neither file nor directory (socket, fifo, broken link)."""

    kind = EntryKind.OTHER

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def name(self) -> str:
        return self._path.name


class LocalDirectoryReader:
    """Lists a local directory one page at a time."""

    def __init__(self, path: Union[str, Path], batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size <= 0:
            raise ValueError("Batch size must be positive")
        self._path = Path(path)
        self._batch_size = batch_size
        self._pending: Optional[List[str]] = None

    async def read_entries(self) -> List[EntryHandle]:
        """
        Return the next page of children; ``[]`` once exhausted.

        Raises:
            OSError: If the directory cannot be listed
        """
        if self._pending is None:
            self._pending = sorted(await aiofiles.os.listdir(self._path))
            logger.debug(f"Listed {self._path}: {len(self._pending)} entries")

        page, self._pending = self._pending[:self._batch_size], self._pending[self._batch_size:]
        return [await local_handle(self._path / name, self._batch_size) for name in page]


class LocalDirectoryHandle:
    """Handle of a local directory."""

    kind = EntryKind.DIRECTORY

    def __init__(self, path: Union[str, Path], batch_size: int = DEFAULT_BATCH_SIZE):
        self._path = Path(path)
        self._batch_size = batch_size

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def path(self) -> Path:
        return self._path

    def create_reader(self) -> LocalDirectoryReader:
        return LocalDirectoryReader(self._path, self._batch_size)

    def __repr__(self) -> str:
        return f"LocalDirectoryHandle({str(self._path)!r})"


async def local_handle(path: Union[str, Path], batch_size: int = DEFAULT_BATCH_SIZE) -> EntryHandle:
    """Wrap a filesystem path in the handle matching its type."""
    path = Path(path)
    if await aiofiles.os.path.isdir(path):
        return LocalDirectoryHandle(path, batch_size)
    if await aiofiles.os.path.isfile(path):
        return LocalFileHandle(path)
    return LocalOtherHandle(path)


async def local_handles(
    paths: Iterable[Union[str, Path]],
    batch_size: int = DEFAULT_BATCH_SIZE
) -> List[EntryHandle]:
    """
    Turn paths given by a user into drop handles.

    Raises:
        FileNotFoundError: If a path does not exist
    """
    handles = []
    for raw in paths:
        path = Path(os.path.abspath(Path(raw).expanduser()))
        if not await aiofiles.os.path.exists(path):
            raise FileNotFoundError(f"No such file or directory: {path}")
        handles.append(await local_handle(path, batch_size))
    return handles
