"""In-memory drop handles, for drops built by code rather than read from disk."""
from typing import List, Optional, Sequence

from ..upload.services import BytesSource
from .protocols import EntryHandle, EntryKind


class MemoryFileHandle:
    """File held in memory; ``error`` makes ``get_source`` fail like an unreadable file."""

    kind = EntryKind.FILE

    def __init__(
        self,
        name: str,
        data: bytes = b'',
        content_type: Optional[str] = None,
        error: Optional[OSError] = None
    ):
        self.name = name
        self._source = BytesSource(data, content_type)
        self._error = error

    async def get_source(self) -> BytesSource:
        if self._error is not None:
            raise self._error
        return self._source


class MemoryDirectoryReader:
    """Serves children ``page_size`` at a time."""

    def __init__(self, children: Sequence[EntryHandle], page_size: int):
        self._children = list(children)
        self._page_size = page_size
        self._offset = 0
        self.reads = 0

    async def read_entries(self) -> List[EntryHandle]:
        self.reads += 1
        page = self._children[self._offset:self._offset + self._page_size]
        self._offset += len(page)
        return page


class MemoryDirectoryHandle:
    """Directory held in memory."""

    kind = EntryKind.DIRECTORY

    def __init__(self, name: str, children: Sequence[EntryHandle] = (), page_size: int = 100):
        if page_size <= 0:
            raise ValueError("Page size must be positive")
        self.name = name
        self.children = list(children)
        self.page_size = page_size

    def create_reader(self) -> MemoryDirectoryReader:
        return MemoryDirectoryReader(self.children, self.page_size)


class MemoryOtherHandle:
    """Entry of an unsupported kind."""

    kind = EntryKind.OTHER

    def __init__(self, name: str):
        self.name = name
