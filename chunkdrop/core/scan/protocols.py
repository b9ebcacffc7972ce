"""
Protocol definitions for drop scanning.

A drop is a set of entry handles; a handle is either a file, whose content
source can be resolved, or a directory, whose children are listed through
a paginated reader.
"""
from enum import Enum
from typing import List, Protocol, runtime_checkable

from ..upload.protocols import ContentSource


class EntryKind(str, Enum):
    """Reported type of an entry handle."""
    FILE = 'file'
    DIRECTORY = 'directory'
    OTHER = 'other'


@runtime_checkable
class EntryHandle(Protocol):
    """Anything found in a drop."""

    @property
    def kind(self) -> EntryKind:
        ...

    @property
    def name(self) -> str:
        ...


class FileHandle(EntryHandle, Protocol):
    """Handle of a file."""

    async def get_source(self) -> ContentSource:
        """
        Resolve the file's content.

        Raises:
            OSError: If the file cannot be read
        """
        ...


class DirectoryReader(Protocol):
    """Paginated listing of a directory."""

    async def read_entries(self) -> List[EntryHandle]:
        """
        Return the next batch of children.

        An empty list means the listing is exhausted.
        """
        ...


class DirectoryHandle(EntryHandle, Protocol):
    """Handle of a directory."""

    def create_reader(self) -> DirectoryReader:
        ...
