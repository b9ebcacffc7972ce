"""
Drop scanning module.

Turns dropped files and folders into upload entries.
"""
from .protocols import EntryKind, EntryHandle, FileHandle, DirectoryHandle, DirectoryReader
from .enumerator import EntryEnumerator
from .local import (
    LocalFileHandle,
    LocalDirectoryHandle,
    LocalDirectoryReader,
    LocalOtherHandle,
    local_handle,
    local_handles,
    DEFAULT_BATCH_SIZE,
)
from .memory import MemoryFileHandle, MemoryDirectoryHandle, MemoryDirectoryReader, MemoryOtherHandle

__all__ = [
    'EntryEnumerator',
    'EntryKind',
    'EntryHandle',
    'FileHandle',
    'DirectoryHandle',
    'DirectoryReader',
    'LocalFileHandle',
    'LocalDirectoryHandle',
    'LocalDirectoryReader',
    'LocalOtherHandle',
    'local_handle',
    'local_handles',
    'DEFAULT_BATCH_SIZE',
    'MemoryFileHandle',
    'MemoryDirectoryHandle',
    'MemoryDirectoryReader',
    'MemoryOtherHandle',
]
