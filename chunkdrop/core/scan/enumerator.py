"""
Entry enumerator.

Flattens a drop (files and directory trees) into ``Entry`` objects whose
paths are relative to the drop root.
"""
import asyncio
from typing import Iterable, List

from ..logging import get_logger
from ..upload.models import Entry
from ..utils import join_relative_path
from .protocols import DirectoryHandle, EntryHandle, EntryKind, FileHandle


class EntryEnumerator:
    """
    Walks drop handles concurrently.

    Every sibling and every subdirectory is visited in its own task; a
    directory is finished once all of its children are. Directory readers
    are re-read until they return an empty page. An unreadable file or
    directory is logged and skipped.

    Example:
        >>> entries = await EntryEnumerator().enumerate(await local_handles(["docs"]))
        >>> sorted(e.path for e in entries)
        ['docs/a.txt', 'docs/img/b.png']
    """

    def __init__(self):
        self._logger = get_logger('chunkdrop.scan')

    async def enumerate(self, handles: Iterable[EntryHandle]) -> List[Entry]:
        """
        Enumerate every file under ``handles``.

        Returns:
            Entries in no particular order, one per relative path
        """
        batches = await asyncio.gather(*(self._visit(handle, '') for handle in handles))
        entries = self._dedupe(entry for batch in batches for entry in batch)
        self._logger.info(f"Found {len(entries)} files")
        return entries

    async def _visit(self, handle: EntryHandle, base: str) -> List[Entry]:
        kind = getattr(handle, 'kind', None)
        if kind == EntryKind.FILE:
            return await self._visit_file(handle, base)
        if kind == EntryKind.DIRECTORY:
            return await self._visit_directory(handle, join_relative_path(base, handle.name))
        self._logger.debug(f"Ignoring {join_relative_path(base, getattr(handle, 'name', '?'))}: kind {kind!r}")
        return []

    async def _visit_file(self, handle: FileHandle, base: str) -> List[Entry]:
        path = join_relative_path(base, handle.name)
        try:
            source = await handle.get_source()
        except OSError as e:
            self._logger.warning(f"Skipping unreadable file {path}: {e}")
            return []
        return [Entry(source=source, path=path, size=source.size)]

    async def _visit_directory(self, handle: DirectoryHandle, path: str) -> List[Entry]:
        reader = handle.create_reader()
        children: List[EntryHandle] = []
        try:
            while True:
                batch = await reader.read_entries()
                if not batch:
                    break
                children.extend(batch)
        except OSError as e:
            self._logger.warning(f"Skipping unreadable directory {path}: {e}")
            return []

        self._logger.debug(f"{path}: {len(children)} children")
        batches = await asyncio.gather(*(self._visit(child, path) for child in children))
        return [entry for batch in batches for entry in batch]

    def _dedupe(self, entries: Iterable[Entry]) -> List[Entry]:
        seen = {}
        for entry in entries:
            if entry.path in seen:
                self._logger.warning(f"Duplicate path in drop, keeping first: {entry.path}")
                continue
            seen[entry.path] = entry
        return list(seen.values())
