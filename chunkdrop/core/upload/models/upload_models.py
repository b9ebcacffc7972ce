"""
Data models for upload module.

Uses dataclasses for immutable, type-safe data structures.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ...api.config import CHUNK_SIZE, MAX_CHUNKS
from ...exceptions import ProtocolError, ValidationError
from ...utils import format_size, split_relative_path
from ..protocols import ContentSource


DEFAULT_CONTENT_TYPE = 'application/octet-stream'


class TransferStrategy(str, Enum):
    """How a file travels to the server."""
    DIRECT = 'direct'
    CHUNKED = 'chunked'


@dataclass(frozen=True)
class Entry:
    """
    One discovered file.

    Attributes:
        source: Content handle the bytes are read from
        path: Drop-relative posix path ('docs/img/b.png')
        size: Size in bytes
    """
    source: ContentSource
    path: str
    size: int

    @property
    def name(self) -> str:
        """File name (last path component)."""
        return split_relative_path(self.path)[1]

    @property
    def folder(self) -> str:
        """Directory prefix of the path ('' at the drop root)."""
        return split_relative_path(self.path)[0]

    @property
    def content_type(self) -> str:
        """MIME type of the content."""
        return getattr(self.source, 'content_type', None) or DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class ChunkInfo:
    """
    Information about a file chunk.

    Attributes:
        index: Zero-based chunk index
        start: Start position in bytes
        end: End position in bytes (exclusive)
    """
    index: int
    start: int
    end: int

    @property
    def size(self) -> int:
        """Returns chunk size."""
        return self.end - self.start


@dataclass(frozen=True)
class TransferPlan:
    """
    Per-file transfer decision.

    Attributes:
        path: Target relative path
        size: Total size in bytes
        strategy: Direct or chunked
        content_type: MIME type sent as originalFileType
        chunk_size: Bytes per chunk
        max_chunks: Hard cap on chunks for one file
    """
    path: str
    size: int
    strategy: TransferStrategy
    content_type: str = DEFAULT_CONTENT_TYPE
    chunk_size: int = CHUNK_SIZE
    max_chunks: int = MAX_CHUNKS

    @property
    def chunk_count(self) -> int:
        """ceil(size / chunk_size)."""
        return -(-self.size // self.chunk_size)

    @property
    def folder(self) -> str:
        """Directory prefix of the target path."""
        return split_relative_path(self.path)[0]

    @property
    def max_file_size(self) -> int:
        """Largest size the chunk cap allows."""
        return self.chunk_size * self.max_chunks

    def validate(self) -> 'TransferPlan':
        """
        Check the chunk cap.

        Raises:
            ValidationError: If the file needs more than ``max_chunks`` chunks
        """
        if self.chunk_count > self.max_chunks:
            raise ValidationError(
                f"File too large: {self.path} is {format_size(self.size)} "
                f"({self.chunk_count} chunks), exceeding the "
                f"{format_size(self.max_file_size)} limit ({self.max_chunks} chunks)"
            )
        return self


class SessionState(str, Enum):
    """Chunked transfer states."""
    INIT = 'init'
    UPLOADING = 'uploading'
    MERGING = 'merging'
    POLLING = 'polling'
    COMPLETED = 'completed'
    FAILED = 'failed'


_TRANSITIONS = {
    SessionState.INIT: {SessionState.UPLOADING, SessionState.FAILED},
    SessionState.UPLOADING: {SessionState.MERGING, SessionState.FAILED},
    SessionState.MERGING: {SessionState.COMPLETED, SessionState.POLLING, SessionState.FAILED},
    SessionState.POLLING: {SessionState.COMPLETED, SessionState.FAILED},
    SessionState.COMPLETED: set(),
    SessionState.FAILED: set(),
}


@dataclass
class ChunkSession:
    """
    Chunked transfer state for one file.

    Attributes:
        path: Relative path being transferred
        total_chunks: Number of chunks
        upload_id: Server issued session id (set after init)
        state: Current protocol state
        completed: Per-chunk completion flags
        error: Failure that ended the session
    """
    path: str
    total_chunks: int
    upload_id: Optional[str] = None
    state: SessionState = SessionState.INIT
    completed: List[bool] = field(default_factory=list)
    error: Optional[BaseException] = None

    def __post_init__(self):
        if not self.completed:
            self.completed = [False] * self.total_chunks

    @property
    def completed_count(self) -> int:
        return sum(self.completed)

    @property
    def all_chunks_done(self) -> bool:
        return all(self.completed)

    @property
    def is_terminal(self) -> bool:
        return self.state in (SessionState.COMPLETED, SessionState.FAILED)

    def transition(self, state: SessionState) -> None:
        """
        Move to ``state``.

        Raises:
            ProtocolError: On a transition the state machine does not allow
        """
        if state not in _TRANSITIONS[self.state]:
            raise ProtocolError(
                f"Illegal transfer state change {self.state.value} -> {state.value}",
                stage=self.state.value
            )
        self.state = state

    def mark_chunk_done(self, index: int) -> None:
        self.completed[index] = True

    def fail(self, error: BaseException) -> None:
        """Record failure (no-op once terminal)."""
        if not self.is_terminal:
            self.error = error
            self.state = SessionState.FAILED


@dataclass(frozen=True)
class ChunkProgress:
    """
    Per-file progress handed to progress callbacks.

    Attributes:
        completed: Chunks completed so far
        total: Total chunks
        phase: 'uploading', 'merging' or 'waiting'
    """
    completed: int
    total: int
    phase: str = 'uploading'

    @property
    def merging(self) -> bool:
        return self.phase in ('merging', 'waiting')

    @property
    def waiting(self) -> bool:
        return self.phase == 'waiting'

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.completed / self.total) * 100


class ResultKind(str, Enum):
    """Shapes a successful upload reply can take."""
    ARRAY = 'array'  # [{"src": ...}, ...]
    SRC = 'src'  # {"src": ...}
    RAW = 'raw'  # anything else, passed through


@dataclass(frozen=True)
class TransferResult:
    """
    Canonical result of a successful upload.

    Attributes:
        kind: Shape of the server reply
        sources: Every ``src`` reference found in the reply
        raw: Reply as received
    """
    kind: ResultKind
    sources: Tuple[str, ...] = ()
    raw: Any = None

    @property
    def src(self) -> Optional[str]:
        """First stored file reference."""
        return self.sources[0] if self.sources else None

    @classmethod
    def from_payload(cls, payload: Any) -> 'TransferResult':
        """Normalize a direct, merge or status reply."""
        if isinstance(payload, list):
            sources = tuple(
                str(item['src']) for item in payload
                if isinstance(item, dict) and item.get('src')
            )
            return cls(ResultKind.ARRAY, sources, payload)
        if isinstance(payload, dict):
            if payload.get('src'):
                return cls(ResultKind.SRC, (str(payload['src']),), payload)
            if payload.get('status') == 'success' and payload.get('result') is not None:
                return cls.from_payload(payload['result'])
        return cls(ResultKind.RAW, (), payload)

    def to_host_payload(self) -> Any:
        """Render in the shape a direct upload returns (array of ``{src}``)."""
        if self.kind is ResultKind.SRC:
            return [self.raw]
        return self.raw


@dataclass(frozen=True)
class FailureRecord:
    """One failed file in a batch."""
    path: str
    error: str
    size: int
    stage: Optional[str] = None
    chunk_index: Optional[int] = None


@dataclass
class BatchProgress:
    """
    Aggregate progress of a batch.

    Bytes of failed files count as completed so the percentage never goes
    backwards.
    """
    total_files: int = 0
    total_bytes: int = 0
    completed_files: int = 0
    completed_bytes: int = 0
    success_count: int = 0
    failures: List[FailureRecord] = field(default_factory=list)
    current_path: Optional[str] = None

    @property
    def fail_count(self) -> int:
        return len(self.failures)

    @property
    def percentage(self) -> float:
        """Byte based progress (file based for an all-empty batch)."""
        if self.total_bytes > 0:
            return (self.completed_bytes / self.total_bytes) * 100
        if self.total_files > 0:
            return (self.completed_files / self.total_files) * 100
        return 100.0

    @property
    def is_complete(self) -> bool:
        return self.completed_files >= self.total_files

    def start_file(self, entry: Entry) -> None:
        self.current_path = entry.path

    def record_success(self, entry: Entry) -> None:
        self.success_count += 1
        self._finish(entry)

    def record_failure(self, entry: Entry, error: BaseException) -> FailureRecord:
        record = FailureRecord(
            path=entry.path,
            error=str(error),
            size=entry.size,
            stage=getattr(error, 'stage', None),
            chunk_index=getattr(error, 'chunk_index', None)
        )
        self.failures.append(record)
        self._finish(entry)
        return record

    def _finish(self, entry: Entry) -> None:
        self.completed_files += 1
        self.completed_bytes += entry.size
        self.current_path = None


@dataclass(frozen=True)
class BatchSummary:
    """
    Terminal summary of a batch.

    Attributes:
        success_count: Files uploaded
        fail_count: Files failed
        failures: Failure details
        results: Result per uploaded path
        total_files: Files in the batch
        total_bytes: Bytes in the batch
        elapsed: Wall time in seconds
    """
    success_count: int
    fail_count: int
    failures: Tuple[FailureRecord, ...] = ()
    results: Dict[str, TransferResult] = field(default_factory=dict)
    total_files: int = 0
    total_bytes: int = 0
    elapsed: float = 0.0

    @property
    def all_succeeded(self) -> bool:
        return self.fail_count == 0
