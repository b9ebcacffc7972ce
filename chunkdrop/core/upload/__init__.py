"""
Upload module.

Direct uploads for small files, a negotiated chunked protocol for large
ones, and a sequential queue for whole batches. Strategies and services are
injected so each step can be replaced or tested alone.
"""
from .facade import UploadFacade
from .engine import ChunkTransferEngine
from .queue import SequentialUploadQueue, BaseProgressObserver
from .interceptor import InterceptingTransport
from .models import (
    Entry,
    ChunkInfo,
    TransferStrategy,
    TransferPlan,
    SessionState,
    ChunkSession,
    ChunkProgress,
    ResultKind,
    TransferResult,
    FailureRecord,
    BatchProgress,
    BatchSummary,
)
from .protocols import ContentSource, ChunkingStrategy, ProgressCallback, ProgressObserver
from .services import BytesSource, LocalFileSource, DirectUploader, MergeStatusPoller
from .strategies import select_strategy, create_plan, plan_for_entry

__all__ = [
    # Main classes
    'UploadFacade',
    'ChunkTransferEngine',
    'SequentialUploadQueue',
    'BaseProgressObserver',
    'InterceptingTransport',
    'DirectUploader',
    'MergeStatusPoller',

    # Models
    'Entry',
    'ChunkInfo',
    'TransferStrategy',
    'TransferPlan',
    'SessionState',
    'ChunkSession',
    'ChunkProgress',
    'ResultKind',
    'TransferResult',
    'FailureRecord',
    'BatchProgress',
    'BatchSummary',

    # Sources
    'BytesSource',
    'LocalFileSource',

    # Protocols
    'ContentSource',
    'ChunkingStrategy',
    'ProgressCallback',
    'ProgressObserver',

    # Strategy selection
    'select_strategy',
    'create_plan',
    'plan_for_entry',
]
