"""Upload models."""
from .upload_models import (
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
    DEFAULT_CONTENT_TYPE,
)

__all__ = [
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
    'DEFAULT_CONTENT_TYPE',
]
