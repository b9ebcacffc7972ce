"""
chunkdrop - Async uploads of files and folder trees, chunked past the size ceiling.

Usage:
    >>> from chunkdrop import ChunkDropClient, APIConfig
    >>>
    >>> async with ChunkDropClient(config=APIConfig.for_server("https://files.example")) as client:
    ...     summary = await client.upload_paths(["docs", "movie.mkv"])
    ...     print(f"{summary.success_count} uploaded, {summary.fail_count} failed")
"""
import logging
from .client import ChunkDropClient

# Configuration
from .core.api import (
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    TransferConfig,
    UploadAPIClient,
    UploadOptions,
    EventEmitter,
    LISTING_CHANGED,
)

# Session management
from .core.session import (
    SessionStorage,
    SessionData,
    SQLiteSession,
    MemorySession
)

# Uploads
from .core.upload import (
    UploadFacade,
    ChunkTransferEngine,
    SequentialUploadQueue,
    BaseProgressObserver,
    InterceptingTransport,
    Entry,
    TransferPlan,
    TransferResult,
    BatchProgress,
    BatchSummary,
    ChunkProgress,
    select_strategy,
)
from .core.scan import EntryEnumerator, local_handles
from .core.exceptions import (
    ChunkDropException,
    ChunkReadError,
    ValidationError,
    ProtocolError,
    TransportError,
    MergeFailedError,
    MergeTimeoutError,
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for chunkdrop modules.

    This ensures that all chunkdrop loggers are properly configured
    to show log messages at the specified level.

    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'chunkdrop',
        'chunkdrop.client',
        'chunkdrop.api',
        'chunkdrop.api.transport',
        'chunkdrop.events',
        'chunkdrop.scan',
        'chunkdrop.scan.local',
        'chunkdrop.upload',
        'chunkdrop.upload.engine',
        'chunkdrop.upload.chunk',
        'chunkdrop.upload.file',
        'chunkdrop.upload.direct',
        'chunkdrop.upload.poll',
        'chunkdrop.upload.queue',
        'chunkdrop.upload.interceptor',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        # Ensure propagation is enabled
        logger.propagate = True


__all__ = [
    'ChunkDropClient',
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'TransferConfig',
    'UploadAPIClient',
    'UploadOptions',
    'EventEmitter',
    'LISTING_CHANGED',
    'SessionStorage',
    'SessionData',
    'SQLiteSession',
    'MemorySession',
    'UploadFacade',
    'ChunkTransferEngine',
    'SequentialUploadQueue',
    'BaseProgressObserver',
    'InterceptingTransport',
    'Entry',
    'TransferPlan',
    'TransferResult',
    'BatchProgress',
    'BatchSummary',
    'ChunkProgress',
    'select_strategy',
    'EntryEnumerator',
    'local_handles',
    'ChunkDropException',
    'ChunkReadError',
    'ValidationError',
    'ProtocolError',
    'TransportError',
    'MergeFailedError',
    'MergeTimeoutError',
    'setup_logging',
]
