"""
Custom exceptions for chunkdrop transfers.

This module defines the failure taxonomy of a file transfer. Every exception
carries the stage it was raised in so a failed file can be diagnosed from
its batch summary alone.
"""
from typing import Optional


class ChunkDropException(Exception):
    """Base exception for all chunkdrop errors."""

    def __init__(self, message: str, stage: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            stage: Transfer stage the error was raised in
                   ('validate', 'direct', 'init', 'chunk', 'merge', 'status')
        """
        self.stage = stage
        super().__init__(message)


class ValidationError(ChunkDropException):
    """Raised before any request when a transfer plan is not acceptable."""

    def __init__(self, message: str, stage: str = 'validate') -> None:
        super().__init__(message, stage)


class ProtocolError(ChunkDropException):
    """Raised when the server reply does not follow the upload protocol."""
    pass


class TransportError(ChunkDropException):
    """Exception raised for non-2xx responses and network failures."""

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        status: Optional[int] = None,
        chunk_index: Optional[int] = None,
        body: Optional[str] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            stage: Transfer stage
            status: HTTP status code (None for network errors)
            chunk_index: Zero-based index of the failing chunk (if any)
            body: Response body text (if any)
        """
        self.status = status
        self.chunk_index = chunk_index
        self.body = body
        super().__init__(message, stage)


class ChunkReadError(ChunkDropException):
    """Raised when a chunk cannot be read from its source."""

    def __init__(self, message: str, chunk_index: Optional[int] = None) -> None:
        self.chunk_index = chunk_index
        super().__init__(message, 'chunk')


class MergeFailedError(ChunkDropException):
    """Raised when the server reports a failed merge."""

    def __init__(self, message: str, upload_id: Optional[str] = None, stage: str = 'merge') -> None:
        self.upload_id = upload_id
        super().__init__(message, stage)


class MergeTimeoutError(ChunkDropException, TimeoutError):
    """Raised when a deferred merge does not finish within the wait budget."""

    def __init__(self, message: str, upload_id: Optional[str] = None) -> None:
        self.upload_id = upload_id
        super().__init__(message, 'status')
