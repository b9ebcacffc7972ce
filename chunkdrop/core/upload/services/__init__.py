"""Upload services module."""
from .file_service import LocalFileSource, BytesSource, guess_content_type
from .chunk_service import ChunkUploader
from .direct_service import DirectUploader
from .poll_service import MergeStatusPoller, MergePoll, PollState

__all__ = [
    'LocalFileSource',
    'BytesSource',
    'guess_content_type',
    'ChunkUploader',
    'DirectUploader',
    'MergeStatusPoller',
    'MergePoll',
    'PollState',
]
