"""
Transfer strategy selection.

Files up to the chunk size travel in one request; anything larger goes
through the chunked protocol.
"""
from typing import Optional

from ...api.config import CHUNK_SIZE, MAX_CHUNKS
from ..models import DEFAULT_CONTENT_TYPE, Entry, TransferPlan, TransferStrategy


def select_strategy(size: int, threshold: int = CHUNK_SIZE) -> TransferStrategy:
    """
    Pick the transfer strategy for a file.
    
    ``threshold`` is the inclusive upper bound of the direct path.
    """
    if size > threshold:
        return TransferStrategy.CHUNKED
    return TransferStrategy.DIRECT


def create_plan(
    path: str,
    size: int,
    content_type: Optional[str] = None,
    chunk_size: int = CHUNK_SIZE,
    max_chunks: int = MAX_CHUNKS
) -> TransferPlan:
    """
    Build and validate a transfer plan.
    
    Raises:
        ValidationError: If the file exceeds the chunk cap
    """
    plan = TransferPlan(
        path=path,
        size=size,
        strategy=select_strategy(size, chunk_size),
        content_type=content_type or DEFAULT_CONTENT_TYPE,
        chunk_size=chunk_size,
        max_chunks=max_chunks
    )
    return plan.validate()


def plan_for_entry(entry: Entry, chunk_size: int = CHUNK_SIZE, max_chunks: int = MAX_CHUNKS) -> TransferPlan:
    """Build and validate the plan of a discovered entry."""
    return create_plan(entry.path, entry.size, entry.content_type, chunk_size, max_chunks)
