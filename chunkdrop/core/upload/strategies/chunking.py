"""
Chunking strategies for file uploads.

Implements Strategy Pattern for different chunking algorithms.
Open for extension (new strategies), closed for modification.
"""
from abc import ABC, abstractmethod
from typing import List

from ...api.config import CHUNK_SIZE
from ..models import ChunkInfo


class BaseChunkingStrategy(ABC):
    """Abstract base class for chunking strategies."""
    
    @abstractmethod
    def calculate_chunks(self, file_size: int) -> List[ChunkInfo]:
        """Calculate chunk boundaries."""
        pass
    
    def count_chunks(self, file_size: int) -> int:
        """Number of chunks for a file."""
        return len(self.calculate_chunks(file_size))


class FixedSizeChunkingStrategy(BaseChunkingStrategy):
    """
    Fixed-size chunking strategy.
    
    Every chunk is ``chunk_size`` bytes except the last one, which carries
    the remainder. The upload server reassembles chunks by index.
    """
    
    def __init__(self, chunk_size: int = CHUNK_SIZE):
        """
        Initialize with chunk size.
        
        Args:
            chunk_size: Size of each chunk in bytes
        """
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        self.chunk_size = chunk_size
    
    def count_chunks(self, file_size: int) -> int:
        """ceil(file_size / chunk_size) without building the list."""
        return -(-file_size // self.chunk_size)
    
    def calculate_chunks(self, file_size: int) -> List[ChunkInfo]:
        """
        Calculate fixed-size chunk boundaries.
        
        Args:
            file_size: Total file size in bytes
            
        Returns:
            List of ChunkInfo, empty for an empty file
        """
        chunks = []
        position = 0
        
        while position < file_size:
            end = min(position + self.chunk_size, file_size)
            chunks.append(ChunkInfo(len(chunks), position, end))
            position = end
        
        return chunks
