"""
In-memory session storage implementation.

Provides non-persistent credential storage for testing and temporary use.
"""
from typing import Optional

from .protocols import SessionStorage
from .models import SessionData


class MemorySession(SessionStorage):
    """
    In-memory session storage.
    
    Data is lost when the object is destroyed.
    
    Example:
        >>> session = MemorySession(SessionData(base_url="http://host", token="t"))
        >>> session.load().token
        't'
    """
    
    def __init__(self, data: Optional[SessionData] = None):
        """Initialize memory session storage."""
        self._data: Optional[SessionData] = data
    
    def load(self) -> Optional[SessionData]:
        """Load session data from memory."""
        return self._data
    
    def save(self, data: SessionData) -> None:
        """Save session data to memory."""
        data.update_timestamp()
        self._data = data
    
    def delete(self) -> None:
        """Delete session data from memory."""
        self._data = None
    
    def exists(self) -> bool:
        """Check if session exists."""
        return self._data is not None
    
    def close(self) -> None:
        """Close storage (no-op for memory storage)."""
        pass
    
    def __enter__(self) -> 'MemorySession':
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
