"""Event emitter implementation using Observer Pattern."""
from typing import Dict, List, Callable, Optional

from ...logging import get_logger


LISTING_CHANGED = 'listing_changed'


class EventEmitter:
    """
    Event emitter using Observer Pattern.
    
    Used to tell subscribers that the remote file listing may have changed
    after a batch finished (event ``listing_changed``).
    """
    
    def __init__(self, logger_name: str = 'chunkdrop.events'):
        """Initializes event emitter."""
        self._events: Dict[str, List[Callable]] = {}
        self._logger = get_logger(logger_name)
    
    def on(self, event: str, callback: Callable) -> 'EventEmitter':
        """Registers an event handler."""
        if event not in self._events:
            self._events[event] = []
        self._events[event].append(callback)
        return self
    
    def emit(self, event: str, *args, **kwargs) -> int:
        """
        Emits an event.
        
        A failing handler is logged and does not stop the remaining handlers.
        
        Returns:
            Number of handlers that ran successfully
        """
        delivered = 0
        for callback in list(self._events.get(event, [])):
            try:
                callback(*args, **kwargs)
                delivered += 1
            except Exception as e:
                self._logger.warning(f"Handler for '{event}' failed: {e}")
        return delivered
    
    def off(self, event: str, callback: Optional[Callable] = None) -> 'EventEmitter':
        """Removes an event handler."""
        if event not in self._events:
            return self
        
        if callback is None:
            del self._events[event]
        else:
            self._events[event] = [cb for cb in self._events[event] if cb != callback]
        
        return self
    
    def listeners(self, event: str) -> List[Callable]:
        """Returns handlers registered for an event."""
        return list(self._events.get(event, []))
