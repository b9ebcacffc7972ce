"""Event emitter using Observer Pattern."""
from .event_emitter import EventEmitter, LISTING_CHANGED

__all__ = [
    'EventEmitter',
    'LISTING_CHANGED',
]
