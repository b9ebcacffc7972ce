"""Tests for the event emitter."""
from unittest.mock import MagicMock

from chunkdrop.core.api import LISTING_CHANGED, EventEmitter


class TestEventEmitter:
    """Test suite for EventEmitter."""

    def test_emit_calls_handlers_in_order(self):
        """Test handlers run in registration order with the arguments."""
        emitter = EventEmitter()
        calls = []
        emitter.on(LISTING_CHANGED, lambda summary: calls.append(('first', summary)))
        emitter.on(LISTING_CHANGED, lambda summary: calls.append(('second', summary)))

        delivered = emitter.emit(LISTING_CHANGED, 'summary')

        assert delivered == 2
        assert calls == [('first', 'summary'), ('second', 'summary')]

    def test_emit_without_handlers(self):
        """Test emitting an event nobody listens to."""
        assert EventEmitter().emit('nothing') == 0

    def test_failing_handler_does_not_stop_others(self):
        """Test a raising handler is isolated."""
        emitter = EventEmitter()
        after = MagicMock()
        emitter.on('evt', MagicMock(side_effect=RuntimeError('boom')))
        emitter.on('evt', after)

        delivered = emitter.emit('evt', 1, key='v')

        assert delivered == 1
        after.assert_called_once_with(1, key='v')

    def test_off_single_handler(self):
        """Test removing one handler."""
        emitter = EventEmitter()
        keep = MagicMock()
        drop = MagicMock()
        emitter.on('evt', keep).on('evt', drop)

        emitter.off('evt', drop)
        emitter.emit('evt')

        keep.assert_called_once()
        drop.assert_not_called()
        assert emitter.listeners('evt') == [keep]

    def test_off_all_handlers(self):
        """Test removing every handler of an event."""
        emitter = EventEmitter()
        emitter.on('evt', MagicMock())

        emitter.off('evt')

        assert emitter.listeners('evt') == []
        assert emitter.off('unknown') is emitter
