"""Tests for the sequential upload queue."""
import pytest
from unittest.mock import MagicMock

from chunkdrop.core.api import LISTING_CHANGED, EventEmitter, UploadOptions
from chunkdrop.core.upload import (
    BaseProgressObserver,
    ChunkTransferEngine,
    DirectUploader,
    Entry,
    MergeStatusPoller,
    SequentialUploadQueue,
)


KIB = 1024


class RecordingObserver(BaseProgressObserver):
    """Keeps every notification in order."""

    def __init__(self):
        self.calls = []

    def on_batch_start(self, progress):
        self.calls.append(('batch_start', progress.total_files, progress.total_bytes))

    def on_file_start(self, entry, progress):
        self.calls.append(('file_start', entry.path))

    def on_file_progress(self, entry, chunk, progress):
        self.calls.append(('file_progress', entry.path, chunk.completed, chunk.phase))

    def on_file_done(self, entry, result, error, progress):
        self.calls.append(('file_done', entry.path, error is None, progress.percentage))

    def on_batch_complete(self, summary):
        self.calls.append(('batch_complete', summary.success_count, summary.fail_count))


class TestSequentialUploadQueue:
    """Test suite for SequentialUploadQueue."""

    @pytest.fixture
    def observer(self):
        return RecordingObserver()

    @pytest.fixture
    def queue(self, api, clock, observer):
        poller = MergeStatusPoller(api, clock=clock, sleep=clock.sleep)
        engine = ChunkTransferEngine(api, poller=poller)
        return SequentialUploadQueue(
            DirectUploader(api), engine, observer=observer, sleep=clock.sleep, clock=clock
        )

    @pytest.fixture
    def entry(self, pattern_source):
        def make(path, size):
            return Entry(pattern_source(size), path, size)
        return make

    @pytest.mark.asyncio
    async def test_smallest_first(self, queue, server, entry):
        """Test ascending size order regardless of input order."""
        entries = [entry('c.bin', 300), entry('a.bin', 100), entry('b.bin', 200)]

        summary = await queue.run(entries)

        names = [r.get_field('file').filename for r in server.by_stage('direct')]
        assert names == ['a.bin', 'b.bin', 'c.bin']
        assert summary.success_count == 3
        assert summary.fail_count == 0

    @pytest.mark.asyncio
    async def test_direct_and_chunked_paths(self, queue, server, entry):
        """Test threshold decides the path per file."""
        summary = await queue.run([entry('big.bin', 3 * KIB), entry('small.bin', KIB)])

        assert server.stages() == ['direct', 'init', 'chunk', 'chunk', 'chunk', 'merge']
        assert summary.results['small.bin'].src == '/file/small.bin'
        assert summary.results['big.bin'].src == '/file/big.bin'

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_batch(self, queue, server, entry):
        """Test every file is attempted and failures are counted."""
        server.fail_direct.add('b.bin')
        entries = [entry('a.bin', 10), entry('b.bin', 20), entry('c.bin', 30), entry('d.bin', 40)]

        summary = await queue.run(entries)

        assert len(server.by_stage('direct')) == 4
        assert summary.success_count == 3
        assert summary.fail_count == 1
        assert summary.success_count + summary.fail_count == summary.total_files
        failure = summary.failures[0]
        assert failure.path == 'b.bin'
        assert failure.size == 20
        assert failure.stage == 'direct'
        assert '507' in failure.error
        assert 'b.bin' not in summary.results

    @pytest.mark.asyncio
    async def test_oversized_file_fails_alone(self, queue, server, entry):
        """Test chunk cap failure is recorded without requests for that file."""
        summary = await queue.run([entry('huge.bin', 200 * KIB + 1), entry('ok.bin', 5)])

        assert summary.fail_count == 1
        assert summary.failures[0].path == 'huge.bin'
        assert summary.failures[0].stage == 'validate'
        assert server.stages() == ['direct']

    @pytest.mark.asyncio
    async def test_delays_between_files(self, queue, clock, entry):
        """Test longer pause after large files and none after the last."""
        entries = [entry('a.bin', 10), entry('b.bin', 2 * KIB), entry('c.bin', 3 * KIB)]

        await queue.run(entries)

        assert clock.sleeps == [0.2, 0.5]

    def test_delay_after_threshold_file(self, queue, entry):
        """Test a file exactly at the threshold counts as small."""
        assert queue.delay_after(entry('a', KIB)) == 0.2
        assert queue.delay_after(entry('b', KIB + 1)) == 0.5

    @pytest.mark.asyncio
    async def test_single_file_has_no_delay(self, queue, clock, entry):
        """Test no pause for a one-file batch."""
        await queue.run([entry('a.bin', 10)])

        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_delay_after_failed_file(self, queue, server, clock, entry):
        """Test pause still applies after a failure."""
        server.fail_direct.add('a.bin')

        await queue.run([entry('a.bin', 10), entry('b.bin', 20)])

        assert clock.sleeps == [0.2]

    @pytest.mark.asyncio
    async def test_listing_changed_after_batch(self, api, entry):
        """Test listing_changed carries the summary."""
        events = EventEmitter()
        handler = MagicMock()
        events.on(LISTING_CHANGED, handler)

        async def no_sleep(delay):
            pass

        queue = SequentialUploadQueue(DirectUploader(api), ChunkTransferEngine(api), events=events, sleep=no_sleep)
        summary = await queue.run([entry('a.bin', 1)])

        handler.assert_called_once_with(summary)
        assert queue.events is events

    @pytest.mark.asyncio
    async def test_listing_changed_after_failed_batch(self, queue, server, entry):
        """Test the event fires even when everything failed."""
        handler = MagicMock()
        queue.events.on(LISTING_CHANGED, handler)
        server.fail_direct.add('a.bin')

        await queue.run([entry('a.bin', 1)])

        handler.assert_called_once()

    @pytest.mark.asyncio
    async def test_observer_sequence(self, queue, observer, entry):
        """Test notifications and monotonic percentage."""
        await queue.run([entry('big.bin', 2 * KIB), entry('small.bin', 100)])

        assert observer.calls == [
            ('batch_start', 2, 2 * KIB + 100),
            ('file_start', 'small.bin'),
            ('file_done', 'small.bin', True, pytest.approx(100 / (2 * KIB + 100) * 100)),
            ('file_start', 'big.bin'),
            ('file_progress', 'big.bin', 1, 'uploading'),
            ('file_progress', 'big.bin', 2, 'uploading'),
            ('file_progress', 'big.bin', 2, 'merging'),
            ('file_done', 'big.bin', True, 100.0),
            ('batch_complete', 2, 0),
        ]

    @pytest.mark.asyncio
    async def test_empty_batch(self, queue, server, observer):
        """Test nothing to upload."""
        summary = await queue.run([])

        assert summary.total_files == 0
        assert summary.success_count == 0
        assert server.requests == []
        assert observer.calls[-1] == ('batch_complete', 0, 0)

    @pytest.mark.asyncio
    async def test_base_folder_applies_to_every_file(self, queue, server, entry):
        """Test options are shared across the batch."""
        await queue.run(
            [entry('docs/a.txt', 10), entry('b.txt', 20)],
            UploadOptions(upload_folder='inbox')
        )

        folders = [r.params.get('uploadFolder') for r in server.by_stage('direct')]
        assert folders == ['inbox/docs', 'inbox']

    @pytest.mark.asyncio
    async def test_elapsed_from_clock(self, queue, clock, entry):
        """Test elapsed time includes the pauses."""
        summary = await queue.run([entry('a.bin', 10), entry('b.bin', 20)])

        assert summary.elapsed == pytest.approx(0.2)
