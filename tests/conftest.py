"""Pytest fixtures for chunkdrop tests."""
import asyncio
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

import pytest

from chunkdrop.core.api import APIConfig, TransferConfig, TransportResponse, UploadAPIClient, UploadRequest


MIB = 1024 * 1024


class PatternSource:
    """Content source producing a repeating byte pattern without holding it in memory."""

    def __init__(self, size: int, content_type: Optional[str] = None):
        self._size = size
        self._content_type = content_type
        self.reads: List[tuple] = []

    @property
    def size(self) -> int:
        return self._size

    @property
    def content_type(self) -> Optional[str]:
        return self._content_type

    async def read(self, start: int, end: int) -> bytes:
        self.reads.append((start, end))
        return b"\x07" * (min(end, self._size) - start)


class FakeUploadServer:
    """
    In-memory transport answering the upload protocol.

    Counts chunk requests in flight so concurrency limits can be asserted.
    """

    def __init__(self, chunk_delay: float = 0.001):
        self.requests: List[UploadRequest] = []
        self.chunk_delay = chunk_delay
        self.in_flight = 0
        self.max_in_flight = 0
        self.chunk_order: List[int] = []
        self.received: Dict[str, Dict[int, int]] = defaultdict(dict)
        self.fail_chunks: set = set()
        self.fail_direct: set = set()
        self.init_reply: Optional[Any] = None
        self.merge_reply: Optional[Any] = None
        self.status_replies: List[Any] = []
        self.status_http: int = 200
        self.cookies: Dict[str, str] = {}
        self.closed = False
        self._next_id = 0

    # Transport ---------------------------------------------------------

    async def send(self, request: UploadRequest) -> TransportResponse:
        self.requests.append(request)
        params = request.params
        if params.get('initChunked') == 'true':
            return self._init(request)
        if params.get('statusCheck') == 'true':
            return self._status(request)
        if params.get('merge') == 'true':
            return self._merge(request)
        if params.get('chunked') == 'true':
            return await self._chunk(request)
        return await self._direct(request)

    async def close(self) -> None:
        self.closed = True

    def get_cookie(self, name: str) -> Optional[str]:
        return self.cookies.get(name)

    # Handlers ----------------------------------------------------------

    def _init(self, request: UploadRequest) -> TransportResponse:
        if self.init_reply is not None:
            return TransportResponse.from_json(self.init_reply)
        self._next_id += 1
        return TransportResponse.from_json({'uploadId': f'up-{self._next_id}'})

    async def _chunk(self, request: UploadRequest) -> TransportResponse:
        index = int(request.get_field('chunkIndex').value)
        upload_id = request.get_field('uploadId').value
        self.chunk_order.append(index)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.chunk_delay)
        finally:
            self.in_flight -= 1
        if index in self.fail_chunks:
            return TransportResponse.from_text('chunk rejected', 500)
        self.received[upload_id][index] = request.get_field('file').size
        return TransportResponse.from_json({'ok': True})

    def _merge(self, request: UploadRequest) -> TransportResponse:
        if self.merge_reply is not None:
            return TransportResponse.from_json(self.merge_reply)
        name = request.get_field('originalFileName').value
        return TransportResponse.from_json({'src': f'/file/{name}'})

    def _status(self, request: UploadRequest) -> TransportResponse:
        if self.status_http != 200:
            return TransportResponse.from_text('status unavailable', self.status_http)
        reply = self.status_replies.pop(0) if len(self.status_replies) > 1 else self.status_replies[0]
        return TransportResponse.from_json(reply)

    async def _direct(self, request: UploadRequest) -> TransportResponse:
        file_field = request.get_field('file')
        if file_field.filename in self.fail_direct:
            return TransportResponse.from_text('disk full', 507)
        await file_field.read()
        return TransportResponse.from_json([{'src': f'/file/{file_field.filename}'}])

    # Inspection --------------------------------------------------------

    def stages(self) -> List[str]:
        return [r.stage for r in self.requests]

    def by_stage(self, stage: str) -> List[UploadRequest]:
        return [r for r in self.requests if r.stage == stage]


class FakeClock:
    """Accelerated clock: sleeping advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


@pytest.fixture
def server():
    """Fake upload server."""
    return FakeUploadServer()


@pytest.fixture
def clock():
    """Accelerated clock."""
    return FakeClock()


@pytest.fixture
def small_transfer():
    """Transfer config with 1 KiB chunks so tests stay small."""
    return TransferConfig(chunk_size=1024, max_chunks=200)


@pytest.fixture
def api_config(small_transfer):
    """API config pointing at a fake host."""
    return APIConfig.for_server('http://files.test', token='tok-123', transfer=small_transfer)


@pytest.fixture
def api(api_config, server):
    """API client over the fake server."""
    return UploadAPIClient(api_config, transport=server)


@pytest.fixture
def pattern_source() -> Callable[..., PatternSource]:
    """Factory for pattern sources."""
    return PatternSource
