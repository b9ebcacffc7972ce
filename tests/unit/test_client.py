"""Tests for ChunkDropClient."""
import pytest
from unittest.mock import MagicMock

from chunkdrop import ChunkDropClient
from chunkdrop.core.api import APIConfig, LISTING_CHANGED, TransferConfig, UploadOptions
from chunkdrop.core.exceptions import ValidationError
from chunkdrop.core.scan import MemoryDirectoryHandle, MemoryFileHandle
from chunkdrop.core.session import MemorySession, SessionData
from chunkdrop.core.upload import BytesSource, Entry, InterceptingTransport, TransferStrategy


KIB = 1024


@pytest.fixture
def fast_config():
    """1 KiB chunks and no pause between files."""
    return APIConfig.for_server(
        'http://files.test',
        token='tok-123',
        transfer=TransferConfig(chunk_size=KIB, large_file_delay=0, small_file_delay=0)
    )


class TestChunkDropClient:
    """Test suite for ChunkDropClient."""

    @pytest.mark.asyncio
    async def test_requires_start(self, fast_config, server):
        """Test uploads need a started client."""
        client = ChunkDropClient(config=fast_config, transport=server)

        with pytest.raises(RuntimeError, match='not started'):
            await client.upload_entries([])

    @pytest.mark.asyncio
    async def test_upload_drop(self, fast_config, server):
        """Test drop enumeration and upload with folder structure."""
        drop = [
            MemoryDirectoryHandle('docs', [
                MemoryFileHandle('a.txt', b'alpha', 'text/plain'),
                MemoryDirectoryHandle('img', [MemoryFileHandle('b.png', b'x' * (3 * KIB), 'image/png')]),
            ])
        ]

        async with ChunkDropClient(config=fast_config, transport=server) as client:
            summary = await client.upload_drop(drop, UploadOptions(upload_folder='backup'))

        assert summary.success_count == 2
        assert server.stages() == ['direct', 'init', 'chunk', 'chunk', 'chunk', 'merge']
        assert server.by_stage('direct')[0].params['uploadFolder'] == 'backup/docs'
        assert server.by_stage('merge')[0].params['uploadFolder'] == 'backup/docs/img'
        assert server.closed

    @pytest.mark.asyncio
    async def test_upload_paths(self, fast_config, server, tmp_path):
        """Test uploading a local folder."""
        docs = tmp_path / "docs"
        docs.mkdir()
        (docs / "a.txt").write_bytes(b"hello")

        async with ChunkDropClient(config=fast_config, transport=server) as client:
            summary = await client.upload_paths([docs])

        assert summary.results['docs/a.txt'].src == '/file/docs/a.txt'

    @pytest.mark.asyncio
    async def test_upload_file(self, fast_config, server, tmp_path):
        """Test single file upload under a chosen name."""
        path = tmp_path / "clip.mp4"
        path.write_bytes(b"v" * (2 * KIB))
        progress = []

        async with ChunkDropClient(config=fast_config, transport=server) as client:
            result = await client.upload_file(path, name='videos/clip.mp4', progress_callback=progress.append)

        assert result.src == '/file/videos/clip.mp4'
        assert server.by_stage('init')[0].get_field('originalFileType').value == 'video/mp4'
        assert progress[-1].phase == 'merging'

    @pytest.mark.asyncio
    async def test_listing_changed(self, fast_config, server):
        """Test subscribers hear about finished batches."""
        handler = MagicMock()

        async with ChunkDropClient(config=fast_config, transport=server) as client:
            client.on(LISTING_CHANGED, handler)
            await client.upload_drop([MemoryFileHandle('a.txt', b'a')])
            client.off(LISTING_CHANGED, handler)
            await client.upload_drop([MemoryFileHandle('b.txt', b'b')])

        handler.assert_called_once()

    def test_plan(self, fast_config):
        """Test planning uses the configured transfer settings."""
        client = ChunkDropClient(config=fast_config)
        source = BytesSource(b'')
        small = Entry(source, 'a', KIB)
        large = Entry(source, 'b', KIB + 1)
        huge = Entry(source, 'c', 200 * KIB + 1)

        assert client.plan(small).strategy is TransferStrategy.DIRECT
        assert client.plan(large).strategy is TransferStrategy.CHUNKED
        with pytest.raises(ValidationError):
            client.plan(huge)

    @pytest.mark.asyncio
    async def test_login_and_default_options(self):
        """Test stored credentials and channel."""
        storage = MemorySession()
        client = ChunkDropClient(storage, config=APIConfig.for_server('http://files.test'))

        assert client.is_logged_in is False
        assert client.default_options().upload_channel == 'telegram'

        await client.login(token='t', upload_channel='s3')

        assert client.is_logged_in is True
        assert storage.load().base_url == 'http://files.test'
        assert client.default_options(upload_folder='x') == UploadOptions(upload_channel='s3', upload_folder='x')

    @pytest.mark.asyncio
    async def test_login_requires_credential(self):
        """Test login without token or auth code."""
        client = ChunkDropClient()

        with pytest.raises(ValueError):
            await client.login()

    @pytest.mark.asyncio
    async def test_stored_token_is_sent(self, server):
        """Test session storage feeds the Authorization header."""
        storage = MemorySession(SessionData(base_url='http://files.test', token='stored'))

        async with ChunkDropClient(storage, config=APIConfig.for_server('http://files.test'), transport=server) as client:
            await client.upload_drop([MemoryFileHandle('a.txt', b'a')])

        assert server.requests[0].headers['Authorization'] == 'Bearer stored'

    @pytest.mark.asyncio
    async def test_stored_login_for_other_server(self, server):
        """Test credentials of another server are neither used nor reported."""
        storage = MemorySession(SessionData(base_url='https://trusted.example', token='secret', upload_channel='s3'))
        client = ChunkDropClient(storage, config=APIConfig.for_server('http://files.test'), transport=server)

        assert client.is_logged_in is False
        assert client.default_options().upload_channel == 'telegram'

        async with client:
            await client.upload_drop([MemoryFileHandle('a.txt', b'a')])

        assert 'Authorization' not in server.requests[0].headers

    @pytest.mark.asyncio
    async def test_log_out(self, server):
        """Test credentials removed."""
        storage = MemorySession(SessionData(base_url='http://files.test', token='t'))
        client = ChunkDropClient(storage, config=APIConfig.for_server('http://files.test'), transport=server)
        await client.start()

        await client.log_out()

        assert storage.load() is None
        assert client.get_session() is None

    def test_sqlite_session_file(self, tmp_path):
        """Test named sessions are persisted as .session files."""
        client = ChunkDropClient('work', base_path=tmp_path)

        assert client.session_file == tmp_path / 'work.session'

    def test_create_config(self):
        """Test configuration helper."""
        config = ChunkDropClient.create_config(
            'https://files.example/', token='t', proxy='http://p:1', proxy_user='u', proxy_pass='s',
            timeout=30, verify_ssl=False
        )

        assert config.upload_url == 'https://files.example/upload'
        assert config.proxy.to_aiohttp_proxy() == 'http://u:s@p:1'
        assert config.timeout.total == 30
        assert config.ssl.verify is False
        assert config.transfer.chunk_size == 20 * 1024 * 1024

    @pytest.mark.asyncio
    async def test_intercepting_transport(self, fast_config, server):
        """Test wrapper bound to the client's engine and transport."""
        async with ChunkDropClient(config=fast_config, transport=server) as client:
            transport = client.intercepting_transport()

        assert isinstance(transport, InterceptingTransport)
        assert transport.inner is server
        assert transport.threshold == KIB
