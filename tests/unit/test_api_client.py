"""Tests for the upload API client."""
import pytest

from chunkdrop.core.api import APIConfig, FormField, TransportResponse, UploadAPIClient, UploadOptions, UploadRequest
from chunkdrop.core.exceptions import ProtocolError, TransportError
from chunkdrop.core.session import MemorySession, SessionData


class TestCredentials:
    """Test suite for header building and token resolution."""

    def test_config_token_wins(self, server):
        """Test config token takes precedence over storage and cookie."""
        server.cookies['token'] = 'cookie-token'
        storage = MemorySession(SessionData(base_url='http://files.test', token='stored-token'))
        api = UploadAPIClient(
            APIConfig.for_server('http://files.test', token='config-token'),
            transport=server,
            session_storage=storage
        )

        assert api.get_token() == 'config-token'

    def test_storage_before_cookie(self, server):
        """Test stored token is used before the cookie."""
        server.cookies['token'] = 'cookie-token'
        storage = MemorySession(SessionData(base_url='http://files.test', token='stored-token'))
        api = UploadAPIClient(APIConfig.for_server('http://files.test'), transport=server, session_storage=storage)

        assert api.get_token() == 'stored-token'

    @pytest.mark.asyncio
    async def test_stored_credentials_stay_with_their_server(self, server):
        """Test credentials saved for one server are not sent to another."""
        storage = MemorySession(SessionData(
            base_url='https://trusted.example', token='secret-token', auth_code='secret-code'
        ))
        api = UploadAPIClient(APIConfig.for_server('https://other.example'), transport=server, session_storage=storage)

        await api.upload_direct('a.txt', b'a', 'text/plain', UploadOptions())

        request = server.requests[0]
        assert request.url == 'https://other.example/upload'
        assert 'Authorization' not in request.headers
        assert 'authCode' not in request.headers

    def test_stored_credentials_ignore_trailing_slash(self, server):
        """Test server match tolerates a trailing slash."""
        storage = MemorySession(SessionData(base_url='http://files.test/', token='stored-token', auth_code='c'))
        api = UploadAPIClient(APIConfig.for_server('http://files.test'), transport=server, session_storage=storage)

        assert api.build_headers() == {'Authorization': 'Bearer stored-token', 'authCode': 'c'}

    def test_cookie_fallback(self, server):
        """Test token cookie is the last resort."""
        server.cookies['token'] = 'cookie-token'
        api = UploadAPIClient(APIConfig.for_server('http://files.test'), transport=server)

        assert api.get_token() == 'cookie-token'

    def test_no_credentials(self, server):
        """Test no headers when nothing is configured."""
        api = UploadAPIClient(APIConfig.for_server('http://files.test'), transport=server)

        assert api.build_headers() == {}

    def test_headers(self, server):
        """Test bearer token and auth code headers."""
        api = UploadAPIClient(
            APIConfig.for_server('http://files.test', token='t', auth_code='config-code'),
            transport=server
        )

        assert api.build_headers() == {'Authorization': 'Bearer t', 'authCode': 'config-code'}
        assert api.build_headers(UploadOptions(auth_code='page-code'))['authCode'] == 'page-code'


class TestWireCalls:
    """Test suite for the protocol calls."""

    @pytest.mark.asyncio
    async def test_upload_direct(self, api, server):
        """Test direct upload request shape."""
        options = UploadOptions(
            upload_folder='docs', server_compress='false', upload_name_type='origin', auto_retry='true'
        )

        reply = await api.upload_direct('docs/a.txt', b'hello', 'text/plain', options)

        assert reply == [{'src': '/file/docs/a.txt'}]
        request = server.requests[0]
        assert request.method == 'POST'
        assert request.url == 'http://files.test/upload'
        assert request.params == {
            'uploadChannel': 'telegram',
            'uploadFolder': 'docs',
            'serverCompress': 'false',
            'uploadNameType': 'origin',
            'autoRetry': 'true',
        }
        assert request.headers['Authorization'] == 'Bearer tok-123'
        assert not request.is_protocol_call

    @pytest.mark.asyncio
    async def test_init_chunked(self, api, server):
        """Test init request and returned upload id."""
        upload_id = await api.init_chunked('v/big.mp4', 'video/mp4', 3, UploadOptions(upload_folder='v'))

        assert upload_id == 'up-1'
        request = server.requests[0]
        assert request.stage == 'init'
        assert request.params['initChunked'] == 'true'
        assert request.params['uploadFolder'] == 'v'
        assert 'serverCompress' not in request.params
        assert request.get_field('originalFileName').value == 'v/big.mp4'
        assert request.get_field('originalFileType').value == 'video/mp4'
        assert request.get_field('totalChunks').value == '3'

    @pytest.mark.asyncio
    async def test_init_without_upload_id(self, api, server):
        """Test init reply without uploadId."""
        server.init_reply = {'ok': True}

        with pytest.raises(ProtocolError) as exc_info:
            await api.init_chunked('a.bin', None, 2, UploadOptions())

        assert exc_info.value.stage == 'init'

    @pytest.mark.asyncio
    async def test_upload_chunk(self, api, server):
        """Test chunk request fields."""
        await api.upload_chunk('up-7', 1, 3, b'xyz', 'a.bin', None, UploadOptions())

        request = server.requests[0]
        assert request.params['chunked'] == 'true'
        assert request.get_field('file').filename == 'blob'
        assert request.get_field('file').size == 3
        assert request.get_field('chunkIndex').value == '1'
        assert request.get_field('uploadId').value == 'up-7'
        assert request.get_field('originalFileType').value == 'application/octet-stream'
        assert server.received['up-7'] == {1: 3}

    @pytest.mark.asyncio
    async def test_upload_chunk_failure_carries_index(self, api, server):
        """Test chunk failure reports the chunk index."""
        server.fail_chunks.add(2)

        with pytest.raises(TransportError) as exc_info:
            await api.upload_chunk('up-7', 2, 3, b'xyz', 'a.bin', None, UploadOptions())

        error = exc_info.value
        assert error.stage == 'chunk'
        assert error.status == 500
        assert error.chunk_index == 2
        assert 'Chunk 3/3' in str(error)
        assert error.body == 'chunk rejected'

    @pytest.mark.asyncio
    async def test_merge_sends_folder_twice(self, api, server):
        """Test uploadFolder in both query and form."""
        reply = await api.merge_chunks('up-1', 3, 'v/big.mp4', 'video/mp4', UploadOptions(upload_folder='v'))

        assert reply == {'src': '/file/v/big.mp4'}
        request = server.requests[0]
        assert request.params['merge'] == 'true'
        assert request.params['chunked'] == 'true'
        assert request.params['uploadFolder'] == 'v'
        assert request.get_field('uploadFolder').value == 'v'

    @pytest.mark.asyncio
    async def test_merge_without_folder(self, api, server):
        """Test no uploadFolder field at the root."""
        await api.merge_chunks('up-1', 1, 'a.bin', None, UploadOptions())

        assert server.requests[0].get_field('uploadFolder') is None

    @pytest.mark.asyncio
    async def test_check_status(self, api, server):
        """Test status call is a GET with two parameters."""
        server.status_replies = [{'status': 'merging'}]

        reply = await api.check_status('up-3', UploadOptions(upload_folder='ignored'))

        assert reply == {'status': 'merging'}
        request = server.requests[0]
        assert request.method == 'GET'
        assert request.params == {'statusCheck': 'true', 'uploadId': 'up-3'}
        assert request.fields == []

    @pytest.mark.asyncio
    async def test_check_status_rejects_non_object(self, api, server):
        """Test status reply must be a JSON object."""
        server.status_replies = [['processing']]

        with pytest.raises(ProtocolError):
            await api.check_status('up-3')

    @pytest.mark.asyncio
    async def test_non_2xx_raises(self, api, server):
        """Test HTTP errors become TransportError with the body."""
        server.fail_direct.add('a.txt')

        with pytest.raises(TransportError) as exc_info:
            await api.upload_direct('a.txt', b'abc', None, UploadOptions())

        assert exc_info.value.status == 507
        assert 'disk full' in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invalid_json_is_protocol_error(self, api_config):
        """Test undecodable reply on a strict call."""

        class BrokenTransport:
            async def send(self, request):
                return TransportResponse(status=200, body=b'<html>')

            async def close(self):
                pass

        api = UploadAPIClient(api_config, transport=BrokenTransport())

        with pytest.raises(ProtocolError, match='invalid JSON'):
            await api.merge_chunks('up-1', 1, 'a.bin', None, UploadOptions())

    @pytest.mark.asyncio
    async def test_close_closes_transport(self, api, server):
        """Test context manager closes the transport."""
        async with api:
            pass

        assert server.closed


class TestUploadRequest:
    """Test suite for UploadRequest helpers."""

    def test_query_merges_url_and_params(self):
        """Test params override the URL query string."""
        request = UploadRequest('POST', 'http://h/upload?uploadFolder=a&authCode=x', params={'uploadFolder': 'b'})

        assert request.query() == {'uploadFolder': 'b', 'authCode': 'x'}

    def test_protocol_flag_in_url(self):
        """Test protocol calls are recognised from the URL too."""
        assert UploadRequest('POST', 'http://h/upload?chunked=true').is_protocol_call
        assert UploadRequest('GET', 'http://h/upload', params={'statusCheck': 'TRUE'}).is_protocol_call
        assert not UploadRequest('POST', 'http://h/upload?chunked=false').is_protocol_call

    def test_file_fields(self):
        """Test file parts filtered by name."""
        request = UploadRequest('POST', 'http://h/upload', fields=[
            FormField('file', b'a', filename='a.txt'),
            FormField('thumb', b'b', filename='b.png'),
            FormField('note', 'text'),
        ])

        assert [f.name for f in request.file_fields()] == ['file', 'thumb']
        assert [f.filename for f in request.file_fields('file')] == ['a.txt']
