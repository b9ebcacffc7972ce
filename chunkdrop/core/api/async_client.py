"""
Async upload API client.

Builds the five calls of the upload wire protocol and turns failed
responses into stage-labelled exceptions.
"""
import json
from typing import Any, Dict, Optional

from .config import APIConfig
from .options import UploadOptions
from .transport import AiohttpTransport, FormField, Transport, TransportResponse, UploadRequest
from ..exceptions import ProtocolError, TransportError
from ..logging import get_logger
from ..session import SessionStorage


DEFAULT_CONTENT_TYPE = 'application/octet-stream'


class UploadAPIClient:
    """
    Asynchronous upload API client.

    Features:
    - Direct single-request uploads
    - Chunked session init, chunk push, merge and merge status calls
    - Bearer token / auth code headers from config, session storage or cookie
    - Pluggable transport (aiohttp by default)

    Example:
        >>> config = APIConfig.for_server("https://files.example")
        >>> async with UploadAPIClient(config) as api:
        ...     upload_id = await api.init_chunked("a/b.bin", "application/zip", 3, UploadOptions())
    """

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        transport: Optional[Transport] = None,
        session_storage: Optional[SessionStorage] = None
    ):
        """
        Initialize API client.

        Args:
            config: API configuration (uses defaults if not provided)
            transport: Transport to send requests through
            session_storage: Optional storage holding token and auth code
        """
        self._config = config or APIConfig.default()
        self._transport = transport or AiohttpTransport(self._config)
        self._storage = session_storage
        self._logger = get_logger('chunkdrop.api')

    @property
    def config(self) -> APIConfig:
        """Get current configuration."""
        return self._config

    @property
    def transport(self) -> Transport:
        """Transport requests are sent through."""
        return self._transport

    async def __aenter__(self) -> 'UploadAPIClient':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close transport and release resources."""
        await self._transport.close()

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def _stored(self):
        """Stored credentials, only when they were saved for this server."""
        if self._storage is None:
            return None
        data = self._storage.load()
        if data is None or not data.belongs_to(self._config.base_url):
            return None
        return data

    def get_token(self) -> Optional[str]:
        """Resolve bearer token: config, then session storage, then cookie."""
        if self._config.token:
            return self._config.token
        stored = self._stored()
        if stored and stored.token:
            return stored.token
        get_cookie = getattr(self._transport, 'get_cookie', None)
        if get_cookie is not None:
            return get_cookie('token')
        return None

    def get_auth_code(self, options: Optional[UploadOptions] = None) -> Optional[str]:
        """Resolve auth code: options, then config, then session storage."""
        if options and options.auth_code:
            return options.auth_code
        if self._config.auth_code:
            return self._config.auth_code
        stored = self._stored()
        return stored.auth_code if stored else None

    def build_headers(self, options: Optional[UploadOptions] = None) -> Dict[str, str]:
        """Build authentication headers."""
        headers = {}
        token = self.get_token()
        if token:
            headers['Authorization'] = f'Bearer {token}'
        auth_code = self.get_auth_code(options)
        if auth_code:
            headers['authCode'] = auth_code
        return headers

    # ------------------------------------------------------------------
    # Wire calls
    # ------------------------------------------------------------------

    def _request(
        self,
        stage: str,
        options: UploadOptions,
        params: Dict[str, str],
        fields=None,
        method: str = 'POST'
    ) -> UploadRequest:
        return UploadRequest(
            method=method,
            url=self._config.upload_url,
            params=params,
            headers=self.build_headers(options),
            fields=list(fields or []),
            stage=stage
        )

    async def upload_direct(
        self,
        path: str,
        content: Any,
        content_type: Optional[str],
        options: UploadOptions
    ) -> Any:
        """
        Upload a file in a single request.

        Args:
            path: Relative path; sent as the file name so the server keeps folders
            content: File bytes or content source
            content_type: MIME type
            options: Page-context parameters

        Returns:
            Decoded JSON reply (object or array with ``src``)
        """
        params = options.to_params(direct=True)
        request = self._request('direct', options, params, [
            FormField('file', content, filename=path, content_type=content_type or DEFAULT_CONTENT_TYPE)
        ])
        return await self._send(request)

    async def init_chunked(
        self,
        file_name: str,
        file_type: Optional[str],
        total_chunks: int,
        options: UploadOptions
    ) -> str:
        """
        Start a chunked session.

        Returns:
            Server issued upload id

        Raises:
            ProtocolError: If the reply carries no upload id
        """
        params = {'initChunked': 'true', **options.to_params()}
        request = self._request('init', options, params, [
            FormField('originalFileName', file_name),
            FormField('originalFileType', file_type or DEFAULT_CONTENT_TYPE),
            FormField('totalChunks', str(total_chunks)),
        ])
        result = await self._send(request)
        upload_id = result.get('uploadId') if isinstance(result, dict) else None
        if not upload_id:
            raise ProtocolError("Chunked upload init returned no uploadId", stage='init')
        return str(upload_id)

    async def upload_chunk(
        self,
        upload_id: str,
        chunk_index: int,
        total_chunks: int,
        data: bytes,
        file_name: str,
        file_type: Optional[str],
        options: UploadOptions
    ) -> Any:
        """
        Push one chunk.

        Raises:
            TransportError: With ``chunk_index`` set
        """
        params = {'chunked': 'true', **options.to_params()}
        request = self._request('chunk', options, params, [
            FormField('file', data, filename='blob', content_type=DEFAULT_CONTENT_TYPE),
            FormField('chunkIndex', str(chunk_index)),
            FormField('totalChunks', str(total_chunks)),
            FormField('uploadId', upload_id),
            FormField('originalFileName', file_name),
            FormField('originalFileType', file_type or DEFAULT_CONTENT_TYPE),
        ])
        try:
            return await self._send(request, strict=False)
        except TransportError as e:
            raise TransportError(
                f"Chunk {chunk_index + 1}/{total_chunks} failed: {e}",
                stage='chunk',
                status=e.status,
                chunk_index=chunk_index,
                body=e.body
            ) from e

    async def merge_chunks(
        self,
        upload_id: str,
        total_chunks: int,
        file_name: str,
        file_type: Optional[str],
        options: UploadOptions
    ) -> Any:
        """
        Ask the server to merge a session.

        ``options.upload_folder`` is sent both as query parameter and form field.

        Returns:
            Final result, or a ``{status: processing|merging}`` marker
        """
        params = {'chunked': 'true', 'merge': 'true', **options.to_params()}
        fields = [
            FormField('uploadId', upload_id),
            FormField('totalChunks', str(total_chunks)),
            FormField('originalFileName', file_name),
            FormField('originalFileType', file_type or DEFAULT_CONTENT_TYPE),
        ]
        if options.upload_folder:
            fields.append(FormField('uploadFolder', options.upload_folder))
        return await self._send(self._request('merge', options, params, fields))

    async def check_status(self, upload_id: str, options: Optional[UploadOptions] = None) -> Dict[str, Any]:
        """
        Query merge status.

        Raises:
            ProtocolError: If the reply is not a JSON object
        """
        options = options or UploadOptions()
        params = {'statusCheck': 'true', 'uploadId': upload_id}
        result = await self._send(self._request('status', options, params, method='GET'))
        if not isinstance(result, dict):
            raise ProtocolError(f"Unexpected status reply: {result!r}", stage='status')
        return result

    async def _send(self, request: UploadRequest, strict: bool = True) -> Any:
        """
        Send request and decode the reply.

        Args:
            request: Request to send
            strict: Require a JSON body (otherwise fall back to text)

        Raises:
            TransportError: Non-2xx status or network failure
            ProtocolError: Undecodable body when strict
        """
        self._logger.debug(f"{request.method} {request.url} [{request.stage}] {request.params}")
        response = await self._transport.send(request)
        if not response.ok:
            text = response.text
            self._logger.error(f"{request.stage} failed: HTTP {response.status} {text[:200]}")
            raise TransportError(
                f"{request.stage} failed: HTTP {response.status}: {text}",
                stage=request.stage,
                status=response.status,
                body=text
            )
        return self._decode(response, request.stage, strict)

    def _decode(self, response: TransportResponse, stage: str, strict: bool) -> Any:
        if not response.body:
            if strict:
                raise ProtocolError(f"{stage} returned an empty body", stage=stage)
            return None
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            if strict:
                raise ProtocolError(f"{stage} returned invalid JSON: {e}", stage=stage) from e
            return response.text
