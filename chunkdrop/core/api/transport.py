"""
HTTP transport.

Requests are described by plain dataclasses so that a transport can be
swapped (aiohttp for real traffic, an in-memory fake in tests) or wrapped
(see ``chunkdrop.core.upload.interceptor``).
"""
import json
import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable
from urllib.parse import parse_qsl, urlsplit

import aiohttp

from .config import APIConfig
from ..exceptions import TransportError
from ..logging import get_logger


# Query flags marking calls that belong to the chunked protocol
PROTOCOL_FLAGS = ('initChunked', 'chunked', 'merge', 'statusCheck')


@dataclass
class FormField:
    """
    One multipart form field.

    ``value`` is a str, bytes, or a content source exposing ``size`` and
    ``async read(start, end)``.
    """
    name: str
    value: Any
    filename: Optional[str] = None
    content_type: Optional[str] = None

    @property
    def is_file(self) -> bool:
        """True for file parts."""
        return self.filename is not None or not isinstance(self.value, str)

    @property
    def size(self) -> int:
        """Size of the field payload in bytes."""
        if isinstance(self.value, (bytes, bytearray)):
            return len(self.value)
        if isinstance(self.value, str):
            return len(self.value.encode('utf-8'))
        return int(getattr(self.value, 'size', 0))

    async def read(self) -> Any:
        """Materialize the payload (sources are read whole)."""
        if isinstance(self.value, (str, bytes, bytearray)):
            return self.value
        return await self.value.read(0, self.value.size)


@dataclass
class UploadRequest:
    """
    A request to the upload server.

    Attributes:
        method: HTTP method
        url: Absolute URL without query string
        params: Query parameters
        headers: Request headers
        fields: Multipart form fields (empty for GET)
        stage: Transfer stage label used in errors and logs
    """
    method: str
    url: str
    params: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    fields: List[FormField] = field(default_factory=list)
    stage: str = 'direct'

    def query(self) -> Dict[str, str]:
        """Query parameters from the URL merged with ``params``."""
        query = dict(parse_qsl(urlsplit(self.url).query))
        query.update({key: str(value) for key, value in self.params.items()})
        return query

    @property
    def is_protocol_call(self) -> bool:
        """True for init, chunk, merge and status calls."""
        query = self.query()
        return any(query.get(flag, '').lower() == 'true' for flag in PROTOCOL_FLAGS)

    def get_field(self, name: str) -> Optional[FormField]:
        """Return first field named ``name``."""
        for form_field in self.fields:
            if form_field.name == name:
                return form_field
        return None

    def file_fields(self, name: Optional[str] = None) -> List[FormField]:
        """Return all file parts, or those named ``name``."""
        return [f for f in self.fields if f.is_file and (name is None or f.name == name)]


@dataclass
class TransportResponse:
    """Response as seen by the upload client."""
    status: int
    body: bytes = b''
    headers: Dict[str, str] = field(default_factory=dict)
    reason: str = ''

    @property
    def ok(self) -> bool:
        """True for 2xx statuses."""
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        """Body decoded as UTF-8."""
        return self.body.decode('utf-8', errors='replace')

    def json(self) -> Any:
        """Body decoded as JSON."""
        return json.loads(self.text)

    @classmethod
    def from_json(cls, payload: Any, status: int = 200) -> 'TransportResponse':
        """Build a JSON response."""
        return cls(
            status=status,
            body=json.dumps(payload).encode('utf-8'),
            headers={'Content-Type': 'application/json'},
            reason='OK' if 200 <= status < 300 else ''
        )

    @classmethod
    def from_text(cls, text: str, status: int) -> 'TransportResponse':
        """Build a plain text response."""
        return cls(
            status=status,
            body=text.encode('utf-8'),
            headers={'Content-Type': 'text/plain; charset=utf-8'}
        )


@runtime_checkable
class Transport(Protocol):
    """Protocol for anything able to deliver an ``UploadRequest``."""

    async def send(self, request: UploadRequest) -> TransportResponse:
        """Send request and return the response (any status)."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...


class AiohttpTransport:
    """
    Transport backed by a shared aiohttp session.

    Reuses one HTTP session for all requests (critical for chunk throughput).
    Network failures are raised as ``TransportError``; HTTP error statuses are
    returned to the caller untouched.
    """

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize transport.

        Args:
            config: API configuration (uses defaults if not provided)
            session: Optional shared session (not closed by this transport)
        """
        self._config = config or APIConfig.default()
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger('chunkdrop.api.transport')

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(**self._config.get_connector_kwargs())
            self._session = aiohttp.ClientSession(
                connector=connector,
                **self._config.get_session_kwargs()
            )
            self._owns_session = True
        return self._session

    def get_cookie(self, name: str) -> Optional[str]:
        """Look up a cookie stored by the server in this session."""
        if self._session is None:
            return None
        for cookie in self._session.cookie_jar:
            if cookie.key == name:
                return cookie.value
        return None

    async def _build_form(self, request: UploadRequest) -> Optional[aiohttp.FormData]:
        """Build multipart body."""
        if not request.fields:
            return None
        form = aiohttp.FormData()
        for form_field in request.fields:
            value = await form_field.read()
            if form_field.is_file:
                form.add_field(
                    form_field.name,
                    value,
                    filename=form_field.filename or 'blob',
                    content_type=form_field.content_type or 'application/octet-stream'
                )
            else:
                form.add_field(form_field.name, value)
        return form

    async def send(self, request: UploadRequest) -> TransportResponse:
        """
        Send a request.

        Raises:
            TransportError: On connection errors and timeouts
        """
        session = await self._ensure_session()
        data = await self._build_form(request)
        proxy = self._config.proxy.to_aiohttp_proxy() if self._config.proxy else None

        try:
            async with session.request(
                request.method,
                request.url,
                params=request.params or None,
                data=data,
                headers=request.headers,
                proxy=proxy
            ) as resp:
                body = await resp.read()
                return TransportResponse(
                    status=resp.status,
                    body=body,
                    headers=dict(resp.headers),
                    reason=resp.reason or ''
                )
        except asyncio.TimeoutError as e:
            self._logger.error(f"{request.stage} request timed out: {request.url}")
            raise TransportError(
                f"{request.stage} request timed out", stage=request.stage
            ) from e
        except aiohttp.ClientError as e:
            self._logger.error(f"{request.stage} request failed: {e}")
            raise TransportError(
                f"{request.stage} request failed: {e}", stage=request.stage
            ) from e

    async def close(self) -> None:
        """Close session if we own it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None
