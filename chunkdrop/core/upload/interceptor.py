"""
Intercepting transport.

Wraps another transport and reroutes oversized single-file uploads through
the chunk transfer engine. Callers opt in by sending their requests through
the wrapper; nothing is patched globally.
"""
from typing import Any, Optional
from urllib.parse import urlsplit

from ..api import FormField, Transport, TransportResponse, UploadOptions, UploadRequest
from ..exceptions import ChunkDropException
from ..logging import get_logger
from ..utils import format_size
from .engine import ChunkTransferEngine
from .models import DEFAULT_CONTENT_TYPE
from .protocols import ContentSource
from .services import BytesSource


class InterceptingTransport:
    """
    Transport that substitutes the chunked protocol for large direct uploads.

    A request is intercepted when it is a POST to the upload path, is not
    itself an init/chunk/merge/status call, and carries exactly one ``file``
    part larger than the threshold. The engine then uploads the file and the
    caller receives a response shaped like a direct upload reply: ``200``
    with a JSON array of ``{src}`` objects, or ``500`` with the error text.
    Every other request goes to the wrapped transport untouched.

    Example:
        >>> transport = InterceptingTransport(AiohttpTransport(config), engine)
        >>> api = UploadAPIClient(config, transport=transport)
    """

    def __init__(
        self,
        inner: Transport,
        engine: ChunkTransferEngine,
        threshold: Optional[int] = None,
        upload_path: str = '/upload'
    ):
        """
        Initialize wrapper.

        Args:
            inner: Transport that performs real requests
            engine: Engine used for intercepted uploads
            threshold: Size above which uploads are chunked (engine's chunk size if not given)
            upload_path: Path of the upload endpoint
        """
        self._inner = inner
        self._engine = engine
        self._threshold = engine.threshold if threshold is None else threshold
        self._upload_path = '/' + upload_path.strip('/')
        self._logger = get_logger('chunkdrop.upload.interceptor')

    @property
    def inner(self) -> Transport:
        return self._inner

    @property
    def threshold(self) -> int:
        return self._threshold

    def get_cookie(self, name: str) -> Optional[str]:
        """Delegate cookie lookups to the wrapped transport."""
        get_cookie = getattr(self._inner, 'get_cookie', None)
        return get_cookie(name) if get_cookie is not None else None

    def _is_upload_endpoint(self, url: str) -> bool:
        path = urlsplit(url).path.rstrip('/')
        return path.endswith(self._upload_path)

    def _oversized_file(self, request: UploadRequest) -> Optional[FormField]:
        """Return the file part to reroute, or None to pass the request through."""
        if request.method.upper() != 'POST' or not self._is_upload_endpoint(request.url):
            return None
        if request.is_protocol_call:
            return None
        files = request.file_fields('file')
        if len(files) != 1 or files[0].size <= self._threshold:
            return None
        return files[0]

    @staticmethod
    def _as_source(file_field: FormField) -> ContentSource:
        value: Any = file_field.value
        if isinstance(value, (bytes, bytearray)):
            return BytesSource(value, file_field.content_type)
        return value

    async def send(self, request: UploadRequest) -> TransportResponse:
        """Send a request, rerouting oversized uploads through the engine."""
        file_field = self._oversized_file(request)
        if file_field is None:
            return await self._inner.send(request)

        path = file_field.filename or 'blob'
        self._logger.info(
            f"Rerouting {path} ({format_size(file_field.size)}) through chunked upload "
            f"(threshold {format_size(self._threshold)})"
        )
        options = UploadOptions.from_query(request.query())

        try:
            plan = self._engine.plan(path, file_field.size, file_field.content_type or DEFAULT_CONTENT_TYPE)
            result = await self._engine.transfer(plan, self._as_source(file_field), options)
        except (ChunkDropException, OSError) as e:
            self._logger.error(f"Rerouted upload of {path} failed: {e}")
            return TransportResponse.from_text(str(e), 500)

        return TransportResponse.from_json(result.to_host_payload())

    async def close(self) -> None:
        await self._inner.close()
