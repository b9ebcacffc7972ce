"""
ChunkDropClient - High-level async client for chunked uploads.

Example:
    >>> async with ChunkDropClient("default", config=APIConfig.for_server("https://files.example")) as client:
    ...     summary = await client.upload_paths(["photos/", "movie.mkv"])
    ...     print(summary.success_count, summary.fail_count)
"""
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from .core.api import (
    APIConfig,
    EventEmitter,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    TransferConfig,
    Transport,
    UploadAPIClient,
    UploadOptions,
)
from .core.api.options import DEFAULT_CHANNEL
from .core.logging import get_logger
from .core.scan import DEFAULT_BATCH_SIZE, EntryEnumerator, EntryHandle, local_handles
from .core.session import MemorySession, SessionData, SessionStorage, SQLiteSession
from .core.upload import (
    BatchSummary,
    Entry,
    InterceptingTransport,
    ProgressCallback,
    ProgressObserver,
    TransferPlan,
    TransferResult,
    UploadFacade,
    plan_for_entry,
)


class ChunkDropClient:
    """
    High-level async client with session support.

    Credentials (bearer token, auth code) live in a session storage:

    1. Named session, persisted in SQLite:
        >>> client = ChunkDropClient("work", config=config)
        >>> await client.login(token="...")

    2. In-memory session (nothing persisted):
        >>> client = ChunkDropClient(config=APIConfig(token="..."))

    3. Custom storage implementing ``SessionStorage``.
    """

    def __init__(
        self,
        session: Optional[Union[str, SessionStorage]] = None,
        *,
        config: Optional[APIConfig] = None,
        base_path: Optional[Path] = None,
        transport: Optional[Transport] = None,
        observer: Optional[ProgressObserver] = None,
        events: Optional[EventEmitter] = None
    ):
        """
        Initialize client.

        Args:
            session: Session name (creates .session file) or storage instance
            config: Optional API configuration
            base_path: Base path for session files
            transport: Transport to use instead of aiohttp
            observer: Batch progress observer
            events: Emitter for ``listing_changed`` notifications
        """
        self._config = config or APIConfig.default()
        self._logger = get_logger('chunkdrop.client')

        if session is None:
            self._session: SessionStorage = MemorySession()
        elif isinstance(session, str):
            self._session = SQLiteSession(session, base_path)
        else:
            self._session = session

        self._transport = transport
        self._observer = observer
        self._events = events or EventEmitter()
        self._enumerator = EntryEnumerator()

        self._api: Optional[UploadAPIClient] = None
        self._uploader: Optional[UploadFacade] = None

    # =========================================================================
    # Configuration helpers
    # =========================================================================

    @staticmethod
    def create_config(
        base_url: str,
        token: Optional[str] = None,
        auth_code: Optional[str] = None,
        proxy: Optional[str] = None,
        proxy_user: Optional[str] = None,
        proxy_pass: Optional[str] = None,
        timeout: float = 600,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        transfer: Optional[TransferConfig] = None
    ) -> APIConfig:
        """
        Create API configuration with common options.

        Args:
            base_url: Server URL (e.g. "https://files.example")
            token: Bearer token
            auth_code: Upload auth code
            proxy: Proxy URL (e.g., "http://proxy:8080")
            proxy_user: Proxy username
            proxy_pass: Proxy password
            timeout: Request timeout in seconds
            verify_ssl: Whether to verify SSL certificates
            user_agent: Custom user agent string
            transfer: Chunked transfer tuning

        Returns:
            APIConfig instance
        """
        proxy_config = None
        if proxy:
            proxy_config = ProxyConfig(
                url=proxy,
                username=proxy_user,
                password=proxy_pass
            )

        return APIConfig.for_server(
            base_url,
            token=token,
            auth_code=auth_code,
            proxy=proxy_config,
            timeout=TimeoutConfig(total=timeout),
            ssl=SSLConfig(verify=verify_ssl, check_hostname=verify_ssl),
            user_agent=user_agent or 'chunkdrop/1.0.0',
            transfer=transfer or TransferConfig()
        )

    @property
    def config(self) -> APIConfig:
        return self._config

    @property
    def events(self) -> EventEmitter:
        return self._events

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> 'ChunkDropClient':
        """
        Create the API client and upload services.

        Returns:
            Self for chaining
        """
        if self._api is not None:
            return self
        self._api = UploadAPIClient(self._config, self._transport, self._session)
        self._uploader = UploadFacade(self._api, observer=self._observer, events=self._events)
        self._logger.info(f"Client ready for {self._config.upload_url}")
        return self

    async def __aenter__(self) -> 'ChunkDropClient':
        return await self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the client and release resources."""
        if self._api:
            await self._api.close()
            self._api = None
            self._uploader = None

        if hasattr(self._session, 'close'):
            self._session.close()

    def _ensure_started(self) -> UploadFacade:
        if self._uploader is None:
            raise RuntimeError("Client not started; use 'async with' or await start()")
        return self._uploader

    # =========================================================================
    # Credentials
    # =========================================================================

    async def login(
        self,
        token: Optional[str] = None,
        auth_code: Optional[str] = None,
        upload_channel: Optional[str] = None
    ) -> SessionData:
        """
        Store credentials for the configured server.

        Args:
            token: Bearer token
            auth_code: Upload auth code
            upload_channel: Default upload channel

        Returns:
            Stored session data

        Raises:
            ValueError: If neither token nor auth code is given
        """
        if not token and not auth_code:
            raise ValueError("A token or an auth code is required")
        data = SessionData(
            base_url=self._config.base_url,
            token=token,
            auth_code=auth_code,
            upload_channel=upload_channel
        )
        self._session.save(data)
        self._logger.info(f"Credentials stored for {data.base_url}")
        return data

    async def log_out(self) -> None:
        """Delete stored credentials and close the client."""
        self._session.delete()
        await self.close()

    def get_session(self) -> Optional[SessionData]:
        """Get current session data."""
        return self._session.load()

    def _stored_for_server(self) -> Optional[SessionData]:
        data = self._session.load()
        return data if data and data.belongs_to(self._config.base_url) else None

    @property
    def is_logged_in(self) -> bool:
        """True when a token or auth code is available."""
        if self._config.token or self._config.auth_code:
            return True
        data = self._stored_for_server()
        return bool(data and data.is_valid())

    @property
    def session_file(self) -> Optional[Path]:
        """Get session file path if using SQLite session."""
        if isinstance(self._session, SQLiteSession):
            return self._session.path
        return None

    def default_options(self, **overrides) -> UploadOptions:
        """Upload options with the stored channel applied."""
        data = self._stored_for_server()
        channel = (data.upload_channel if data else None) or DEFAULT_CHANNEL
        return UploadOptions(**{'upload_channel': channel, **overrides})

    # =========================================================================
    # Scanning
    # =========================================================================

    async def scan(self, paths: Iterable[Union[str, Path]], batch_size: int = DEFAULT_BATCH_SIZE) -> List[Entry]:
        """
        Enumerate files under local paths.

        Raises:
            FileNotFoundError: If a path does not exist
        """
        return await self._enumerator.enumerate(await local_handles(paths, batch_size))

    async def enumerate(self, handles: Iterable[EntryHandle]) -> List[Entry]:
        """Enumerate files under arbitrary drop handles."""
        return await self._enumerator.enumerate(handles)

    def plan(self, entry: Entry) -> TransferPlan:
        """
        Plan an entry without sending anything.

        Raises:
            ValidationError: If the file exceeds the chunk cap
        """
        transfer = self._config.transfer
        return plan_for_entry(entry, transfer.chunk_size, transfer.max_chunks)

    # =========================================================================
    # Uploads
    # =========================================================================

    async def upload_entries(self, entries: Iterable[Entry], options: Optional[UploadOptions] = None) -> BatchSummary:
        """Upload entries through the sequential queue."""
        return await self._ensure_started().upload_entries(entries, options or self.default_options())

    async def upload_drop(self, handles: Iterable[EntryHandle], options: Optional[UploadOptions] = None) -> BatchSummary:
        """Enumerate a drop and upload everything in it."""
        return await self.upload_entries(await self.enumerate(handles), options)

    async def upload_paths(
        self,
        paths: Iterable[Union[str, Path]],
        options: Optional[UploadOptions] = None,
        batch_size: int = DEFAULT_BATCH_SIZE
    ) -> BatchSummary:
        """
        Upload local files and folders, keeping folder structure.

        Example:
            >>> summary = await client.upload_paths(["docs"], UploadOptions(upload_folder="backup"))
            >>> # docs/a.txt is stored as backup/docs/a.txt
        """
        return await self.upload_entries(await self.scan(paths, batch_size), options)

    async def upload_file(
        self,
        file_path: Union[str, Path],
        name: Optional[str] = None,
        options: Optional[UploadOptions] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> TransferResult:
        """
        Upload a single local file.

        Raises:
            FileNotFoundError: If file doesn't exist
            ChunkDropException: If the upload fails
        """
        return await self._ensure_started().upload(
            file_path, name, options or self.default_options(), progress_callback
        )

    def intercepting_transport(self, inner: Optional[Transport] = None) -> InterceptingTransport:
        """
        Transport that reroutes large direct uploads through the chunked protocol.

        Hand it to code that sends its own upload requests.
        """
        return self._ensure_started().intercepting_transport(inner)

    # =========================================================================
    # Events
    # =========================================================================

    def on(self, event: str, callback: Callable) -> 'ChunkDropClient':
        """Subscribe to an event (``listing_changed`` after every batch)."""
        self._events.on(event, callback)
        return self

    def off(self, event: str, callback: Optional[Callable] = None) -> 'ChunkDropClient':
        """Unsubscribe from an event."""
        self._events.off(event, callback)
        return self
