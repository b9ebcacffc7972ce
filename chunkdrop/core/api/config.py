"""
API configuration module.

Provides configuration for the upload API client and the transfer engine.
Open for extension through custom configurations.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import ssl


MIB = 1024 * 1024

# Chunked protocol defaults
CHUNK_SIZE = 20 * MIB
MAX_CHUNKS = 200
MAX_CONCURRENT_CHUNKS = 3
POLL_INTERVAL = 2.0
POLL_TIMEOUT = 300.0


@dataclass
class ProxyConfig:
    """
    Proxy configuration.

    Supports HTTP and HTTPS proxies.
    """
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def to_aiohttp_proxy(self) -> Optional[str]:
        """Convert to aiohttp proxy format."""
        if not self.url:
            return None

        if self.username and self.password:
            # Insert credentials into URL
            if '://' in self.url:
                protocol, rest = self.url.split('://', 1)
                return f"{protocol}://{self.username}:{self.password}@{rest}"

        return self.url


@dataclass
class SSLConfig:
    """
    SSL/TLS configuration.

    Allows customization of SSL behavior for self-hosted upload servers.
    """
    verify: bool = True
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    check_hostname: bool = True

    def create_ssl_context(self):
        """Create SSL context from configuration (False disables verification)."""
        if not self.verify:
            return False

        context = ssl.create_default_context()

        if self.ca_file:
            context.load_verify_locations(self.ca_file)

        if self.cert_file:
            context.load_cert_chain(
                self.cert_file,
                keyfile=self.key_file
            )

        context.check_hostname = self.check_hostname

        return context


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.

    Chunk requests carry up to 20 MB each, so the total timeout is generous.
    """
    total: float = 600.0  # Total request timeout
    connect: float = 30.0  # Connection timeout
    sock_read: float = 300.0  # Socket read timeout
    sock_connect: float = 30.0  # Socket connect timeout

    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read,
            sock_connect=self.sock_connect
        )


@dataclass
class TransferConfig:
    """
    Chunked transfer tuning.

    Attributes:
        chunk_size: Size of one chunk, also the direct/chunked threshold
        max_chunks: Hard cap on chunks per file
        max_concurrent_chunks: Chunk requests in flight per file
        poll_interval: Seconds between merge status checks
        poll_timeout: Overall merge wait budget in seconds
        large_file_delay: Pause after a file above the threshold
        small_file_delay: Pause after any other file
    """
    chunk_size: int = CHUNK_SIZE
    max_chunks: int = MAX_CHUNKS
    max_concurrent_chunks: int = MAX_CONCURRENT_CHUNKS
    poll_interval: float = POLL_INTERVAL
    poll_timeout: float = POLL_TIMEOUT
    large_file_delay: float = 0.5
    small_file_delay: float = 0.2

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        if self.max_concurrent_chunks <= 0:
            raise ValueError("Chunk concurrency must be positive")

    @property
    def max_file_size(self) -> int:
        """Largest file the chunk cap allows."""
        return self.chunk_size * self.max_chunks


@dataclass
class APIConfig:
    """
    Complete API configuration.

    Centralizes all configuration options for the upload API client.
    """
    # Server settings
    base_url: str = 'http://localhost:8080'
    upload_path: str = '/upload'

    # User agent
    user_agent: str = 'chunkdrop/1.0.0'

    # Credentials (override whatever the session storage holds)
    token: Optional[str] = None
    auth_code: Optional[str] = None

    # Sub-configurations
    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    transfer: TransferConfig = field(default_factory=TransferConfig)

    # Additional headers
    extra_headers: Dict[str, str] = field(default_factory=dict)

    # Connection pool settings
    limit_per_host: int = 10
    limit: int = 100

    @classmethod
    def default(cls) -> 'APIConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def for_server(cls, base_url: str, **kwargs) -> 'APIConfig':
        """Create configuration for a given server."""
        return cls(base_url=base_url.rstrip('/'), **kwargs)

    @classmethod
    def insecure(cls, **kwargs) -> 'APIConfig':
        """Create configuration with SSL verification disabled."""
        return cls(
            ssl=SSLConfig(verify=False, check_hostname=False),
            **kwargs
        )

    @property
    def upload_url(self) -> str:
        """Absolute URL of the upload endpoint."""
        return f"{self.base_url.rstrip('/')}/{self.upload_path.lstrip('/')}"

    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {
            'limit': self.limit,
            'limit_per_host': self.limit_per_host,
            'ssl': self.ssl.create_ssl_context(),
        }

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }

        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }
