"""Upload API module."""
from .config import APIConfig, ProxyConfig, SSLConfig, TimeoutConfig, TransferConfig
from .options import UploadOptions
from .transport import (
    AiohttpTransport,
    FormField,
    Transport,
    TransportResponse,
    UploadRequest,
)
from .async_client import UploadAPIClient
from .events import EventEmitter, LISTING_CHANGED

__all__ = [
    # Client
    'UploadAPIClient',
    'UploadOptions',
    
    # Transport
    'Transport',
    'AiohttpTransport',
    'UploadRequest',
    'TransportResponse',
    'FormField',
    
    # Configuration
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'TransferConfig',
    
    # Events
    'EventEmitter',
    'LISTING_CHANGED',
]
