"""
Session data models.

Contains the credentials an upload server expects alongside each request.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class SessionData:
    """
    Stored credentials for an upload server.
    
    Attributes:
        base_url: Server the credentials belong to
        token: Bearer token sent as ``Authorization`` header
        auth_code: Upload auth code sent as ``authCode`` header
        upload_channel: Preferred upload channel
        created_at: Session creation timestamp
        updated_at: Last update timestamp
    """
    base_url: str
    token: Optional[str] = None
    auth_code: Optional[str] = None
    upload_channel: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    
    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'base_url': self.base_url,
            'token': self.token,
            'auth_code': self.auth_code,
            'upload_channel': self.upload_channel,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }
    
    @classmethod
    def from_dict(cls, data: dict) -> 'SessionData':
        """Create from dictionary."""
        return cls(
            base_url=data['base_url'],
            token=data.get('token'),
            auth_code=data.get('auth_code'),
            upload_channel=data.get('upload_channel'),
            created_at=datetime.fromisoformat(data['created_at']) if data.get('created_at') else datetime.now(),
            updated_at=datetime.fromisoformat(data['updated_at']) if data.get('updated_at') else datetime.now(),
        )
    
    def belongs_to(self, base_url: Optional[str]) -> bool:
        """True when the credentials were stored for ``base_url``."""
        if not self.base_url or not base_url:
            return False
        return self.base_url.rstrip('/') == base_url.rstrip('/')
    
    def is_valid(self) -> bool:
        """True when the session holds at least one credential."""
        return bool(self.base_url and (self.token or self.auth_code))
    
    def update_timestamp(self) -> None:
        """Update the updated_at timestamp to now."""
        self.updated_at = datetime.now()
