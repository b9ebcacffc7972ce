"""
Upload options.

Page-context parameters forwarded to the upload endpoint as query string.
"""
from dataclasses import dataclass, replace
from typing import Dict, Optional, Mapping


DEFAULT_CHANNEL = 'telegram'


@dataclass(frozen=True)
class UploadOptions:
    """
    Query parameters shared by every upload call.

    Attributes:
        upload_channel: Storage channel on the server (uploadChannel)
        auth_code: Upload auth code (authCode)
        upload_folder: Base folder on the server (uploadFolder)
        server_compress: Direct uploads only (serverCompress)
        upload_name_type: Direct uploads only (uploadNameType)
        auto_retry: Direct uploads only (autoRetry)
    """
    upload_channel: str = DEFAULT_CHANNEL
    auth_code: Optional[str] = None
    upload_folder: Optional[str] = None
    server_compress: Optional[str] = None
    upload_name_type: Optional[str] = None
    auto_retry: Optional[str] = None

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> 'UploadOptions':
        """Build options from the query parameters of an upload URL."""
        return cls(
            upload_channel=params.get('uploadChannel') or DEFAULT_CHANNEL,
            auth_code=params.get('authCode') or None,
            upload_folder=params.get('uploadFolder') or None,
            server_compress=params.get('serverCompress'),
            upload_name_type=params.get('uploadNameType') or None,
            auto_retry=params.get('autoRetry'),
        )

    def with_folder(self, folder: Optional[str]) -> 'UploadOptions':
        """Return options targeting ``folder`` below the base upload folder."""
        return replace(self, upload_folder=join_folder(self.upload_folder, folder))

    def to_params(self, direct: bool = False) -> Dict[str, str]:
        """
        Convert to query parameters.

        Args:
            direct: Include the passthroughs only the direct path accepts

        Returns:
            Dict of query parameters (unset values omitted)
        """
        params = {'uploadChannel': self.upload_channel}
        if self.auth_code:
            params['authCode'] = self.auth_code
        if self.upload_folder:
            params['uploadFolder'] = self.upload_folder
        if direct:
            if self.server_compress is not None:
                params['serverCompress'] = self.server_compress
            if self.upload_name_type:
                params['uploadNameType'] = self.upload_name_type
            if self.auto_retry is not None:
                params['autoRetry'] = self.auto_retry
        return params


def join_folder(*parts: Optional[str]) -> Optional[str]:
    """Join folder fragments with '/', dropping empty ones."""
    cleaned = [p.strip('/') for p in parts if p and p.strip('/')]
    return '/'.join(cleaned) or None
