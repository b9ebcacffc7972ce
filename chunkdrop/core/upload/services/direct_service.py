"""
Direct upload service.

Sends files at or below the chunk threshold in a single request.
"""
import time

from ...api import UploadAPIClient, UploadOptions
from ...logging import get_logger
from ..models import TransferPlan, TransferResult
from ..protocols import ContentSource


class DirectUploader:
    """
    Uploads a whole file in one multipart request.

    The file part is named with the full relative path and the folder part
    of that path is also sent as ``uploadFolder`` so the server recreates
    the directory structure.
    """

    def __init__(self, api: UploadAPIClient):
        self._api = api
        self._logger = get_logger('chunkdrop.upload.direct')

    async def upload(
        self,
        plan: TransferPlan,
        source: ContentSource,
        options: UploadOptions
    ) -> TransferResult:
        """
        Upload a file directly.

        Raises:
            TransportError: Non-2xx reply or network failure
            ProtocolError: Undecodable reply
        """
        start = time.time()
        self._logger.info(f"Direct upload: {plan.path} ({plan.size / (1024 * 1024):.2f} MB)")
        payload = await self._api.upload_direct(
            plan.path,
            source,
            plan.content_type,
            options.with_folder(plan.folder)
        )
        result = TransferResult.from_payload(payload)
        self._logger.info(f"Direct upload done in {time.time() - start:.2f}s: {result.src or plan.path}")
        return result
