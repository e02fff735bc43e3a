"""Use case for opening resumable upload sessions."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from drive_uploader.errors import (
    CredentialExchangeError,
    SessionOpenError,
    UpstreamError,
    describe_exception,
)
from drive_uploader.models import UploadSession

logger = logging.getLogger(__name__)


def _clean_properties(app_properties: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
    if not app_properties:
        return None
    cleaned = {k: str(v) for k, v in app_properties.items() if v is not None}
    return cleaned or None


class UploadSessionOpener:
    """Open one resumable channel; the caller transfers the bytes itself."""

    def __init__(self, token_source: Any, drive: Any, reserve_file_id: bool = False):
        self._tokens = token_source
        self._drive = drive
        self._reserve_file_id = reserve_file_id

    async def open_session(
        self,
        folder_id: str,
        filename: str,
        app_properties: Optional[Dict[str, Any]] = None,
        mime_type: Optional[str] = None,
        reserve_file_id: Optional[bool] = None,
    ) -> UploadSession:
        """
        Open a session scoped to ``folder_id`` naming the artifact ``filename``.

        Args:
            folder_id: Destination folder handle
            filename: Name of the artifact to create
            app_properties: Properties stored on the artifact (None values dropped)
            mime_type: Optional content type announced to the provider
            reserve_file_id: Pre-allocate the artifact id (defaults to instance setting)

        Returns:
            UploadSession with the URL and the token used to open it

        Raises:
            CredentialExchangeError: no token could be obtained
            SessionOpenError: provider refused or failed the session request
        """
        access_token = await self._tokens.get_access_token()
        reserve = self._reserve_file_id if reserve_file_id is None else reserve_file_id

        try:
            file_id = await self._drive.generate_file_id() if reserve else None
            upload_url = await self._drive.create_resumable_session(
                folder_id,
                filename,
                app_properties=_clean_properties(app_properties),
                mime_type=mime_type,
                file_id=file_id,
                access_token=access_token,
            )
        except CredentialExchangeError:
            raise
        except UpstreamError as exc:
            logger.error("Error creating upload session for %s: %s", filename, exc.message)
            raise SessionOpenError(exc.message) from exc
        except Exception as exc:
            error_msg = describe_exception(exc)
            logger.error("Error creating upload session for %s: %s", filename, error_msg, exc_info=True)
            raise SessionOpenError(error_msg) from exc

        logger.info("Opened upload session for %s in folder %s", filename, folder_id)
        return UploadSession(upload_url=upload_url, access_token=access_token, file_id=file_id)
