"""HTTP adapter for Google Drive v3 operations."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import UpstreamError
from ..protocols import ITokenSource

logger = logging.getLogger(__name__)

DRIVE_API_URL = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


def _quote(value: str) -> str:
    """Escape a literal for a Drive ``q`` expression."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveAPIClient:
    """
    HTTP client adapter for the Drive API.

    Implements IDriveClient protocol. Every call asks the token source for a
    fresh bearer token unless one is passed in. Calls are never retried.
    """

    def __init__(
        self,
        token_source: ITokenSource,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: int = 60,
        api_url: str = DRIVE_API_URL,
        upload_url: str = DRIVE_UPLOAD_URL,
    ):
        self._tokens = token_source
        self._client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout
        self._api_url = api_url.rstrip("/")
        self._upload_url = upload_url

    async def __aenter__(self):
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self

    async def __aexit__(self, *args):
        if self._owns_client and self._client:
            await self._client.aclose()
            self._client = None

    async def list_child_folders(self, parent_id: str) -> List[Dict[str, Any]]:
        """List every immediate, non-trashed subfolder of ``parent_id``."""
        query = (
            f"'{_quote(parent_id)}' in parents and mimeType='{FOLDER_MIME_TYPE}' "
            "and trashed=false"
        )
        folders: List[Dict[str, Any]] = []
        page_token: Optional[str] = None
        token = await self._tokens.get_access_token()

        while True:
            params = {
                "q": query,
                "fields": "nextPageToken, files(id, name)",
                "pageSize": 1000,
                "spaces": "drive",
            }
            if page_token:
                params["pageToken"] = page_token
            response = await self._request("GET", f"{self._api_url}/files", token, params=params)
            payload = response.json()
            folders.extend(payload.get("files") or [])
            page_token = payload.get("nextPageToken")
            if not page_token:
                break

        logger.debug("Listed %d subfolder(s) of %s", len(folders), parent_id)
        return folders

    async def create_resumable_session(
        self,
        folder_id: str,
        filename: str,
        app_properties: Optional[Dict[str, str]] = None,
        mime_type: Optional[str] = None,
        file_id: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> str:
        """Open a resumable upload session; returns the ``Location`` URL."""
        token = access_token or await self._tokens.get_access_token()
        metadata: Dict[str, Any] = {"name": filename, "parents": [folder_id]}
        if app_properties:
            metadata["appProperties"] = app_properties
        if mime_type:
            metadata["mimeType"] = mime_type
        if file_id:
            metadata["id"] = file_id

        headers = {"Content-Type": "application/json; charset=UTF-8"}
        if mime_type:
            headers["X-Upload-Content-Type"] = mime_type

        response = await self._request(
            "POST",
            self._upload_url,
            token,
            params={"uploadType": "resumable"},
            json=metadata,
            headers=headers,
        )
        location = response.headers.get("location")
        if not location:
            raise UpstreamError("Drive did not return a resumable session URL")
        return location

    async def generate_file_id(self) -> str:
        token = await self._tokens.get_access_token()
        response = await self._request(
            "GET",
            f"{self._api_url}/files/generateIds",
            token,
            params={"count": 1, "space": "drive", "type": "files"},
        )
        ids = response.json().get("ids") or []
        if not ids:
            raise UpstreamError("Drive did not return a file id")
        return ids[0]

    async def get_file(self, file_id: str, fields: str = "id,name,appProperties") -> Optional[Dict[str, Any]]:
        token = await self._tokens.get_access_token()
        response = await self._request(
            "GET",
            f"{self._api_url}/files/{file_id}",
            token,
            params={"fields": fields},
            allow_missing=True,
        )
        if response is None:
            return None
        return response.json()

    async def copy_file(
        self,
        file_id: str,
        name: str,
        parent_id: str,
        app_properties: Optional[Dict[str, str]] = None,
    ) -> str:
        token = await self._tokens.get_access_token()
        body: Dict[str, Any] = {"name": name, "parents": [parent_id]}
        if app_properties:
            body["appProperties"] = app_properties
        response = await self._request(
            "POST",
            f"{self._api_url}/files/{file_id}/copy",
            token,
            params={"fields": "id"},
            json=body,
        )
        new_id = response.json().get("id")
        if not new_id:
            raise UpstreamError(f"Drive copy of {file_id} returned no id")
        return new_id

    async def find_files(self, name: str) -> List[Dict[str, Any]]:
        token = await self._tokens.get_access_token()
        response = await self._request(
            "GET",
            f"{self._api_url}/files",
            token,
            params={
                "q": f"name='{_quote(name)}' and trashed=false",
                "fields": "files(id, webViewLink)",
                "spaces": "drive",
            },
        )
        return response.json().get("files") or []

    async def _request(
        self,
        method: str,
        url: str,
        token: str,
        allow_missing: bool = False,
        headers: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> Optional[httpx.Response]:
        if not self._client:
            raise RuntimeError("DriveAPIClient not initialized. Use 'async with' context.")

        request_headers = {"Authorization": f"Bearer {token}"}
        if headers:
            request_headers.update(headers)

        try:
            response = await self._client.request(method, url, headers=request_headers, **kwargs)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Drive request {method} {url} failed: {exc}") from exc

        if allow_missing and response.status_code == 404:
            return None

        if response.status_code >= 400:
            try:
                error_detail = response.json()
            except ValueError:
                error_detail = response.text
            raise UpstreamError(
                f"Drive API error {response.status_code} on {method} {url}: {error_detail}"
            )

        return response
