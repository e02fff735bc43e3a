"""
Folder Lookup - adapter for the Apps Script web app.

The script keeps its own student -> folder id sheet and doubles as the upload
log sink. It answers lookups with plain text: a folder id or ``NOT_FOUND``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from ..errors import UpstreamError

logger = logging.getLogger(__name__)

NOT_FOUND_SENTINEL = "NOT_FOUND"


class AppsScriptClient:
    """
    HTTP client adapter for the lookup script.

    Implements IFolderLookup protocol.
    """

    def __init__(self, script_url: str, http_client: Optional[httpx.AsyncClient] = None, timeout: int = 60):
        self._script_url = script_url
        self._client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout

    async def __aenter__(self):
        if self._client is None:
            # Apps Script answers through a redirect to googleusercontent.com
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self

    async def __aexit__(self, *args):
        if self._owns_client and self._client:
            await self._client.aclose()
            self._client = None

    async def get_folder_id(
        self, course: str, centre: str, batch: str, level: str, student: str
    ) -> Optional[str]:
        response = await self._send("GET", params={
            "action": "getFolderId",
            "course": course,
            "centre": centre,
            "batch": batch,
            "level": level,
            "student": student,
        })
        if response.status_code >= 400:
            raise UpstreamError(
                f"Folder lookup failed with status {response.status_code} for student {student}"
            )
        folder_id = response.text.strip()
        if not folder_id or folder_id == NOT_FOUND_SENTINEL:
            return None
        return folder_id

    async def forward_log(self, payload: Dict[str, Any]) -> Tuple[int, Any]:
        """POST a log record; returns (status, body) as the script answered."""
        response = await self._send("POST", params={"action": "log"}, json=payload)
        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}
        return response.status_code, body

    async def _send(self, method: str, **kwargs) -> httpx.Response:
        if not self._client:
            raise RuntimeError("AppsScriptClient not initialized. Use 'async with' context.")
        try:
            return await self._client.request(method, self._script_url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Lookup script unreachable: %s", exc)
            raise UpstreamError(f"Lookup script request failed: {exc}") from exc
