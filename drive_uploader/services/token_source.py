"""
Token Source - Single Responsibility: turn the refresh credential into bearer tokens.

Tokens are requested fresh for every operation; nothing is cached in-process,
so a single instance is safely shared by all concurrent requests.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from ..errors import CredentialExchangeError

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
DRIVE_SCOPES = ("https://www.googleapis.com/auth/drive.file",)


class OAuthTokenSource:
    """
    OAuth2 refresh-token exchanger.

    Implements ITokenSource protocol.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        refresh_token: Optional[str],
        http_client: Optional[httpx.AsyncClient] = None,
        token_url: str = TOKEN_URL,
    ):
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._refresh_token = refresh_token
        self._http = http_client
        self._owns_client = http_client is None
        self._token_url = token_url

    async def __aenter__(self):
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=30)
        return self

    async def __aexit__(self, *args):
        if self._owns_client and self._http:
            await self._http.aclose()
            self._http = None

    async def get_access_token(self) -> str:
        """
        Exchange the refresh credential for a bearer token.

        Raises:
            CredentialExchangeError: exchange failed or returned no token
        """
        if not self._refresh_token:
            raise CredentialExchangeError("No refresh token configured")

        payload = await self._post_token({
            "grant_type": "refresh_token",
            "refresh_token": self._refresh_token,
        })
        token = payload.get("access_token")
        if not token:
            raise CredentialExchangeError("Failed to retrieve access token")
        return token

    def build_authorization_url(self) -> str:
        """Consent URL for the one-time offline authorization flow."""
        query = urlencode({
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": " ".join(DRIVE_SCOPES),
            "access_type": "offline",
            "prompt": "consent",
        })
        return f"{AUTH_URL}?{query}"

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        """Trade an authorization code for tokens (including the refresh token)."""
        return await self._post_token({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self._redirect_uri,
        })

    async def _post_token(self, form: Dict[str, str]) -> Dict[str, Any]:
        if self._http is None:
            raise RuntimeError("OAuthTokenSource not initialized. Use 'async with' context.")

        data = dict(form, client_id=self._client_id, client_secret=self._client_secret)
        try:
            response = await self._http.post(self._token_url, data=data)
        except httpx.HTTPError as exc:
            logger.error("Token endpoint unreachable: %s", exc)
            raise CredentialExchangeError(f"Token exchange failed: {exc}") from exc

        if response.status_code >= 400:
            try:
                detail = response.json()
            except ValueError:
                detail = response.text
            logger.error("Token exchange rejected (%s): %s", response.status_code, detail)
            raise CredentialExchangeError(
                f"Token exchange failed with status {response.status_code}: {detail}"
            )

        try:
            return response.json()
        except ValueError as exc:
            raise CredentialExchangeError("Token endpoint returned invalid JSON") from exc
