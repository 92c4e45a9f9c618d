"""OAuth2 token lifecycle for the Help Scout API — obtain, cache, refresh."""

import asyncio
import logging
from typing import Any

import httpx

from helpscout_cli.api.errors import HelpScoutApiError, HelpScoutCliError
from helpscout_cli.storage.credentials import CredentialField, CredentialStore

logger = logging.getLogger(__name__)

TOKEN_URL = "https://api.helpscout.net/v2/oauth2/token"

NOT_CONFIGURED_MESSAGE = "Not configured. Please run: helpscout auth login"


class AuthSession:
    """Hands out bearer tokens, re-authenticating when asked to.

    Freshness is reactive: tokens carry no client-side expiry, so a cached
    token is trusted until the request executor sees a 401 and calls
    ``invalidate()`` followed by ``authenticate()``.

    The in-memory token is guarded by an ``asyncio.Lock`` because the MCP
    server shares one session across concurrent tool calls.
    """

    def __init__(
        self,
        store: CredentialStore,
        http: httpx.AsyncClient,
        token_url: str = TOKEN_URL,
    ) -> None:
        self._store = store
        self._http = http
        self._token_url = token_url
        self._access_token: str | None = None
        self._lock = asyncio.Lock()

    # ── Public API ─────────────────────────────────────────────────────────────

    def is_configured(self) -> bool:
        """True when both app id and app secret are available."""
        return bool(
            self._store.get(CredentialField.APP_ID)
            and self._store.get(CredentialField.APP_SECRET)
        )

    async def get_access_token(self) -> str:
        """Return the cached token, else the persisted one, else authenticate."""
        async with self._lock:
            if self._access_token:
                return self._access_token

            stored = self._store.get(CredentialField.ACCESS_TOKEN)
            if stored:
                self._access_token = stored
                return stored

            return await self._authenticate()

    async def authenticate(self) -> str:
        """Run a full token exchange: refresh grant first, client credentials second."""
        async with self._lock:
            return await self._authenticate()

    def invalidate(self) -> None:
        """Drop the in-memory token.  The persisted refresh token is kept."""
        self._access_token = None

    # ── Internal helpers ───────────────────────────────────────────────────────

    async def _authenticate(self) -> str:
        app_id = self._store.get(CredentialField.APP_ID)
        app_secret = self._store.get(CredentialField.APP_SECRET)
        if not app_id or not app_secret:
            raise HelpScoutCliError(NOT_CONFIGURED_MESSAGE, 401)

        refresh_token = self._store.get(CredentialField.REFRESH_TOKEN)
        if refresh_token:
            token = await self._try_refresh(app_id, app_secret, refresh_token)
            if token:
                return token

        response = await self._http.post(
            self._token_url,
            data={
                "grant_type": "client_credentials",
                "client_id": app_id,
                "client_secret": app_secret,
            },
        )
        if not response.is_success:
            raise HelpScoutApiError(json_or_empty(response), response.status_code)

        logger.debug("Obtained access token via client_credentials")
        return self._store_tokens(response.json())

    async def _try_refresh(self, app_id: str, app_secret: str, refresh_token: str) -> str | None:
        """Attempt a refresh_token grant.  Any failure returns None so the caller falls back."""
        try:
            response = await self._http.post(
                self._token_url,
                data={
                    "grant_type": "refresh_token",
                    "client_id": app_id,
                    "client_secret": app_secret,
                    "refresh_token": refresh_token,
                },
            )
            if not response.is_success:
                logger.debug("Refresh grant rejected (HTTP %d); using client_credentials", response.status_code)
                return None
            data = json_or_empty(response)
            if not data.get("access_token"):
                logger.debug("Refresh grant returned no access token; using client_credentials")
                return None
            token = self._store_tokens(data)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Refresh grant failed (%s); using client_credentials", type(exc).__name__)
            return None
        logger.debug("Obtained access token via refresh_token")
        return token

    def _store_tokens(self, data: dict[str, Any]) -> str:
        token = str(data["access_token"])
        self._store.set(CredentialField.ACCESS_TOKEN, token)
        if data.get("refresh_token"):
            self._store.set(CredentialField.REFRESH_TOKEN, str(data["refresh_token"]))
        self._access_token = token
        return token


def json_or_empty(response: httpx.Response) -> dict[str, Any]:
    """Decode a JSON object body, substituting ``{}`` for anything unparseable."""
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
