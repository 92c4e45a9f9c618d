"""Request executor — one logical Help Scout call with retry-on-expired-token."""

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from helpscout_cli.api.auth import AuthSession, json_or_empty
from helpscout_cli.api.errors import HelpScoutApiError

logger = logging.getLogger(__name__)

API_BASE = "https://api.helpscout.net/v2"

#: Query parameter values accepted by ``RequestExecutor.request``.
ParamValue = str | int | bool | None


class RequestExecutor:
    """Issues authenticated requests and turns non-2xx responses into exceptions.

    The only failure recovered here is an expired token: a 401 triggers one
    forced re-authentication and one retry.  Everything else propagates to
    the error normalizer unchanged.
    """

    def __init__(self, http: httpx.AsyncClient, auth: AuthSession, base_url: str = API_BASE) -> None:
        self._http = http
        self._auth = auth
        self._base_url = base_url.rstrip("/")

    @property
    def auth(self) -> AuthSession:
        return self._auth

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, ParamValue] | None = None,
        body: Any = None,
        retry_allowed: bool = True,
    ) -> Any:
        """Perform ``method path`` and return the decoded JSON body.

        Params whose value is ``None`` are omitted.  A 204 (or any empty 2xx
        body) yields ``{}``.  A non-2xx raises ``HelpScoutApiError`` carrying the
        decoded body and status code.
        """
        query = {k: v for k, v in (params or {}).items() if v is not None}
        token = await self._auth.get_access_token()

        response = await self._http.request(
            method,
            f"{self._base_url}{path}",
            params=query,
            json=body,
            headers={"Authorization": f"Bearer {token}"},
        )
        logger.debug("%s %s -> %d", method, path, response.status_code)

        if response.status_code == 401 and retry_allowed:
            logger.debug("Access token rejected; re-authenticating and retrying once")
            self._auth.invalidate()
            await self._auth.authenticate()
            return await self.request(method, path, params=params, body=body, retry_allowed=False)

        if response.status_code == 204:
            return {}

        if not response.is_success:
            raise HelpScoutApiError(json_or_empty(response), response.status_code)

        if not response.content:
            return {}
        return response.json()
