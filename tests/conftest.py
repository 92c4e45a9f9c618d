"""Shared pytest fixtures."""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import MagicMock, patch

import httpx
import pytest
from click.testing import CliRunner, Result

from helpscout_cli.api.auth import AuthSession
from helpscout_cli.api.client import HelpScoutClient, helpscout_client
from helpscout_cli.storage.credentials import CredentialField

TOKEN_PATH = "/v2/oauth2/token"


class MemoryCredentialStore:
    """In-memory ``CredentialStore`` with no environment overrides."""

    def __init__(self, **values: str) -> None:
        self.values: dict[CredentialField, str] = {CredentialField(k): v for k, v in values.items()}

    def get(self, field: CredentialField) -> str | None:
        return self.values.get(field)

    def set(self, field: CredentialField, value: str) -> None:
        self.values[field] = value

    def clear(self, field: CredentialField) -> None:
        self.values.pop(field, None)

    def clear_all(self) -> None:
        self.values.clear()


class FakeHelpScout:
    """``httpx.MockTransport`` handler: canned responses per route, every request recorded.

    Responses queued for a route are served in order; the last one repeats.
    Unknown routes answer 404 with a Help Scout style error body.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[tuple[int, Any]]] = {}

    def add(self, method: str, path: str, status: int = 200, json: Any = None) -> "FakeHelpScout":
        self._routes.setdefault((method, path), []).append((status, json))
        return self

    def reset(self, method: str, path: str) -> "FakeHelpScout":
        self._routes.pop((method, path), None)
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"error": "not_found", "message": f"No route {request.url.path}"})
        status, body = queue.pop(0) if len(queue) > 1 else queue[0]
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def calls_to(self, path: str, method: str | None = None) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.url.path == path and (method is None or r.method == method)
        ]

    @property
    def token_requests(self) -> list[httpx.Request]:
        return self.calls_to(TOKEN_PATH, "POST")


@pytest.fixture
def store() -> MemoryCredentialStore:
    """A store holding app credentials but no tokens yet."""
    return MemoryCredentialStore(appId="app-id", appSecret="app-secret")


@pytest.fixture
def fake_api() -> FakeHelpScout:
    """A fake Help Scout with a working client_credentials token endpoint."""
    return FakeHelpScout().add("POST", TOKEN_PATH, json={"access_token": "tok-1", "expires_in": 7200})


@pytest.fixture
async def client(store: MemoryCredentialStore, fake_api: FakeHelpScout) -> AsyncIterator[HelpScoutClient]:
    async with helpscout_client(store, transport=httpx.MockTransport(fake_api)) as c:
        yield c


# ── CLI helpers ─────────────────────────────────────────────────────────────────


@pytest.fixture
def mock_client() -> MagicMock:
    """A HelpScoutClient double whose coroutine methods are AsyncMocks."""
    mocked = MagicMock(spec=HelpScoutClient)
    mocked.auth = MagicMock(spec=AuthSession)
    return mocked


@pytest.fixture
def invoke(store: MemoryCredentialStore, mock_client: MagicMock) -> Callable[..., Result]:
    """Run the ``helpscout`` CLI against the memory store and the mocked client."""
    from helpscout_cli.cli.main import cli

    @asynccontextmanager
    async def fake_helpscout_client(_store: Any, **_kwargs: Any) -> AsyncIterator[MagicMock]:
        yield mock_client

    def _invoke(*args: str, input: str | None = None) -> Result:
        runner = CliRunner()
        with (
            patch("helpscout_cli.cli.main.FileCredentialStore", return_value=store),
            patch("helpscout_cli.cli.utils.helpscout_client", fake_helpscout_client),
        ):
            return runner.invoke(cli, list(args), input=input)

    return _invoke
