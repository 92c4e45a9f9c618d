"""Tests for ``helpscout auth`` — store and client are faked, CliRunner used throughout."""

import json
from typing import Any
from unittest.mock import MagicMock

from helpscout_cli.api.errors import HelpScoutApiError
from helpscout_cli.storage.credentials import CredentialField


class TestLogin:
    def test_stores_credentials_and_verifies(self, invoke: Any, store: Any, mock_client: MagicMock) -> None:
        store.set(CredentialField.ACCESS_TOKEN, "old")
        store.set(CredentialField.REFRESH_TOKEN, "old-ref")

        result = invoke("auth", "login", "--app-id", " new-id ", "--app-secret", "new-secret")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"message": "Authenticated"}
        assert store.get(CredentialField.APP_ID) == "new-id"
        assert store.get(CredentialField.APP_SECRET) == "new-secret"
        assert store.get(CredentialField.ACCESS_TOKEN) is None
        assert store.get(CredentialField.REFRESH_TOKEN) is None
        mock_client.auth.authenticate.assert_awaited_once()

    def test_rejected_credentials_exit_with_api_error(self, invoke: Any, mock_client: MagicMock) -> None:
        mock_client.auth.authenticate.side_effect = HelpScoutApiError(
            {"error": "unauthorized", "error_description": "Invalid client credentials"}, 401
        )

        result = invoke("auth", "login", "--app-id", "x", "--app-secret", "y")

        assert result.exit_code == 1
        assert '"name": "unauthorized"' in result.output
        assert "Invalid client credentials" in result.output


class TestStatusLogoutRefresh:
    def test_status(self, invoke: Any, store: Any) -> None:
        store.set(CredentialField.REFRESH_TOKEN, "ref")
        store.set(CredentialField.DEFAULT_MAILBOX, "3")

        result = invoke("auth", "status")

        assert json.loads(result.output) == {
            "authenticated": True,
            "hasAccessToken": False,
            "hasRefreshToken": True,
            "defaultMailbox": "3",
        }

    def test_logout_clears_everything(self, invoke: Any, store: Any) -> None:
        result = invoke("auth", "logout")
        assert result.exit_code == 0
        assert store.values == {}

    def test_refresh_invalidates_then_authenticates(self, invoke: Any, mock_client: MagicMock) -> None:
        result = invoke("auth", "refresh")

        assert json.loads(result.output) == {"message": "Token refreshed"}
        mock_client.auth.invalidate.assert_called_once()
        mock_client.auth.authenticate.assert_awaited_once()
