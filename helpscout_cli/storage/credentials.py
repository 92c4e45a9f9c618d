"""Persistent credential storage — app credentials, OAuth tokens, default mailbox."""

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

_CREDENTIALS_FILENAME = "credentials.json"


class CredentialField(str, Enum):
    """Keys held by a credential store.  Values double as the on-disk JSON keys."""

    APP_ID = "appId"
    APP_SECRET = "appSecret"
    ACCESS_TOKEN = "accessToken"
    REFRESH_TOKEN = "refreshToken"
    DEFAULT_MAILBOX = "defaultMailbox"


#: Environment variables that take precedence over stored values.
ENV_OVERRIDES: dict[CredentialField, str] = {
    CredentialField.APP_ID: "HELPSCOUT_APP_ID",
    CredentialField.APP_SECRET: "HELPSCOUT_APP_SECRET",
}


@runtime_checkable
class CredentialStore(Protocol):
    """Interface the auth session and CLI use to read and persist credentials."""

    def get(self, field: CredentialField) -> str | None: ...

    def set(self, field: CredentialField, value: str) -> None: ...

    def clear(self, field: CredentialField) -> None: ...

    def clear_all(self) -> None: ...


def default_config_dir() -> Path:
    """Return ``$HELPSCOUT_CONFIG_DIR`` or ``~/.config/helpscout-cli``."""
    override = os.environ.get("HELPSCOUT_CONFIG_DIR")
    if override:
        return Path(override)
    return Path.home() / ".config" / "helpscout-cli"


class FileCredentialStore:
    """JSON-file credential store, readable only by the owning user.

    The file is re-read on every ``get`` so separate processes (a CLI command
    and a running MCP server) observe each other's token refreshes.

    Usage::

        store = FileCredentialStore()
        store.set(CredentialField.APP_ID, "abc")
        store.get(CredentialField.APP_ID)
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path else default_config_dir() / _CREDENTIALS_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    def get(self, field: CredentialField) -> str | None:
        env_var = ENV_OVERRIDES.get(field)
        if env_var:
            env_value = os.environ.get(env_var)
            if env_value:
                return env_value
        value = self._load().get(field.value)
        return str(value) if value else None

    def set(self, field: CredentialField, value: str) -> None:
        data = self._load()
        data[field.value] = value
        self._save(data)

    def clear(self, field: CredentialField) -> None:
        data = self._load()
        if data.pop(field.value, None) is not None:
            self._save(data)

    def clear_all(self) -> None:
        """Delete every stored value (environment overrides are untouched)."""
        if self._path.exists():
            self._path.unlink()
            logger.info("Removed credential file %s", self._path)

    # ── Internal helpers ───────────────────────────────────────────────────────

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable credential file %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(json.dumps(data, indent=2))
        # O_CREAT's mode only applies to new files
        os.chmod(self._path, 0o600)
