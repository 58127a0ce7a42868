"""Credential store implementations.

Usage example:
    from pathlib import Path

    from resilient_api_client.infrastructure.credentials import FileCredentialStore
    from resilient_api_client.types import TokenPair

    store = FileCredentialStore(Path(".api-client/credentials.json"))
    store.store_tokens(TokenPair(access_token="a", refresh_token="r"))
    store.get_access_token()  # "a"
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import override

from ..exceptions import CredentialFileError
from ..io_validation import CredentialFileInput, IncomingDataError, validate_json_as
from ..protocols import CredentialStore
from ..types import TokenPair

DEFAULT_EXPIRES_IN_SECONDS = 3600


def _clean_token(value: str | None) -> str | None:
    """Treat empty and literal "undefined" tokens as absent."""
    if value is None:
        return None
    text = value.strip()
    if not text or text == "undefined":
        return None
    return text


@dataclass
class InMemoryCredentialStore(CredentialStore):
    """Process-local credential store."""

    access_token: str | None = None
    refresh_token: str | None = None
    csrf_token: str | None = None

    @override
    def get_access_token(self) -> str | None:
        return self.access_token

    @override
    def get_refresh_token(self) -> str | None:
        return self.refresh_token

    @override
    def get_csrf_token(self) -> str | None:
        return self.csrf_token

    @override
    def store_tokens(self, pair: TokenPair) -> None:
        self.access_token = _clean_token(pair.access_token)
        self.refresh_token = _clean_token(pair.refresh_token)

    @override
    def store_csrf_token(self, token: str) -> None:
        self.csrf_token = _clean_token(token)

    @override
    def clear_tokens(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.csrf_token = None


class FileCredentialStore(CredentialStore):
    """JSON-file credential store for command-line sessions.

    The file holds `access_token`, `refresh_token`, `token_type`, `expires_at`
    (epoch seconds) and `csrf_token`. A missing file is an empty store.
    """

    def __init__(self, path: Path, *, clock: Callable[[], float] = time.time) -> None:
        self._path = Path(path)
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> CredentialFileInput:
        if not self._path.exists():
            return {}
        payload = self._path.read_text(encoding="utf-8")
        if not payload.strip():
            return {}
        try:
            return validate_json_as(CredentialFileInput, payload)
        except IncomingDataError as exc:
            raise CredentialFileError(str(self._path)) from exc

    def _write(self, data: CredentialFileInput) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        cleaned = {key: value for key, value in data.items() if value is not None}
        self._path.write_text(json.dumps(cleaned, indent=2), encoding="utf-8")

    @override
    def get_access_token(self) -> str | None:
        return _clean_token(self._read().get("access_token"))

    @override
    def get_refresh_token(self) -> str | None:
        return _clean_token(self._read().get("refresh_token"))

    @override
    def get_csrf_token(self) -> str | None:
        return _clean_token(self._read().get("csrf_token"))

    @override
    def store_tokens(self, pair: TokenPair) -> None:
        expires_in = (
            pair.expires_in_seconds
            if pair.expires_in_seconds > 0
            else DEFAULT_EXPIRES_IN_SECONDS
        )
        data = self._read()
        data["access_token"] = _clean_token(pair.access_token)
        data["refresh_token"] = _clean_token(pair.refresh_token)
        data["token_type"] = pair.token_type
        data["expires_at"] = self._clock() + expires_in
        self._write(data)

    @override
    def store_csrf_token(self, token: str) -> None:
        data = self._read()
        data["csrf_token"] = _clean_token(token)
        self._write(data)

    @override
    def clear_tokens(self) -> None:
        self._path.unlink(missing_ok=True)

    def seconds_until_expiry(self) -> float | None:
        """Return seconds until the access token expires, or None if unknown."""
        expires_at = self._read().get("expires_at")
        if expires_at is None:
            return None
        return expires_at - self._clock()

    def is_token_expired(self) -> bool:
        """Return True when there is no usable access token or it has expired."""
        if self.get_access_token() is None:
            return True
        remaining = self.seconds_until_expiry()
        return remaining is not None and remaining <= 0
