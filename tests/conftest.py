"""Pytest fixtures shared across the suite.

All tests are network-isolated - socket connections are blocked by default.
"""

from __future__ import annotations

import os
import socket

import pytest

from resilient_api_client.infrastructure.credentials import InMemoryCredentialStore
from tests.fakes import FakeTokenRefresher, FakeTransport, RecordingAuthRedirect, RecordingSleep
from tests.support.errors import NetworkIsolationError


def _blocked_socket_connect(self: socket.socket, *args: object, **kwargs: object) -> None:
    """Raise an error if any test tries to make a real network connection."""
    raise NetworkIsolationError(repr(args))


@pytest.fixture(autouse=True)
def block_network_access(monkeypatch: pytest.MonkeyPatch) -> None:
    """Block all network access in tests.

    Tests that need HTTP should use FakeTransport or httpx.MockTransport.
    """
    monkeypatch.setattr(socket.socket, "connect", _blocked_socket_connect)


@pytest.fixture(autouse=True)
def clear_client_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep API_CLIENT_* variables from the developer's shell out of tests."""
    for name in list(os.environ):
        if name.startswith("API_CLIENT_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def credentials() -> InMemoryCredentialStore:
    """Store holding an access token and a refresh token."""
    return InMemoryCredentialStore(access_token="old-access", refresh_token="old-refresh")


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def refresher() -> FakeTokenRefresher:
    return FakeTokenRefresher()


@pytest.fixture
def redirect() -> RecordingAuthRedirect:
    return RecordingAuthRedirect()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()
