"""Authentication entry point signalling."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import override

from ..observability import get_logger
from ..protocols import AuthRedirect

logger = get_logger("resilient_api_client.infrastructure.redirect")


def is_auth_endpoint(url: str, markers: Iterable[str]) -> bool:
    """Return True when `url` belongs to an authentication endpoint."""
    return any(marker and marker in url for marker in markers)


class LoggingAuthRedirect(AuthRedirect):
    """Reports that the user must log in again.

    A non-interactive client cannot navigate anywhere, so the signal is logged
    and handed to an optional callback.
    """

    def __init__(
        self,
        login_url: str,
        *,
        on_redirect: Callable[[str], None] | None = None,
    ) -> None:
        self._login_url = login_url
        self._on_redirect = on_redirect

    @property
    def login_url(self) -> str:
        return self._login_url

    @override
    def redirect_to_login(self) -> None:
        logger.warning("Session ended; log in again at %s", self._login_url)
        if self._on_redirect is not None:
            self._on_redirect(self._login_url)
