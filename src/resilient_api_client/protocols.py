"""Protocol definitions for dependency injection.

These protocols define the abstract interfaces that client components depend on,
enabling isolated unit testing with fake implementations.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from .exceptions import TransportFailure
from .types import RequestContext, TokenPair, TransportResponse

type Sleep = Callable[[float], Awaitable[None]]


@runtime_checkable
class CredentialStore(Protocol):
    """Synchronous key-value store for access, refresh and CSRF tokens."""

    def get_access_token(self) -> str | None:
        """Return the stored access token, if any."""
        ...

    def get_refresh_token(self) -> str | None:
        """Return the stored refresh token, if any."""
        ...

    def get_csrf_token(self) -> str | None:
        """Return the stored CSRF token, if any."""
        ...

    def store_tokens(self, pair: TokenPair) -> None:
        """Persist a newly issued token pair."""
        ...

    def store_csrf_token(self, token: str) -> None:
        """Persist a CSRF token."""
        ...

    def clear_tokens(self) -> None:
        """Forget every stored token."""
        ...


@runtime_checkable
class Transport(Protocol):
    """Sends one request and returns whatever the server answered."""

    async def dispatch(self, context: RequestContext) -> TransportResponse:
        """Send `context` and return the response.

        Raises:
            TransportFailure: When no HTTP response was received.
        """
        ...

    async def aclose(self) -> None:
        """Release connections held by the transport."""
        ...


@runtime_checkable
class TokenRefresher(Protocol):
    """Exchanges a refresh token for a new token pair."""

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Return a new token pair.

        Raises:
            StructuredError: When the refresh call fails for any reason.
        """
        ...


@runtime_checkable
class AuthRedirect(Protocol):
    """Signals that the user must authenticate again."""

    def redirect_to_login(self) -> None:
        """Navigate to the authentication entry point."""
        ...


@runtime_checkable
class RetryPolicy(Protocol):
    """Abstract retry policy for transient transport failures."""

    max_retries: int

    def should_retry(self, failure: TransportFailure, retry_count: int) -> bool:
        """Return True when `failure` may be retried after `retry_count` retries."""
        ...

    def compute_backoff(self, attempt: int) -> float:
        """Return the delay in seconds before retry number `attempt` (0-indexed)."""
        ...
