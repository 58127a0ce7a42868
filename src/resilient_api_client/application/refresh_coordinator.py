"""Single-flight access token refresh.

At most one refresh call is in flight per coordinator. Every caller that hits
a 401 while a refresh is running is parked as a waiter and released, in
arrival order, when that refresh settles.

Usage example:
    coordinator = RefreshCoordinator(
        credentials=store,
        refresher=HttpTokenRefresher(transport=transport, refresh_path="/auth/refresh"),
        redirect=LoggingAuthRedirect("/login"),
    )
    token = await coordinator.recover(context)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from ..exceptions import ErrorKind, StructuredError
from ..infrastructure.redirect import is_auth_endpoint
from ..observability import get_logger
from ..protocols import AuthRedirect, CredentialStore, TokenRefresher
from ..types import RequestContext

_logger = get_logger("resilient_api_client.application.refresh_coordinator")


class RefreshCoordinator:
    """Serialises token refreshes and fans the result out to waiters."""

    def __init__(
        self,
        *,
        credentials: CredentialStore,
        refresher: TokenRefresher,
        redirect: AuthRedirect,
        auth_endpoint_markers: Sequence[str] = ("/auth/",),
        logger: logging.Logger | None = None,
    ) -> None:
        self._credentials = credentials
        self._refresher = refresher
        self._redirect = redirect
        self._auth_endpoint_markers = tuple(auth_endpoint_markers)
        self._logger = logger or _logger
        self._is_refreshing = False
        self._waiters: list[asyncio.Future[str]] = []

    @property
    def is_refreshing(self) -> bool:
        return self._is_refreshing

    @property
    def pending_waiters(self) -> int:
        return len(self._waiters)

    async def recover(self, context: RequestContext, *, rejected_token: str | None = None) -> str:
        """Return a fresh access token for replaying `context`.

        Args:
            context: The request that was answered with 401.
            rejected_token: Access token that request was sent with. When a
                refresh has already replaced it, the stored token is returned
                without refreshing again.

        Raises:
            StructuredError: With kind AUTH_UNRECOVERABLE when the refresh fails.
        """
        if self._is_refreshing:
            waiter: asyncio.Future[str] = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            return await waiter

        current_token = self._credentials.get_access_token()
        if rejected_token is not None and current_token and current_token != rejected_token:
            self._logger.debug("Access token already refreshed; replaying %s", context.url)
            return current_token

        self._is_refreshing = True
        try:
            refresh_token = self._credentials.get_refresh_token()
            if not refresh_token:
                raise StructuredError.missing_refresh_token(
                    method=context.method, url=context.url
                )
            self._logger.info("Refreshing access token after 401 from %s", context.url)
            pair = await self._refresher.refresh(refresh_token)
            self._credentials.store_tokens(pair)
        except asyncio.CancelledError:
            self._settle(error=StructuredError.refresh_cancelled())
            raise
        except StructuredError as exc:
            error = exc.with_kind(ErrorKind.AUTH_UNRECOVERABLE)
            self._fail(error, context)
            raise error from exc
        except Exception as exc:
            error = StructuredError(
                str(exc) or "Token refresh failed",
                status=0,
                kind=ErrorKind.AUTH_UNRECOVERABLE,
                code="REFRESH_FAILED",
                cause=exc,
                method=context.method,
                url=context.url,
            )
            self._fail(error, context)
            raise error from exc

        self._settle(token=pair.access_token)
        return pair.access_token

    def end_session(self, url: str) -> None:
        """Forget all credentials and signal re-authentication."""
        self._credentials.clear_tokens()
        if is_auth_endpoint(url, self._auth_endpoint_markers):
            return
        self._redirect.redirect_to_login()

    def _fail(self, error: StructuredError, context: RequestContext) -> None:
        self._logger.warning(
            "Token refresh failed: %s",
            error.message,
            extra={"status": error.status, "code": error.code, "url": context.url},
        )
        self._settle(error=error)
        self.end_session(context.url)

    def _settle(self, *, token: str | None = None, error: StructuredError | None = None) -> None:
        waiters, self._waiters = self._waiters, []
        self._is_refreshing = False
        for waiter in waiters:
            if waiter.done():
                continue
            if error is not None:
                waiter.set_exception(error)
            elif token is not None:
                waiter.set_result(token)
