"""Token refresh over the raw transport.

The refresh call never goes through the request pipeline, so a failing
refresh cannot trigger another refresh.
"""

from __future__ import annotations

import time
from typing import override

from ..domain.error_normalisation import normalise_error
from ..exceptions import ErrorKind, StructuredError, TransportFailure
from ..io_validation import IncomingDataError, TokenPairInput, unwrap_envelope, validate_as
from ..observability import get_logger
from ..protocols import TokenRefresher, Transport
from ..types import RequestContext, TokenPair

logger = get_logger("resilient_api_client.infrastructure.token_refresh")

DEFAULT_EXPIRES_IN_SECONDS = 3600


def parse_token_pair(
    body: object,
    *,
    method: str,
    url: str,
    status: int = 200,
    fallback_refresh_token: str = "",
) -> TokenPair:
    """Read a token pair from a flat or `data`-wrapped response body.

    Raises:
        StructuredError: With kind MALFORMED when no access token is present.
    """
    try:
        parsed = validate_as(TokenPairInput, unwrap_envelope(body))
    except IncomingDataError as exc:
        raise StructuredError(
            "Token response did not contain an access token",
            status=status,
            kind=ErrorKind.MALFORMED,
            code="INVALID_TOKEN_RESPONSE",
            cause=body,
            method=method,
            url=url,
        ) from exc

    expires_in = parsed.get("expires_in") or DEFAULT_EXPIRES_IN_SECONDS
    return TokenPair(
        access_token=parsed["access_token"],
        refresh_token=parsed.get("refresh_token") or fallback_refresh_token,
        token_type=parsed.get("token_type") or "bearer",
        expires_in_seconds=expires_in if expires_in > 0 else DEFAULT_EXPIRES_IN_SECONDS,
    )


class HttpTokenRefresher(TokenRefresher):
    """POSTs `{"refresh_token": ...}` to the refresh endpoint URL."""

    def __init__(self, *, transport: Transport, refresh_url: str) -> None:
        self._transport = transport
        self._refresh_url = refresh_url

    @override
    async def refresh(self, refresh_token: str) -> TokenPair:
        context = RequestContext(
            method="POST",
            url=self._refresh_url,
            headers={"Content-Type": "application/json"},
            body={"refresh_token": refresh_token},
        )
        started = time.perf_counter()
        try:
            response = await self._transport.dispatch(context)
        except TransportFailure as exc:
            raise StructuredError.network(
                exc.message, method=context.method, url=context.url, cause=exc.reason
            ) from exc
        duration_ms = (time.perf_counter() - started) * 1000

        if not response.is_success or response.body_malformed:
            raise normalise_error(
                status=response.status,
                payload=response.body,
                kind=ErrorKind.AUTH_UNRECOVERABLE,
                method=context.method,
                url=context.url,
                headers=response.headers,
                duration_ms=duration_ms,
            )

        pair = parse_token_pair(
            response.body,
            status=response.status,
            method=context.method,
            url=context.url,
            fallback_refresh_token=refresh_token,
        )
        logger.info("Access token refreshed in %.1fms", duration_ms)
        return pair
