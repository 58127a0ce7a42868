"""Authenticated request execution with refresh and retry recovery.

Usage example:
    pipeline = RequestPipeline(
        transport=transport,
        credentials=store,
        coordinator=coordinator,
        retry_policy=RetryPolicy(),
    )
    body = await pipeline.execute(RequestContext(method="GET", url="/profile"))
"""

from __future__ import annotations

import asyncio
import logging
import time

from ..domain.error_normalisation import normalise_error
from ..exceptions import ErrorKind, StructuredError, TransportFailure
from ..observability import get_logger
from ..protocols import CredentialStore, RetryPolicy, Sleep, Transport
from ..types import ParsedBody, RequestContext, TransportResponse
from .refresh_coordinator import RefreshCoordinator

_logger = get_logger("resilient_api_client.application.request_pipeline")


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 1)


class RequestPipeline:
    """Runs one logical call to completion or to a `StructuredError`.

    - 2xx: the parsed body is returned unchanged.
    - 401: the refresh coordinator supplies a new token and the call is
      replayed once.
    - No response: retried with exponential backoff while the retry policy
      allows it.
    - Anything else is normalised, logged and raised.
    """

    def __init__(
        self,
        *,
        transport: Transport,
        credentials: CredentialStore,
        coordinator: RefreshCoordinator,
        retry_policy: RetryPolicy,
        csrf_header_name: str = "X-CSRF-Token",
        development: bool = False,
        sleep: Sleep = asyncio.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._credentials = credentials
        self._coordinator = coordinator
        self._retry_policy = retry_policy
        self._csrf_header_name = csrf_header_name
        self._development = development
        self._sleep = sleep
        self._logger = logger or _logger

    async def execute(self, context: RequestContext) -> ParsedBody:
        """Dispatch `context` and return the parsed response body.

        Raises:
            StructuredError: For every failure that could not be recovered.
        """
        prepared = self._attach_credentials(context)
        started = time.perf_counter()
        try:
            response = await self._transport.dispatch(prepared)
        except TransportFailure as failure:
            return await self._recover_from_transport_failure(context, failure)
        duration_ms = _elapsed_ms(started)

        if response.is_success:
            return self._accept(prepared, response, duration_ms)

        if response.status == 401 and not context.is_retry_of_auth_failure:
            token = await self._coordinator.recover(
                context, rejected_token=prepared.bearer_token
            )
            return await self.execute(context.for_auth_replay(token))

        kind = ErrorKind.MALFORMED if response.body_malformed else ErrorKind.SERVER_REJECTED
        if response.status == 401:
            kind = ErrorKind.AUTH_UNRECOVERABLE
            self._coordinator.end_session(context.url)
        error = normalise_error(
            status=response.status,
            payload=None if response.body_malformed else response.body,
            kind=kind,
            method=prepared.method,
            url=prepared.url,
            headers=response.headers,
            duration_ms=duration_ms,
        )
        self._log_error(error)
        raise error

    def _attach_credentials(self, context: RequestContext) -> RequestContext:
        prepared = context
        has_authorization = any(name.lower() == "authorization" for name in context.headers)
        access_token = self._credentials.get_access_token()
        if access_token and not has_authorization:
            prepared = prepared.with_header("Authorization", f"Bearer {access_token}")
        if context.is_mutation:
            csrf_token = self._credentials.get_csrf_token()
            if csrf_token:
                prepared = prepared.with_header(self._csrf_header_name, csrf_token)
        return prepared

    async def _recover_from_transport_failure(
        self, context: RequestContext, failure: TransportFailure
    ) -> ParsedBody:
        if self._retry_policy.should_retry(failure, context.retry_count):
            delay = self._retry_policy.compute_backoff(context.retry_count)
            self._logger.info(
                "Retrying %s %s in %.1fs after %s (retry %d of %d)",
                context.method,
                context.url,
                delay,
                failure.reason,
                context.retry_count + 1,
                self._retry_policy.max_retries,
            )
            await self._sleep(delay)
            return await self.execute(context.next_retry())

        error = StructuredError.network(
            failure.message, method=context.method, url=context.url, cause=failure.reason
        )
        self._log_error(error)
        raise error from failure

    def _accept(
        self, context: RequestContext, response: TransportResponse, duration_ms: float
    ) -> ParsedBody:
        if response.body_malformed:
            error = StructuredError(
                "Response body could not be parsed",
                status=response.status,
                kind=ErrorKind.MALFORMED,
                code="MALFORMED_RESPONSE",
                method=context.method,
                url=context.url,
                headers=response.headers,
                duration_ms=duration_ms,
            )
            self._log_error(error)
            raise error

        level = logging.INFO if self._development else logging.DEBUG
        self._logger.log(
            level,
            "%s %s -> %d (%.1fms)",
            context.method,
            context.url,
            response.status,
            duration_ms,
            extra={
                "method": context.method,
                "url": context.url,
                "status": response.status,
                "duration_ms": duration_ms,
            },
        )
        return response.body

    def _log_error(self, error: StructuredError) -> None:
        self._logger.error(
            "%s %s failed: %s",
            error.method,
            error.url,
            error.message,
            extra={
                "method": error.method,
                "url": error.url,
                "status": error.status,
                "code": error.code,
                "duration_ms": error.duration_ms,
            },
        )
