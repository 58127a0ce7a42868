"""Builders and helpers shared by pipeline tests."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from resilient_api_client.application.refresh_coordinator import RefreshCoordinator
from resilient_api_client.application.request_pipeline import RequestPipeline
from resilient_api_client.infrastructure.resilience import RetryPolicy
from resilient_api_client.protocols import AuthRedirect, CredentialStore, TokenRefresher, Transport
from resilient_api_client.types import TransportResponse
from tests.fakes import RecordingSleep

from .errors import WaitTimeoutError


def json_response(
    status: int, body: object = None, headers: dict[str, str] | None = None
) -> TransportResponse:
    return TransportResponse(
        status=status,
        headers={"content-type": "application/json", **(headers or {})},
        body=body,
    )


def build_pipeline(
    *,
    transport: Transport,
    credentials: CredentialStore,
    refresher: TokenRefresher,
    redirect: AuthRedirect,
    sleep: RecordingSleep | None = None,
    development: bool = False,
    logger: logging.Logger | None = None,
) -> tuple[RequestPipeline, RefreshCoordinator]:
    coordinator = RefreshCoordinator(
        credentials=credentials,
        refresher=refresher,
        redirect=redirect,
        logger=logger,
    )
    pipeline = RequestPipeline(
        transport=transport,
        credentials=credentials,
        coordinator=coordinator,
        retry_policy=RetryPolicy(),
        development=development,
        sleep=sleep or RecordingSleep(),
        logger=logger,
    )
    return pipeline, coordinator


async def wait_until(condition: Callable[[], bool], description: str, *, turns: int = 50) -> None:
    """Yield to the event loop until `condition()` holds."""
    for _ in range(turns):
        if condition():
            return
        await asyncio.sleep(0)
    raise WaitTimeoutError(description)


class RecordingHandler(logging.Handler):
    """Logging handler that keeps every record it receives."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def recording_logger(name: str) -> tuple[logging.Logger, RecordingHandler]:
    logger = logging.getLogger(name)
    logger.handlers.clear()
    handler = RecordingHandler()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    return logger, handler
