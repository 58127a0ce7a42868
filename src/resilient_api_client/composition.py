"""Composition root for wiring client and CLI dependencies."""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx

from .application import ApiClient, RefreshCoordinator, RequestPipeline, join_url
from .cli import CliDependencies, create_app
from .config import ClientConfig
from .infrastructure import (
    FileCredentialStore,
    HttpTokenRefresher,
    LoggingAuthRedirect,
    RetryPolicy,
    build_httpx_transport,
)
from .protocols import AuthRedirect, CredentialStore, Sleep


def build_api_client(
    config: ClientConfig,
    *,
    credentials: CredentialStore | None = None,
    redirect: AuthRedirect | None = None,
    http_transport: httpx.AsyncBaseTransport | None = None,
    sleep: Sleep = asyncio.sleep,
) -> ApiClient:
    """Wire a ready-to-use `ApiClient` from configuration.

    Args:
        config: Client configuration.
        credentials: Token store; defaults to a JSON file at `config.credentials_path`.
        redirect: Re-authentication signal; defaults to logging the login URL.
        http_transport: Optional httpx transport (e.g. `httpx.MockTransport` in tests).
        sleep: Backoff sleep, replaced by a recorder in tests.
    """
    store = credentials or FileCredentialStore(Path(config.credentials_path))
    transport = build_httpx_transport(
        timeout_seconds=config.timeout_seconds,
        transport=http_transport,
    )
    coordinator = RefreshCoordinator(
        credentials=store,
        refresher=HttpTokenRefresher(
            transport=transport,
            refresh_url=join_url(config.base_url, config.refresh_path),
        ),
        redirect=redirect or LoggingAuthRedirect(config.login_url),
        auth_endpoint_markers=config.auth_endpoint_markers,
    )
    retry_policy = RetryPolicy(
        max_retries=config.max_retries,
        backoff_base_seconds=config.backoff_base_seconds,
        max_backoff_seconds=config.backoff_max_seconds,
    )
    pipeline = RequestPipeline(
        transport=transport,
        credentials=store,
        coordinator=coordinator,
        retry_policy=retry_policy,
        csrf_header_name=config.csrf_header_name,
        development=config.is_development,
        sleep=sleep,
    )
    return ApiClient(
        pipeline=pipeline,
        transport=transport,
        credentials=store,
        base_url=config.base_url,
        login_path=config.login_path,
        logout_path=config.logout_path,
        csrf_path=config.csrf_path,
    )


def build_cli_dependencies(*, config: ClientConfig) -> CliDependencies:
    """Build concrete dependencies for CLI commands."""
    return CliDependencies(client=build_api_client(config))


app = create_app(build_cli_dependencies)
