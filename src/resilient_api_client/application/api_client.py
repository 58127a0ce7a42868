"""Caller-facing API client.

Usage example:
    from resilient_api_client.composition import build_api_client
    from resilient_api_client.config import ClientConfig

    async with build_api_client(ClientConfig.from_env()) as client:
        await client.login("user@example.com", "secret")
        profile = await client.get("/profile")
"""

from __future__ import annotations

from collections.abc import Mapping
from types import TracebackType
from typing import Self

from ..exceptions import ErrorKind, StructuredError
from ..infrastructure.token_refresh import parse_token_pair
from ..io_validation import CsrfTokenInput, IncomingDataError, unwrap_envelope, validate_as
from ..observability import get_logger
from ..protocols import CredentialStore, Transport
from ..types import ParsedBody, RequestContext, TokenPair
from .request_pipeline import RequestPipeline

logger = get_logger("resilient_api_client.application.api_client")


def join_url(base_url: str, path: str) -> str:
    """Join `path` onto `base_url` with exactly one slash between them."""
    if path.startswith(("http://", "https://")):
        return path
    if not path:
        return base_url
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


class ApiClient:
    """Verb helpers and session operations on top of a `RequestPipeline`."""

    def __init__(
        self,
        *,
        pipeline: RequestPipeline,
        transport: Transport,
        credentials: CredentialStore,
        base_url: str,
        login_path: str = "/auth/login",
        logout_path: str = "/auth/logout",
        csrf_path: str = "/auth/csrf-token",
    ) -> None:
        self._pipeline = pipeline
        self._transport = transport
        self._credentials = credentials
        self._base_url = base_url
        self._login_path = login_path
        self._logout_path = logout_path
        self._csrf_path = csrf_path

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, path: str) -> str:
        return join_url(self._base_url, path)

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: object = None,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ParsedBody:
        context = RequestContext(
            method=method,
            url=self.url_for(path),
            headers=dict(headers or {}),
            body=body,
            params=params,
        )
        return await self._pipeline.execute(context)

    async def get(
        self,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ParsedBody:
        return await self.request("GET", path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        body: object = None,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ParsedBody:
        return await self.request("POST", path, body=body, params=params, headers=headers)

    async def put(
        self,
        path: str,
        body: object = None,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ParsedBody:
        return await self.request("PUT", path, body=body, params=params, headers=headers)

    async def patch(
        self,
        path: str,
        body: object = None,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ParsedBody:
        return await self.request("PATCH", path, body=body, params=params, headers=headers)

    async def delete(
        self,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ParsedBody:
        return await self.request("DELETE", path, params=params, headers=headers)

    async def login(self, email: str, password: str) -> TokenPair:
        """Authenticate and store the issued token pair."""
        body = await self.post(self._login_path, {"email": email, "password": password})
        pair = parse_token_pair(body, method="POST", url=self.url_for(self._login_path))
        self._credentials.store_tokens(pair)
        logger.info("Logged in as %s", email)
        return pair

    async def logout(self) -> None:
        """End the server session. Local tokens are cleared even if the call fails."""
        try:
            await self.post(self._logout_path)
        finally:
            self._credentials.clear_tokens()

    async def fetch_csrf_token(self) -> str:
        """Fetch, store and return a CSRF token."""
        url = self.url_for(self._csrf_path)
        body = await self.get(self._csrf_path)
        try:
            token = validate_as(CsrfTokenInput, unwrap_envelope(body))["csrf_token"]
        except IncomingDataError as exc:
            raise StructuredError(
                "CSRF response did not contain a token",
                status=200,
                kind=ErrorKind.MALFORMED,
                code="INVALID_CSRF_RESPONSE",
                cause=body,
                method="GET",
                url=url,
            ) from exc
        self._credentials.store_csrf_token(token)
        return token

    def is_authenticated(self) -> bool:
        return self._credentials.get_access_token() is not None

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()
