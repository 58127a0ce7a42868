"""httpx-backed transport.

Usage example:
    from resilient_api_client.infrastructure.transport import build_httpx_transport

    transport = build_httpx_transport(timeout_seconds=30)
    context = RequestContext(method="GET", url="https://api.example.com/v1/profile")
    response = await transport.dispatch(context)
    await transport.aclose()
"""

from __future__ import annotations

import json
from typing import override

import httpx

from ..exceptions import TransportFailure
from ..protocols import Transport
from ..types import RequestContext, TransportResponse


def build_httpx_transport(
    *,
    timeout_seconds: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HttpxTransport:
    client = httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds),
        transport=transport,
    )
    return HttpxTransport(client=client)


def _parse_body(response: httpx.Response) -> tuple[object, bool]:
    """Return `(body, malformed)` for a received response."""
    if not response.content:
        return None, False
    content_type = response.headers.get("content-type", "").lower()
    if "json" in content_type:
        try:
            return response.json(), False
        except (json.JSONDecodeError, UnicodeDecodeError):
            return response.content, True
    try:
        return response.content.decode(response.encoding or "utf-8"), False
    except (LookupError, UnicodeDecodeError):
        return response.content, True


class HttpxTransport(Transport):
    """Sends requests through an `httpx.AsyncClient`.

    Any received response is returned, whatever its status. Only a request
    that produced no response raises `TransportFailure`.
    """

    def __init__(self, *, client: httpx.AsyncClient) -> None:
        self._client = client

    @override
    async def dispatch(self, context: RequestContext) -> TransportResponse:
        try:
            response = await self._client.request(
                context.method,
                context.url,
                headers=dict(context.headers),
                params=dict(context.params) if context.params else None,
                json=context.body,
            )
        except httpx.TimeoutException as exc:
            raise TransportFailure("timeout", str(exc) or "Request timed out") from exc
        except httpx.NetworkError as exc:
            raise TransportFailure("network", str(exc) or "Network error") from exc
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise TransportFailure("protocol", str(exc) or "Request failed") from exc

        body, malformed = _parse_body(response)
        return TransportResponse(
            status=response.status_code,
            headers=dict(response.headers.items()),
            body=body,
            body_malformed=malformed,
        )

    @override
    async def aclose(self) -> None:
        await self._client.aclose()
