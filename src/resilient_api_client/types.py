"""Typed value objects passed between client components."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Self

type ParsedBody = object

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def _empty_headers() -> dict[str, str]:
    return {}


@dataclass(frozen=True)
class TokenPair:
    """Access/refresh token pair issued by login or refresh."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in_seconds: int = 3600


@dataclass(frozen=True)
class RequestContext:
    """One logical API call.

    Replays never mutate a context; they build a new one with `next_retry()` or
    `for_auth_replay()`.
    """

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=_empty_headers)
    body: object = None
    params: Mapping[str, str] | None = None
    retry_count: int = 0
    is_retry_of_auth_failure: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", dict(self.headers))
        if self.retry_count < 0:
            raise ValueError("retry_count must be >= 0")

    @property
    def is_mutation(self) -> bool:
        return self.method in MUTATING_METHODS

    @property
    def bearer_token(self) -> str | None:
        """Return the token from a `Bearer` Authorization header, if one is set."""
        for name, value in self.headers.items():
            if name.lower() == "authorization":
                scheme, _, token = value.partition(" ")
                if scheme.lower() == "bearer" and token.strip():
                    return token.strip()
        return None

    def with_header(self, name: str, value: str) -> Self:
        headers = {key: val for key, val in self.headers.items() if key.lower() != name.lower()}
        headers[name] = value
        return replace(self, headers=headers)

    def next_retry(self) -> Self:
        return replace(self, retry_count=self.retry_count + 1)

    def for_auth_replay(self, access_token: str) -> Self:
        # A replay gets its own transient-retry budget.
        replay = self.with_header("Authorization", f"Bearer {access_token}")
        return replace(replay, retry_count=0, is_retry_of_auth_failure=True)


@dataclass(frozen=True)
class TransportResponse:
    """A response that reached us from the server."""

    status: int
    headers: Mapping[str, str] = field(default_factory=_empty_headers)
    body: object = None
    body_malformed: bool = False

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300
