"""Concrete infrastructure implementations."""

from .credentials import FileCredentialStore, InMemoryCredentialStore
from .redirect import LoggingAuthRedirect, is_auth_endpoint
from .resilience import RetryPolicy
from .token_refresh import HttpTokenRefresher, parse_token_pair
from .transport import HttpxTransport, build_httpx_transport

__all__ = [
    "FileCredentialStore",
    "HttpTokenRefresher",
    "HttpxTransport",
    "InMemoryCredentialStore",
    "LoggingAuthRedirect",
    "RetryPolicy",
    "build_httpx_transport",
    "is_auth_endpoint",
    "parse_token_pair",
]
