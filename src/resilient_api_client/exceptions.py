"""Custom exceptions for the resilient API client.

`StructuredError` is the only error type callers outside this package ever see.
`TransportFailure` is raised by transports when no response was received and is
always converted before it reaches a caller.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType

from .http_headers import normalise_headers, parse_retry_after

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"
NETWORK_ERROR_CODE = "NETWORK_ERROR"


class ErrorKind(StrEnum):
    """Failure categories surfaced to callers."""

    AUTH_UNRECOVERABLE = "auth_unrecoverable"
    TRANSIENT_NETWORK = "transient_network"
    SERVER_REJECTED = "server_rejected"
    MALFORMED = "malformed"


class StructuredError(Exception):
    """Normalised, shape-stable API error.

    `status` is the HTTP status code, or 0 when no response was received.
    The raw backend payload is kept in `cause` for diagnostics only; use
    `user_message()` for text shown to end users.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int,
        kind: ErrorKind,
        code: str | None = None,
        detail: str | None = None,
        field_errors: Mapping[str, list[str] | tuple[str, ...]] | None = None,
        cause: object = None,
        method: str | None = None,
        url: str | None = None,
        headers: Mapping[str, str] | None = None,
        duration_ms: float | None = None,
    ) -> None:
        super().__init__(message)
        self._message = message
        self._status = status
        self._kind = kind
        self._code = code
        self._detail = detail
        self._field_errors = (
            MappingProxyType({key: tuple(values) for key, values in field_errors.items()})
            if field_errors is not None
            else None
        )
        self._cause = cause
        self._method = method
        self._url = url
        self._headers = MappingProxyType(normalise_headers(headers))
        self._duration_ms = duration_ms

    @classmethod
    def network(
        cls,
        message: str,
        *,
        method: str | None = None,
        url: str | None = None,
        cause: object = None,
    ) -> StructuredError:
        """Build the error for a request that never received a response."""
        return cls(
            message or "Network request failed",
            status=0,
            kind=ErrorKind.TRANSIENT_NETWORK,
            code=NETWORK_ERROR_CODE,
            cause=cause,
            method=method,
            url=url,
        )

    @classmethod
    def missing_refresh_token(
        cls, *, method: str | None = None, url: str | None = None
    ) -> StructuredError:
        return cls(
            "No refresh token available",
            status=401,
            kind=ErrorKind.AUTH_UNRECOVERABLE,
            code="REFRESH_TOKEN_MISSING",
            method=method,
            url=url,
        )

    @classmethod
    def refresh_cancelled(cls) -> StructuredError:
        return cls(
            "Token refresh was cancelled",
            status=0,
            kind=ErrorKind.AUTH_UNRECOVERABLE,
            code="REFRESH_CANCELLED",
        )

    @property
    def message(self) -> str:
        return self._message

    @property
    def status(self) -> int:
        return self._status

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def code(self) -> str | None:
        return self._code

    @property
    def detail(self) -> str | None:
        return self._detail

    @property
    def field_errors(self) -> Mapping[str, tuple[str, ...]] | None:
        return self._field_errors

    @property
    def cause(self) -> object:
        return self._cause

    @property
    def method(self) -> str | None:
        return self._method

    @property
    def url(self) -> str | None:
        return self._url

    @property
    def headers(self) -> Mapping[str, str]:
        return self._headers

    @property
    def duration_ms(self) -> float | None:
        return self._duration_ms

    @property
    def request_id(self) -> str | None:
        return self._headers.get("x-request-id") or self._headers.get("x-correlation-id")

    @property
    def retry_after_seconds(self) -> int | None:
        return parse_retry_after(self._headers)

    def __reduce__(self) -> tuple[object, ...]:
        return (
            _restore_structured_error,
            (
                self._message,
                self._status,
                self._kind,
                self._code,
                self._detail,
                dict(self._field_errors) if self._field_errors is not None else None,
                self._cause,
                self._method,
                self._url,
                dict(self._headers),
                self._duration_ms,
            ),
        )

    def with_kind(self, kind: ErrorKind) -> StructuredError:
        """Return a copy of this error re-tagged with a different kind."""
        return StructuredError(
            self._message,
            status=self._status,
            kind=kind,
            code=self._code,
            detail=self._detail,
            field_errors=self._field_errors,
            cause=self._cause,
            method=self._method,
            url=self._url,
            headers=self._headers,
            duration_ms=self._duration_ms,
        )

    def is_network_error(self) -> bool:
        return self._status == 0

    def is_client_error(self) -> bool:
        return 400 <= self._status < 500

    def is_server_error(self) -> bool:
        return self._status >= 500

    def is_auth_error(self) -> bool:
        return self._status in (401, 403)

    def is_validation_error(self) -> bool:
        return self._status in (400, 422)

    def is_not_found(self) -> bool:
        return self._status == 404

    def user_message(self) -> str:
        """Return text that is safe to show to an end user."""
        if self.is_auth_error():
            return "Authentication required. Please log in again."
        if self.is_not_found():
            return "The requested resource was not found."
        if self.is_server_error():
            return "Server error occurred. Please try again later."
        if self.is_network_error():
            return "Unable to reach the server. Check your connection and try again."
        return self._message or GENERIC_ERROR_MESSAGE

    def to_dict(self) -> dict[str, object]:
        """Return a log-friendly representation (the raw payload is included)."""
        return {
            "message": self._message,
            "status": self._status,
            "kind": self._kind.value,
            "code": self._code,
            "detail": self._detail,
            "field_errors": (
                {key: list(values) for key, values in self._field_errors.items()}
                if self._field_errors is not None
                else None
            ),
            "method": self._method,
            "url": self._url,
            "request_id": self.request_id,
            "retry_after_seconds": self.retry_after_seconds,
            "duration_ms": self._duration_ms,
            "payload": self._cause,
        }

    def __str__(self) -> str:
        parts = [self._message]
        if self._method and self._url:
            parts.append(f"{self._method} {self._url}")
        parts.append(f"status={self._status}")
        if self._code:
            parts.append(f"code={self._code}")
        return " | ".join(parts)


def _restore_structured_error(
    message: str,
    status: int,
    kind: ErrorKind,
    code: str | None,
    detail: str | None,
    field_errors: Mapping[str, tuple[str, ...]] | None,
    cause: object,
    method: str | None,
    url: str | None,
    headers: Mapping[str, str],
    duration_ms: float | None,
) -> StructuredError:
    return StructuredError(
        message,
        status=status,
        kind=kind,
        code=code,
        detail=detail,
        field_errors=field_errors,
        cause=cause,
        method=method,
        url=url,
        headers=headers,
        duration_ms=duration_ms,
    )


class TransportFailure(Exception):
    """Raised by a transport when a request received no HTTP response.

    `reason` is one of "timeout", "network" or "protocol".
    """

    def __init__(self, reason: str, message: str) -> None:
        self.reason = reason
        self.message = message
        super().__init__(f"{reason}: {message}")


class NonNegativeIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be a non-negative integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a non-negative integer.")


class PositiveNumberEnvVarError(ValueError):
    """Raised when an environment variable must be a positive number."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive number.")


class EnvironmentNameError(ValueError):
    """Raised when the configured environment name is not supported."""

    def __init__(self, value: str) -> None:
        super().__init__(
            f"Unsupported environment '{value}'. Use development, staging or production."
        )


class ConfigFileNotFoundError(FileNotFoundError):
    """Raised when a config file path does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Config file not found: {path}")


class ConfigFileParseError(ValueError):
    """Raised when a config file is not valid TOML."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Config file {path} is not valid TOML: {reason}")


class ConfigFileValidationError(ValueError):
    """Raised when a config file fails schema validation."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Config file {path} is invalid: {reason}")


class CredentialFileError(RuntimeError):
    """Raised when a credentials file exists but cannot be read."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Credentials file {path} must contain a JSON object of tokens.")
