"""Centralised, injectable configuration for the resilient API client."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Self

from dotenv import load_dotenv

from .config_file import ClientConfigFile
from .exceptions import (
    EnvironmentNameError,
    NonNegativeIntegerEnvVarError,
    PositiveNumberEnvVarError,
)

ENVIRONMENTS = ("development", "staging", "production")


@dataclass(frozen=True)
class ClientConfig:
    """Immutable configuration object for the client.

    Load from environment with `ClientConfig.from_env()` or construct directly for testing.
    """

    base_url: str = "http://localhost:8000/api/v1"
    environment: str = "production"
    timeout_seconds: float = 30.0

    # Transient network retries
    max_retries: int = 3
    backoff_base_seconds: float = 1.0
    backoff_max_seconds: float = 8.0

    # Authentication endpoints
    refresh_path: str = "/auth/refresh"
    login_path: str = "/auth/login"
    logout_path: str = "/auth/logout"
    csrf_path: str = "/auth/csrf-token"
    login_url: str = "/login"
    auth_endpoint_markers: tuple[str, ...] = ("/auth/",)
    csrf_header_name: str = "X-CSRF-Token"

    credentials_path: str = ".api-client/credentials.json"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Self:
        """Load configuration from environment variables.

        Args:
            dotenv_path: Optional path to .env file. If None, uses default .env discovery.

        Returns:
            ClientConfig instance populated from environment.
        """
        load_dotenv(dotenv_path)
        defaults = cls()

        return cls(
            base_url=_text("API_CLIENT_BASE_URL", defaults.base_url).rstrip("/"),
            environment=_parse_environment(
                os.getenv("API_CLIENT_ENVIRONMENT", defaults.environment)
            ),
            timeout_seconds=_parse_positive_float(
                os.getenv("API_CLIENT_TIMEOUT_SECONDS", "30"),
                env_name="API_CLIENT_TIMEOUT_SECONDS",
            ),
            max_retries=_parse_non_negative_int(
                os.getenv("API_CLIENT_MAX_RETRIES", "3"),
                env_name="API_CLIENT_MAX_RETRIES",
            ),
            backoff_base_seconds=_parse_positive_float(
                os.getenv("API_CLIENT_BACKOFF_BASE_SECONDS", "1"),
                env_name="API_CLIENT_BACKOFF_BASE_SECONDS",
            ),
            backoff_max_seconds=_parse_positive_float(
                os.getenv("API_CLIENT_BACKOFF_MAX_SECONDS", "8"),
                env_name="API_CLIENT_BACKOFF_MAX_SECONDS",
            ),
            refresh_path=_text("API_CLIENT_REFRESH_PATH", defaults.refresh_path),
            login_path=_text("API_CLIENT_LOGIN_PATH", defaults.login_path),
            logout_path=_text("API_CLIENT_LOGOUT_PATH", defaults.logout_path),
            csrf_path=_text("API_CLIENT_CSRF_PATH", defaults.csrf_path),
            login_url=_text("API_CLIENT_LOGIN_URL", defaults.login_url),
            auth_endpoint_markers=_parse_list(os.getenv("API_CLIENT_AUTH_ENDPOINT_MARKERS", ""))
            or defaults.auth_endpoint_markers,
            csrf_header_name=_text("API_CLIENT_CSRF_HEADER", defaults.csrf_header_name),
            credentials_path=_text("API_CLIENT_CREDENTIALS_PATH", defaults.credentials_path),
        )

    def with_overrides(
        self,
        *,
        base_url: str | None = None,
        environment: str | None = None,
        timeout_seconds: float | None = None,
        max_retries: int | None = None,
        credentials_path: str | None = None,
    ) -> Self:
        """Return a new config with specified overrides (for CLI options)."""
        return replace(
            self,
            base_url=self.base_url if base_url is None else base_url.strip().rstrip("/"),
            environment=self.environment
            if environment is None
            else _parse_environment(environment),
            timeout_seconds=self.timeout_seconds if timeout_seconds is None else timeout_seconds,
            max_retries=self.max_retries if max_retries is None else max_retries,
            credentials_path=self.credentials_path
            if credentials_path is None
            else credentials_path,
        )

    def with_file_overrides(self, file_config: ClientConfigFile) -> Self:
        """Return a new config with config-file values overriding env/default values."""
        return replace(
            self,
            base_url=self.base_url
            if file_config.base_url is None
            else file_config.base_url.rstrip("/"),
            environment=self.environment
            if file_config.environment is None
            else file_config.environment,
            timeout_seconds=self.timeout_seconds
            if file_config.timeout_seconds is None
            else file_config.timeout_seconds,
            max_retries=self.max_retries
            if file_config.max_retries is None
            else file_config.max_retries,
            backoff_base_seconds=self.backoff_base_seconds
            if file_config.backoff_base_seconds is None
            else file_config.backoff_base_seconds,
            backoff_max_seconds=self.backoff_max_seconds
            if file_config.backoff_max_seconds is None
            else file_config.backoff_max_seconds,
            refresh_path=self.refresh_path
            if file_config.refresh_path is None
            else file_config.refresh_path,
            login_path=self.login_path
            if file_config.login_path is None
            else file_config.login_path,
            logout_path=self.logout_path
            if file_config.logout_path is None
            else file_config.logout_path,
            csrf_path=self.csrf_path if file_config.csrf_path is None else file_config.csrf_path,
            login_url=self.login_url if file_config.login_url is None else file_config.login_url,
            csrf_header_name=self.csrf_header_name
            if file_config.csrf_header_name is None
            else file_config.csrf_header_name,
            auth_endpoint_markers=self.auth_endpoint_markers
            if file_config.auth_endpoint_markers is None
            else file_config.auth_endpoint_markers,
            credentials_path=self.credentials_path
            if file_config.credentials_path is None
            else file_config.credentials_path,
        )


def _text(env_name: str, default: str) -> str:
    return os.getenv(env_name, default).strip() or default


def _parse_list(s: str) -> tuple[str, ...]:
    """Parse comma-separated string into tuple of stripped values."""
    items = [item.strip() for item in s.split(",") if item.strip()]
    return tuple(items)


def _parse_environment(value: str) -> str:
    text = value.strip().lower()
    if text not in ENVIRONMENTS:
        raise EnvironmentNameError(value)
    return text


def _parse_non_negative_int(value: str, *, env_name: str) -> int:
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise NonNegativeIntegerEnvVarError(env_name) from exc
    if parsed < 0:
        raise NonNegativeIntegerEnvVarError(env_name)
    return parsed


def _parse_positive_float(value: str, *, env_name: str) -> float:
    try:
        parsed = float(value.strip())
    except ValueError as exc:
        raise PositiveNumberEnvVarError(env_name) from exc
    if parsed <= 0:
        raise PositiveNumberEnvVarError(env_name)
    return parsed
