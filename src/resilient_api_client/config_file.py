"""Typed parsing and validation for client config files."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .exceptions import ConfigFileNotFoundError, ConfigFileParseError, ConfigFileValidationError

_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class ClientConfigFile:
    """Validated client config values loaded from a TOML file."""

    base_url: str | None = None
    environment: str | None = None
    timeout_seconds: float | None = None
    max_retries: int | None = None
    backoff_base_seconds: float | None = None
    backoff_max_seconds: float | None = None
    refresh_path: str | None = None
    login_path: str | None = None
    logout_path: str | None = None
    csrf_path: str | None = None
    login_url: str | None = None
    csrf_header_name: str | None = None
    auth_endpoint_markers: tuple[str, ...] | None = None
    credentials_path: str | None = None


class _ClientSectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: str | None = None
    environment: str | None = None
    timeout_seconds: float | None = None
    max_retries: int | None = None
    backoff_base_seconds: float | None = None
    backoff_max_seconds: float | None = None
    refresh_path: str | None = None
    login_path: str | None = None
    logout_path: str | None = None
    csrf_path: str | None = None
    login_url: str | None = None
    csrf_header_name: str | None = None
    auth_endpoint_markers: tuple[str, ...] | None = None
    credentials_path: str | None = None

    @field_validator("environment")
    @classmethod
    def _validate_environment(cls, value: str | None) -> str | None:
        if value is None:
            return None
        environment = value.strip().lower()
        if environment not in {"development", "staging", "production"}:
            raise ValueError
        return environment

    @field_validator(
        "base_url",
        "refresh_path",
        "login_path",
        "logout_path",
        "csrf_path",
        "login_url",
        "csrf_header_name",
        "credentials_path",
    )
    @classmethod
    def _validate_non_empty_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        if not text:
            raise ValueError
        return text

    @field_validator("auth_endpoint_markers")
    @classmethod
    def _validate_markers(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if value is None:
            return None
        cleaned = tuple(item.strip() for item in value if item.strip())
        if not cleaned:
            raise ValueError
        return cleaned

    @field_validator("max_retries")
    @classmethod
    def _validate_non_negative_int(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 0:
            raise ValueError
        return value

    @field_validator("timeout_seconds", "backoff_base_seconds", "backoff_max_seconds")
    @classmethod
    def _validate_positive_float(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if value <= 0:
            raise ValueError
        return value


class _ConfigFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    client: _ClientSectionModel

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}"


def load_client_config_file(path: Path) -> ClientConfigFile:
    """Load and validate a client TOML config file."""
    if not path.exists():
        raise ConfigFileNotFoundError(str(path))

    raw_payload = path.read_text(encoding="utf-8")
    try:
        payload: object = tomllib.loads(raw_payload)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileParseError(str(path), str(exc)) from exc

    try:
        model = _ConfigFileModel.model_validate(payload)
    except ValidationError as exc:
        raise ConfigFileValidationError(str(path), _format_validation_error(exc)) from exc

    section = model.client
    return ClientConfigFile(
        base_url=section.base_url,
        environment=section.environment,
        timeout_seconds=section.timeout_seconds,
        max_retries=section.max_retries,
        backoff_base_seconds=section.backoff_base_seconds,
        backoff_max_seconds=section.backoff_max_seconds,
        refresh_path=section.refresh_path,
        login_path=section.login_path,
        logout_path=section.logout_path,
        csrf_path=section.csrf_path,
        login_url=section.login_url,
        csrf_header_name=section.csrf_header_name,
        auth_endpoint_markers=section.auth_endpoint_markers,
        credentials_path=section.credentials_path,
    )
