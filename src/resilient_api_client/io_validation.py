"""Pydantic-based validation helpers for inbound IO payloads."""

from __future__ import annotations

from typing import Required, TypedDict

from pydantic import TypeAdapter, ValidationError


class IncomingDataError(ValueError):
    """Raised when inbound data fails validation."""


class FieldErrorsInput(TypedDict):
    field_errors: dict[str, list[str] | str]


class MessageInput(TypedDict):
    message: str


class DetailInput(TypedDict):
    detail: str


class DetailItemInput(TypedDict, total=False):
    loc: list[str | int]
    msg: str


class DetailListInput(TypedDict):
    detail: list[DetailItemInput]


class TokenPairInput(TypedDict, total=False):
    access_token: Required[str]
    refresh_token: str | None
    token_type: str | None
    expires_in: int | None


class CsrfTokenInput(TypedDict):
    csrf_token: str


class EnvelopeInput(TypedDict):
    data: dict[str, object]


class CredentialFileInput(TypedDict, total=False):
    access_token: str | None
    refresh_token: str | None
    token_type: str | None
    expires_at: float | None
    csrf_token: str | None


def validate_as[SchemaT](schema: type[SchemaT], payload: object) -> SchemaT:
    try:
        return TypeAdapter(schema).validate_python(payload)
    except ValidationError as exc:
        message = f"Invalid payload for {schema}."
        raise IncomingDataError(message) from exc


def validate_json_as[SchemaT](schema: type[SchemaT], payload: str | bytes | bytearray) -> SchemaT:
    try:
        return TypeAdapter(schema).validate_json(payload)
    except ValidationError as exc:
        message = f"Invalid JSON payload for {schema}."
        raise IncomingDataError(message) from exc


def unwrap_envelope(payload: object) -> object:
    """Return `payload["data"]` for `{"data": {...}}` envelopes, else the payload itself."""
    try:
        return validate_as(EnvelopeInput, payload)["data"]
    except IncomingDataError:
        return payload
