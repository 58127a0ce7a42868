"""Collapse backend error payloads into a single `StructuredError`.

Backends answer failures in several shapes. Each known shape is tried in
priority order and the first match decides the primary message:

1. `{"field_errors": {"email": ["required"], ...}}`
2. `{"message": "..."}`
3. `{"detail": "..."}`
4. `{"detail": [{"loc": [...], "msg": "..."}]}` (FastAPI validation errors)
5. anything else, including empty or unparseable bodies

Usage example:
    from resilient_api_client.domain.error_normalisation import normalise_error

    error = normalise_error(status=422, payload={"field_errors": {"email": ["required"]}})
    assert error.message == "required"
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from ..exceptions import GENERIC_ERROR_MESSAGE, ErrorKind, StructuredError
from ..io_validation import (
    DetailInput,
    DetailListInput,
    FieldErrorsInput,
    IncomingDataError,
    MessageInput,
    validate_as,
)


@dataclass(frozen=True)
class FieldErrorsShape:
    field_errors: dict[str, tuple[str, ...]]


@dataclass(frozen=True)
class MessageShape:
    message: str


@dataclass(frozen=True)
class DetailShape:
    detail: str


@dataclass(frozen=True)
class DetailListShape:
    message: str
    field_errors: dict[str, tuple[str, ...]]


@dataclass(frozen=True)
class UnknownShape:
    pass


type ErrorPayloadShape = (
    FieldErrorsShape | MessageShape | DetailShape | DetailListShape | UnknownShape
)


def _parse_field_errors(payload: object) -> FieldErrorsShape | None:
    try:
        parsed = validate_as(FieldErrorsInput, payload)
    except IncomingDataError:
        return None
    field_errors: dict[str, tuple[str, ...]] = {}
    for field_name, messages in parsed["field_errors"].items():
        field_errors[field_name] = (messages,) if isinstance(messages, str) else tuple(messages)
    return FieldErrorsShape(field_errors=field_errors)


def _parse_message(payload: object) -> MessageShape | None:
    try:
        message = validate_as(MessageInput, payload)["message"]
    except IncomingDataError:
        return None
    return MessageShape(message=message) if message.strip() else None


def _parse_detail(payload: object) -> DetailShape | None:
    try:
        detail = validate_as(DetailInput, payload)["detail"]
    except IncomingDataError:
        return None
    return DetailShape(detail=detail) if detail.strip() else None


def _parse_detail_list(payload: object) -> DetailListShape | None:
    try:
        items = validate_as(DetailListInput, payload)["detail"]
    except IncomingDataError:
        return None
    messages = [item["msg"] for item in items if item.get("msg")]
    if not messages:
        return None
    field_errors: dict[str, list[str]] = {}
    for item in items:
        location = item.get("loc") or []
        message = item.get("msg")
        if location and message:
            field_errors.setdefault(str(location[-1]), []).append(message)
    return DetailListShape(
        message=messages[0],
        field_errors={name: tuple(values) for name, values in field_errors.items()},
    )


_SHAPE_PARSERS: tuple[Callable[[object], ErrorPayloadShape | None], ...] = (
    _parse_field_errors,
    _parse_message,
    _parse_detail,
    _parse_detail_list,
)


def classify_error_payload(payload: object) -> ErrorPayloadShape:
    """Return the first known error shape matching `payload`."""
    for parser in _SHAPE_PARSERS:
        shape = parser(payload)
        if shape is not None:
            return shape
    return UnknownShape()


def _string_field(payload: object, key: str) -> str | None:
    if isinstance(payload, Mapping):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def normalise_error(
    *,
    status: int,
    payload: object,
    kind: ErrorKind = ErrorKind.SERVER_REJECTED,
    method: str | None = None,
    url: str | None = None,
    headers: Mapping[str, str] | None = None,
    duration_ms: float | None = None,
) -> StructuredError:
    """Build a `StructuredError` from a failed response.

    Args:
        status: HTTP status code, or 0 when no response was received.
        payload: Parsed response body (any shape, or None).
        kind: Failure category to attach.

    Returns:
        The normalised error. `payload` is preserved as `cause`.
    """
    field_errors: dict[str, tuple[str, ...]] | None = None
    match classify_error_payload(payload):
        case FieldErrorsShape(field_errors=parsed):
            field_errors = parsed
            flattened = [message for messages in parsed.values() for message in messages]
            message = flattened[0] if flattened else GENERIC_ERROR_MESSAGE
        case MessageShape(message=parsed_message):
            message = parsed_message
        case DetailShape(detail=parsed_detail):
            message = parsed_detail
        case DetailListShape(message=parsed_message, field_errors=parsed):
            message = parsed_message
            field_errors = parsed
        case _:
            message = GENERIC_ERROR_MESSAGE

    return StructuredError(
        message,
        status=status,
        kind=kind,
        code=_string_field(payload, "message_code") or _string_field(payload, "code"),
        detail=_string_field(payload, "detail"),
        field_errors=field_errors,
        cause=payload,
        method=method,
        url=url,
        headers=headers,
        duration_ms=duration_ms,
    )
