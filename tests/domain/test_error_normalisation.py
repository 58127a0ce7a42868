"""Tests for backend error payload normalisation."""

import pytest

from resilient_api_client.domain.error_normalisation import (
    DetailListShape,
    DetailShape,
    FieldErrorsShape,
    MessageShape,
    UnknownShape,
    classify_error_payload,
    normalise_error,
)
from resilient_api_client.exceptions import GENERIC_ERROR_MESSAGE, ErrorKind


class TestClassifyErrorPayload:
    """Tests for tagged shape classification."""

    def test_field_errors_shape(self) -> None:
        shape = classify_error_payload({"field_errors": {"email": ["required"]}})
        assert shape == FieldErrorsShape(field_errors={"email": ("required",)})

    def test_single_string_field_error_is_wrapped(self) -> None:
        shape = classify_error_payload({"field_errors": {"email": "required"}})
        assert shape == FieldErrorsShape(field_errors={"email": ("required",)})

    def test_message_shape(self) -> None:
        assert classify_error_payload({"message": "Nope"}) == MessageShape(message="Nope")

    def test_detail_shape(self) -> None:
        assert classify_error_payload({"detail": "Not found"}) == DetailShape(detail="Not found")

    def test_detail_list_shape(self) -> None:
        payload = {
            "detail": [
                {"loc": ["body", "email"], "msg": "field required"},
                {"loc": ["body", "password"], "msg": "too short"},
            ]
        }
        shape = classify_error_payload(payload)
        assert shape == DetailListShape(
            message="field required",
            field_errors={"email": ("field required",), "password": ("too short",)},
        )

    @pytest.mark.parametrize(
        "payload",
        [None, "", "<html>Bad gateway</html>", [], {}, {"message": ""}, {"detail": 42}],
    )
    def test_unknown_shapes(self, payload: object) -> None:
        assert classify_error_payload(payload) == UnknownShape()


class TestNormaliseError:
    """Tests for StructuredError construction from payloads."""

    def test_field_errors_take_priority_over_message_and_detail(self) -> None:
        payload = {
            "field_errors": {"email": ["Email is invalid", "Too long"], "name": ["Required"]},
            "message": "Validation failed",
            "detail": "ignored",
        }
        error = normalise_error(status=422, payload=payload)

        assert error.message == "Email is invalid"
        assert error.field_errors == {
            "email": ("Email is invalid", "Too long"),
            "name": ("Required",),
        }
        assert error.detail == "ignored"
        assert error.status == 422

    def test_message_takes_priority_over_detail(self) -> None:
        error = normalise_error(status=400, payload={"message": "Bad input", "detail": "x"})
        assert error.message == "Bad input"
        assert error.field_errors is None

    def test_detail_string_used_as_message(self) -> None:
        error = normalise_error(status=404, payload={"detail": "User not found"})
        assert error.message == "User not found"
        assert error.detail == "User not found"

    def test_empty_field_error_lists_fall_back_to_generic_message(self) -> None:
        error = normalise_error(status=422, payload={"field_errors": {"email": []}})
        assert error.message == GENERIC_ERROR_MESSAGE
        assert error.field_errors == {"email": ()}

    def test_unparseable_body_uses_generic_message(self) -> None:
        error = normalise_error(status=502, payload="<html>Bad gateway</html>")
        assert error.message == GENERIC_ERROR_MESSAGE
        assert error.cause == "<html>Bad gateway</html>"
        assert error.code is None

    def test_message_code_preferred_over_code(self) -> None:
        error = normalise_error(
            status=409, payload={"message": "Taken", "message_code": "EMAIL_TAKEN", "code": "X"}
        )
        assert error.code == "EMAIL_TAKEN"

    def test_code_used_when_message_code_missing(self) -> None:
        error = normalise_error(status=409, payload={"message": "Taken", "code": "CONFLICT"})
        assert error.code == "CONFLICT"

    def test_non_string_code_is_ignored(self) -> None:
        error = normalise_error(status=409, payload={"message": "Taken", "code": 409})
        assert error.code is None

    def test_default_kind_is_server_rejected(self) -> None:
        error = normalise_error(status=500, payload=None)
        assert error.kind is ErrorKind.SERVER_REJECTED

    def test_request_metadata_is_attached(self) -> None:
        error = normalise_error(
            status=500,
            payload={"message": "Boom"},
            kind=ErrorKind.AUTH_UNRECOVERABLE,
            method="GET",
            url="https://api.test/v1/profile",
            headers={"X-Request-ID": "req-1"},
            duration_ms=12.5,
        )
        assert error.kind is ErrorKind.AUTH_UNRECOVERABLE
        assert error.method == "GET"
        assert error.url == "https://api.test/v1/profile"
        assert error.request_id == "req-1"
        assert error.duration_ms == 12.5

    def test_normalisation_is_deterministic(self) -> None:
        payload = {"field_errors": {"b": ["second"], "a": ["first"]}, "code": "INVALID"}
        first = normalise_error(status=422, payload=payload)
        second = normalise_error(status=422, payload=payload)

        assert first.to_dict() == second.to_dict()
        assert first.message == "second"
