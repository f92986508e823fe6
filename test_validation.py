#!/usr/bin/env python3
"""
Tests for the generic argument validator and JSON Schema rendering.
"""

import pytest

from src.gateway import ArgumentSchema, ErrorKind, FieldSpec, GatewayError, uuid_field, validate_arguments

SCHEMA = ArgumentSchema({
    "projectUuid": uuid_field("Project"),
    "limit": FieldSpec(type="integer", minimum=1, maximum=100),
    "mode": FieldSpec(type="string", enum=("table", "field")),
    "names": FieldSpec(type="array", items=FieldSpec(type="string", min_length=1)),
    "filters": FieldSpec(type="object", default={}),
})

PROJECT_UUID = "3675b69e-8324-4110-bdca-059031aa8da3"


def rejected(arguments) -> str:
    with pytest.raises(GatewayError) as exc_info:
        validate_arguments(SCHEMA, arguments)
    assert exc_info.value.kind is ErrorKind.INVALID_ARGUMENT
    assert exc_info.value.retryable is False
    return exc_info.value.message


def test_valid_arguments_pass_and_defaults_are_filled():
    validated = validate_arguments(SCHEMA, {"projectUuid": PROJECT_UUID, "limit": 10})
    assert validated == {"projectUuid": PROJECT_UUID, "limit": 10, "filters": {}}


def test_none_arguments_treated_as_empty():
    message = rejected(None)
    assert "projectUuid: required argument is missing" in message


def test_all_errors_are_reported_together():
    message = rejected({"limit": 0, "mode": "chart", "extra": True})
    assert message.startswith("Validation error:")
    assert "projectUuid: required argument is missing" in message
    assert "limit: must be >= 1" in message
    assert "mode: must be one of" in message
    assert "extra: unknown argument" in message


def test_uuid_format_is_checked():
    assert "invalid UUID format" in rejected({"projectUuid": "1234"})


def test_booleans_are_not_numbers():
    assert "limit: expected integer but received bool" in rejected({"projectUuid": PROJECT_UUID, "limit": True})


def test_array_items_are_checked():
    message = rejected({"projectUuid": PROJECT_UUID, "names": ["ok", "", 3]})
    assert "names[1]: cannot be empty" in message
    assert "names[2]: expected string but received int" in message


def test_non_object_arguments_rejected():
    with pytest.raises(GatewayError):
        validate_arguments(SCHEMA, ["projectUuid"])


def test_json_schema_rendering():
    schema = SCHEMA.to_json_schema()
    assert schema["type"] == "object"
    assert schema["required"] == ["projectUuid"]
    assert schema["additionalProperties"] is False
    assert schema["properties"]["limit"] == {"type": "integer", "minimum": 1, "maximum": 100}
    assert schema["properties"]["names"]["items"] == {"type": "string", "minLength": 1}
    assert schema["properties"]["mode"]["enum"] == ["table", "field"]


def test_unsupported_field_type_rejected():
    with pytest.raises(ValueError):
        FieldSpec(type="date")


def test_uuid_must_match_exactly():
    for value in (PROJECT_UUID + "\n", PROJECT_UUID + "0", "{" + PROJECT_UUID + "}"):
        assert "invalid UUID format" in rejected({"projectUuid": value})


def test_null_values_are_treated_as_absent():
    validated = validate_arguments(SCHEMA, {"projectUuid": PROJECT_UUID, "limit": None, "mode": None})
    assert validated == {"projectUuid": PROJECT_UUID, "filters": {}}


def test_defaults_are_not_shared_between_calls():
    first = validate_arguments(SCHEMA, {"projectUuid": PROJECT_UUID})
    first["filters"]["dimensions"] = {}
    second = validate_arguments(SCHEMA, {"projectUuid": PROJECT_UUID})
    assert second["filters"] == {}


def test_uuid_fields_advertise_format():
    schema = ArgumentSchema({"chartUuid": uuid_field("Chart")}).to_json_schema()
    assert schema["properties"]["chartUuid"]["format"] == "uuid"
