from __future__ import annotations

from typing import Any, Dict

import pytest

from smartenv import (
    ConfigurationError,
    EngineIssue,
    EngineResult,
    ErrorKind,
    ExternalSchema,
    JsonSchemaEngine,
    json_schema,
)
from smartenv.validation import issues_to_details


class RecordingEngine:
    """Minimal engine: echoes a canned result and remembers what it saw."""

    def __init__(self, result: EngineResult):
        self.result = result
        self.seen: Dict[str, Any] = {}

    def validate(self, record):
        self.seen = dict(record)
        return self.result


def test_external_schema_passes_full_record_and_returns_data_verbatim():
    engine = RecordingEngine(EngineResult(success=True, data={"PORT": 8080}))
    schema = ExternalSchema(engine)

    result = schema.validate({"PORT": "8080", "UNRELATED": "x"})

    assert result.success is True
    assert result.data == {"PORT": 8080}
    assert engine.seen == {"PORT": "8080", "UNRELATED": "x"}


def test_external_schema_maps_issues_in_engine_order():
    engine = RecordingEngine(
        EngineResult(
            success=False,
            issues=(
                EngineIssue(path=("DATABASE", "URL"), message="Invalid url"),
                EngineIssue(path=(), message="Object is broken"),
            ),
        )
    )

    result = ExternalSchema(engine).validate({})

    assert result.success is False
    assert [(d.key, d.message) for d in result.errors] == [
        ("DATABASE.URL", "Invalid url"),
        ("unknown", "Object is broken"),
    ]
    assert all(d.kind is ErrorKind.INVALID for d in result.errors)


def test_external_schema_failure_without_issues_becomes_one_detail():
    result = ExternalSchema(RecordingEngine(EngineResult(success=False))).validate({})

    assert result.success is False
    (detail,) = result.errors
    assert detail.key == "unknown"
    assert detail.message == "Validation failed"
    assert detail.kind is ErrorKind.INVALID


def test_issues_to_details_joins_non_string_segments():
    details = issues_to_details([EngineIssue(path=("SERVERS", 0), message="bad")])  # type: ignore[arg-type]

    assert details[0].key == "SERVERS.0"


def test_external_schema_keys_without_engine_support():
    engine = RecordingEngine(EngineResult(success=True))

    assert ExternalSchema(engine).keys() == []


def test_external_schema_rejects_objects_without_validate():
    with pytest.raises(TypeError):
        ExternalSchema(object())  # type: ignore[arg-type]


SERVICE_SCHEMA = {
    "type": "object",
    "properties": {
        "PORT": {"type": "integer", "default": 8080},
        "RATIO": {"type": "number"},
        "DEBUG": {"type": "boolean"},
        "DATABASE_URL": {"type": "string", "minLength": 1},
    },
    "required": ["DATABASE_URL"],
}


def test_json_schema_coerces_and_keeps_declared_properties():
    schema = json_schema(SERVICE_SCHEMA)

    result = schema.validate(
        {
            "PORT": "3000",
            "RATIO": "0.25",
            "DEBUG": "yes",
            "DATABASE_URL": "postgres://db",
            "PATH": "/usr/bin",
            "UNSET": None,
        }
    )

    assert result.success is True
    assert result.data == {
        "PORT": 3000,
        "RATIO": 0.25,
        "DEBUG": True,
        "DATABASE_URL": "postgres://db",
    }


def test_json_schema_applies_property_defaults():
    result = json_schema(SERVICE_SCHEMA).validate({"DATABASE_URL": "postgres://db"})

    assert result.success is True
    assert result.data == {"PORT": 8080, "DATABASE_URL": "postgres://db"}


def test_json_schema_reports_missing_required_property_by_name():
    result = json_schema(SERVICE_SCHEMA).validate({})

    assert result.success is False
    (detail,) = result.errors
    assert detail.key == "DATABASE_URL"
    assert "required property" in detail.message


def test_json_schema_reports_each_missing_required_property():
    schema = json_schema(
        {
            "type": "object",
            "required": ["A", "B", "C"],
        }
    )

    result = schema.validate({"B": "present"})

    assert [d.key for d in result.errors] == ["A", "C"]


def test_json_schema_reports_uncoercible_values():
    result = json_schema(SERVICE_SCHEMA).validate(
        {"PORT": "eighty", "DEBUG": "maybe", "DATABASE_URL": "postgres://db"}
    )

    assert result.success is False
    keys = sorted(d.key for d in result.errors)
    assert keys == ["DEBUG", "PORT"]
    port_detail = next(d for d in result.errors if d.key == "PORT")
    assert "integer" in port_detail.message


def test_json_schema_without_coercion_sees_raw_strings():
    schema = json_schema(
        {"type": "object", "properties": {"PORT": {"type": "integer"}}},
        coerce=False,
    )

    result = schema.validate({"PORT": "3000"})

    assert result.success is False
    assert result.errors[0].key == "PORT"


def test_json_schema_engine_owns_unknown_key_policy():
    schema = json_schema(
        {
            "type": "object",
            "properties": {"PORT": {"type": "string"}},
            "additionalProperties": False,
        }
    )

    result = schema.validate({"PORT": "1", "EXTRA": "x"})

    assert result.success is False
    assert result.errors[0].key == "unknown"
    assert "EXTRA" in result.errors[0].message


def test_json_schema_without_properties_returns_whole_record():
    result = json_schema({"type": "object"}).validate({"A": "1", "B": None})

    assert result.success is True
    assert result.data == {"A": "1"}


def test_json_schema_engine_keys():
    engine = JsonSchemaEngine(SERVICE_SCHEMA)

    assert engine.keys() == ["PORT", "RATIO", "DEBUG", "DATABASE_URL"]
    assert ExternalSchema(engine).keys() == ["PORT", "RATIO", "DEBUG", "DATABASE_URL"]


def test_json_schema_rejects_invalid_schema_document():
    with pytest.raises(ConfigurationError):
        JsonSchemaEngine({"type": "no-such-type"})

