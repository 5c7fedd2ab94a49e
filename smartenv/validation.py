from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Protocol, Sequence, Tuple

from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for

from .exceptions import ConfigurationError, ErrorKind
from .schema import EnvRecord, Schema, ValidationDetail, ValidationResult
from .utils import coerce_number

_BOOLEAN_LITERALS = {"true": True, "1": True, "yes": True, "false": False, "0": False, "no": False}


@dataclass(frozen=True)
class EngineIssue:
    path: Tuple[str, ...]
    message: str


@dataclass(frozen=True)
class EngineResult:
    """What a validation engine hands back: typed data or a list of issues."""

    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    issues: Tuple[EngineIssue, ...] = ()


class ValidationEngine(Protocol):
    def validate(self, record: EnvRecord) -> EngineResult:
        ...


def issues_to_details(issues: Iterable[EngineIssue]) -> List[ValidationDetail]:
    """Map engine issues to details; an empty path is reported as 'unknown'."""
    return [
        ValidationDetail(
            key=".".join(str(part) for part in issue.path) or "unknown",
            message=issue.message,
            kind=ErrorKind.INVALID,
        )
        for issue in issues
    ]


class ExternalSchema(Schema):
    """
    Schema backed by a pluggable validation engine.

    The engine sees the full merged record, including keys it does not
    declare, and owns the policy for them.
    """

    def __init__(self, engine: ValidationEngine):
        if not callable(getattr(engine, "validate", None)):
            raise TypeError("Validation engine must provide a validate(record) method.")
        self._engine = engine

    def validate(self, env: EnvRecord) -> ValidationResult:
        result = self._engine.validate(env)
        if result.success:
            return ValidationResult.ok(result.data)
        details = issues_to_details(result.issues)
        if not details:
            details = [ValidationDetail(key="unknown", message="Validation failed", kind=ErrorKind.INVALID)]
        return ValidationResult.fail(details)

    def keys(self) -> List[str]:
        """Best effort: ask the engine, fall back to nothing."""
        engine_keys = getattr(self._engine, "keys", None)
        if not callable(engine_keys):
            return []
        return [str(key) for key in engine_keys()]

    def __repr__(self) -> str:
        return f"<ExternalSchema engine={self._engine!r}>"


class JsonSchemaEngine:
    """
    Validation engine built on `jsonschema`.

    With `coerce=True`, string values of properties typed integer, number or
    boolean are converted before validation. Values that cannot be converted
    are left alone so the engine reports them.
    """

    def __init__(self, schema: Mapping[str, Any], *, coerce: bool = True):
        validator_cls = validator_for(schema)
        try:
            validator_cls.check_schema(schema)
        except SchemaError as exc:
            raise ConfigurationError(f"Invalid JSON Schema: {exc.message}") from exc

        self._schema = dict(schema)
        self._validator = validator_cls(self._schema)
        self._coerce = coerce

    @property
    def properties(self) -> Mapping[str, Any]:
        props = self._schema.get("properties")
        return props if isinstance(props, Mapping) else {}

    def keys(self) -> List[str]:
        return list(self.properties)

    def validate(self, record: EnvRecord) -> EngineResult:
        instance = self._prepare(record)

        issues = list(self._iter_issues(instance))
        if issues:
            return EngineResult(success=False, issues=tuple(issues))

        props = self.properties
        if not props:
            return EngineResult(success=True, data=instance)

        data: Dict[str, Any] = {}
        for key, subschema in props.items():
            if key in instance:
                data[key] = instance[key]
            elif isinstance(subschema, Mapping) and "default" in subschema:
                data[key] = subschema["default"]
        return EngineResult(success=True, data=data)

    def _prepare(self, record: EnvRecord) -> Dict[str, Any]:
        instance: Dict[str, Any] = {k: v for k, v in record.items() if v is not None}
        if not self._coerce:
            return instance

        for key, subschema in self.properties.items():
            value = instance.get(key)
            if isinstance(value, str) and isinstance(subschema, Mapping):
                instance[key] = _coerce_for_types(value, _declared_types(subschema))
        return instance

    def _iter_issues(self, instance: Dict[str, Any]) -> Iterator[EngineIssue]:
        # jsonschema reports missing required properties at the parent path;
        # hand them out one by one so each issue points at its property.
        pending_required: Dict[Tuple[Any, ...], Iterator[str]] = {}

        for error in self._validator.iter_errors(instance):
            path = [str(part) for part in error.absolute_path]
            if error.validator == "required" and isinstance(error.instance, Mapping):
                slot = (tuple(error.absolute_schema_path), tuple(path))
                missing = pending_required.setdefault(
                    slot,
                    iter([p for p in error.validator_value if p not in error.instance]),
                )
                name = next(missing, None)
                if name is not None:
                    path.append(str(name))
            yield EngineIssue(path=tuple(path), message=error.message)

    def __repr__(self) -> str:
        return f"<JsonSchemaEngine keys={self.keys()}>"


def _declared_types(subschema: Mapping[str, Any]) -> Sequence[str]:
    declared = subschema.get("type")
    if isinstance(declared, str):
        return (declared,)
    if isinstance(declared, (list, tuple)):
        return tuple(t for t in declared if isinstance(t, str))
    return ()


def _coerce_for_types(value: str, types: Sequence[str]) -> Any:
    if "string" in types:
        return value
    for declared in types:
        if declared == "integer":
            number = coerce_number(value)
            if isinstance(number, int):
                return number
        elif declared == "number":
            number = coerce_number(value)
            if not math.isnan(number):
                return number
        elif declared == "boolean":
            lowered = value.strip().lower()
            if lowered in _BOOLEAN_LITERALS:
                return _BOOLEAN_LITERALS[lowered]
    return value


def json_schema(schema: Mapping[str, Any], *, coerce: bool = True) -> ExternalSchema:
    """
    Wrap a JSON Schema document as an external schema.

        schema = json_schema({
            "type": "object",
            "properties": {"PORT": {"type": "integer", "default": 8080}},
            "required": ["DATABASE_URL"],
        })
    """
    return ExternalSchema(JsonSchemaEngine(schema, coerce=coerce))
