from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .exceptions import ErrorKind
from .utils import coerce_boolean, coerce_number

EnvRecord = Mapping[str, Optional[str]]


class FieldType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class ValidationDetail:
    """One failed field: where it failed and why."""

    key: str
    message: str
    kind: ErrorKind = ErrorKind.INVALID
    # Raw offending value, if known. Used to mask secrets before logging.
    value: Optional[str] = None


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validating an EnvRecord.

    Either `success` with typed `data`, or a failure with ordered `errors`.
    Build it through `ok()` / `fail()`.
    """

    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    errors: Tuple[ValidationDetail, ...] = ()

    @classmethod
    def ok(cls, data: Mapping[str, Any]) -> "ValidationResult":
        return cls(success=True, data=dict(data))

    @classmethod
    def fail(cls, errors: Iterable[ValidationDetail]) -> "ValidationResult":
        errors = tuple(errors)
        if not errors:
            raise ValueError("A failed validation result needs at least one error.")
        return cls(success=False, errors=errors)


class Schema(ABC):
    """Common interface of the declarative and external schema variants."""

    @abstractmethod
    def validate(self, env: EnvRecord) -> ValidationResult:
        """Validate a merged record. Never raises for bad values."""
        raise NotImplementedError

    @abstractmethod
    def keys(self) -> List[str]:
        """Keys this schema declares (used when scrubbing the environment)."""
        raise NotImplementedError


@dataclass(frozen=True)
class SchemaField:
    """
    Declaration of a single configuration key.

    `default=None` means "no default". When both `required` and `default`
    are set, the required check wins.
    """

    type: FieldType
    required: bool = False
    default: Union[str, int, float, bool, None] = None

    def __post_init__(self) -> None:
        try:
            field_type = FieldType(self.type)
        except ValueError as exc:
            allowed = ", ".join(t.value for t in FieldType)
            raise ValueError(
                f"Unknown field type {self.type!r}; expected one of: {allowed}"
            ) from exc
        object.__setattr__(self, "type", field_type)

        if self.default is not None and not _matches_type(self.default, field_type):
            raise ValueError(
                f"Default {self.default!r} does not match field type {field_type.value!r}"
            )

    @classmethod
    def from_mapping(cls, definition: Mapping[str, Any]) -> "SchemaField":
        unknown = set(definition) - {"type", "required", "default"}
        if unknown:
            raise ValueError(f"Unknown schema field options: {sorted(unknown)}")
        if "type" not in definition:
            raise ValueError("Schema field is missing 'type'")
        return cls(
            type=definition["type"],
            required=bool(definition.get("required", False)),
            default=definition.get("default"),
        )


def _matches_type(value: Any, field_type: FieldType) -> bool:
    if field_type is FieldType.BOOLEAN:
        return isinstance(value, bool)
    if field_type is FieldType.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, str)


class DeclarativeSchema(Schema, Mapping[str, SchemaField]):
    """
    Field-list schema validated without any external engine.

    Declaration order is preserved and drives error ordering. Keys in the
    record that the schema does not declare are ignored.
    """

    def __init__(self, fields: Mapping[str, Union[SchemaField, Mapping[str, Any]]]):
        self._fields: Dict[str, SchemaField] = {}
        for key, definition in fields.items():
            if isinstance(definition, SchemaField):
                self._fields[key] = definition
            elif isinstance(definition, Mapping):
                self._fields[key] = SchemaField.from_mapping(definition)
            else:
                raise TypeError(
                    f"Schema entry for {key!r} must be a SchemaField or a mapping, "
                    f"got {type(definition).__name__}"
                )

    def __getitem__(self, key: str) -> SchemaField:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def keys(self) -> List[str]:  # type: ignore[override]
        return list(self._fields)

    def validate(self, env: EnvRecord) -> ValidationResult:
        errors: List[ValidationDetail] = []
        data: Dict[str, Any] = {}

        for key, definition in self._fields.items():
            raw = env.get(key)

            if definition.required and not raw:
                errors.append(
                    ValidationDetail(
                        key=key,
                        message=f"Required but missing. Add: {key}=your_value_here",
                        kind=ErrorKind.MISSING,
                    )
                )
                continue

            if raw is None:
                if definition.default is not None:
                    data[key] = definition.default
                continue

            value = _coerce(raw, definition.type)
            if value is _INVALID:
                errors.append(
                    ValidationDetail(
                        key=key,
                        message=f'Expected {definition.type.value}, got "{raw}"',
                        kind=ErrorKind.INVALID,
                        value=raw,
                    )
                )
            else:
                data[key] = value

        if errors:
            return ValidationResult.fail(errors)
        return ValidationResult.ok(data)

    def __repr__(self) -> str:
        return f"<DeclarativeSchema keys={self.keys()}>"


_INVALID = object()


def _coerce(raw: str, field_type: FieldType) -> Any:
    if field_type is FieldType.STRING:
        return raw
    if field_type is FieldType.BOOLEAN:
        return coerce_boolean(raw)
    number = coerce_number(raw)
    if math.isnan(number):
        return _INVALID
    return number


def define_schema(
    fields: Mapping[str, Union[SchemaField, Mapping[str, Any]]]
) -> DeclarativeSchema:
    """
    Build a declarative schema.

    Example:

        schema = define_schema({
            "PORT": {"type": "number", "default": 3000},
            "API_KEY": {"type": "string", "required": True},
        })
    """
    if isinstance(fields, DeclarativeSchema):
        return fields
    return DeclarativeSchema(fields)


def find_unknown_keys(schema: Schema, file_env: EnvRecord) -> List[ValidationDetail]:
    """Report keys that source files define but the schema does not declare."""
    declared = set(schema.keys())
    return [
        ValidationDetail(
            key=key,
            message="Not declared in schema. Remove it from the source file or declare it.",
            kind=ErrorKind.UNKNOWN_KEY,
        )
        for key in file_env
        if key not in declared
    ]
