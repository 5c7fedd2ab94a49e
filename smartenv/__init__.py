from __future__ import annotations

"""
smartenv - Layered environment configuration with schema validation.

This package provides:
- load_env / ConfigManager: merge source files with the environment, validate, freeze.
- define_schema: declarative field-list schemas (string, number, boolean).
- json_schema: external schemas validated by the `jsonschema` engine.
- Config: read-only configuration object with attribute-style access.
"""

from .exceptions import ConfigSourceError, ConfigurationError, ErrorKind, ValidationError
from .manager import Config, ConfigManager, LoadOptions, load_env
from .schema import (
    DeclarativeSchema,
    FieldType,
    Schema,
    SchemaField,
    ValidationDetail,
    ValidationResult,
    define_schema,
)
from .sources import ConfigSource, DictSource, EnvFileSource
from .store import DictEnvStore, EnvStore, ProcessEnvStore
from .validation import EngineIssue, EngineResult, ExternalSchema, JsonSchemaEngine, json_schema

__all__ = [
    "ConfigurationError",
    "ConfigSourceError",
    "ValidationError",
    "ErrorKind",
    "Config",
    "ConfigManager",
    "LoadOptions",
    "load_env",
    "Schema",
    "SchemaField",
    "FieldType",
    "DeclarativeSchema",
    "define_schema",
    "ValidationDetail",
    "ValidationResult",
    "ExternalSchema",
    "JsonSchemaEngine",
    "EngineIssue",
    "EngineResult",
    "json_schema",
    "ConfigSource",
    "DictSource",
    "EnvFileSource",
    "EnvStore",
    "ProcessEnvStore",
    "DictEnvStore",
]
