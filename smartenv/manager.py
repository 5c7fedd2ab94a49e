from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterator, Optional, Sequence, Union

from .exceptions import ValidationError
from .reporting import log_validation_errors
from .schema import DeclarativeSchema, Schema, ValidationResult, define_schema, find_unknown_keys
from .sources import SourceEntry, load_raw_env, read_sources
from .store import EnvStore, ProcessEnvStore

logger = logging.getLogger(__name__)

SchemaLike = Union[Schema, Mapping[str, Any]]


@dataclass(frozen=True)
class LoadOptions:
    """
    Options for a single load.

    strict: raise ValidationError on failure instead of logging it.
    mask_secrets: mask secret-looking values in the logged report.
    scrub_process_env: delete the schema's keys from the store after success.
    allow_unknown_keys: when False, keys defined in source files but not
        declared by a declarative schema are reported as problems.
    source_files: files (or ConfigSource objects) merged in order; a single
        path or source is accepted too.
    """

    strict: bool = True
    mask_secrets: bool = True
    scrub_process_env: bool = False
    allow_unknown_keys: bool = True
    source_files: Union[SourceEntry, Sequence[SourceEntry]] = (".env",)


class Config(Mapping[str, Any]):
    """
    Read-only configuration object.

    Provides both mapping access (cfg["PORT"]) and attribute-style access
    (cfg.PORT). Any attempt to set or delete a value raises TypeError.
    """

    def __init__(self, data: Mapping[str, Any]):
        object.__setattr__(self, "_data", dict(data))

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __getattr__(self, name: str) -> Any:
        if name == "_data":
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError as exc:
            raise AttributeError(name) from exc

    def __setattr__(self, name: str, value: Any) -> None:
        raise TypeError(f"Config is read-only; cannot set {name!r}")

    def __delattr__(self, name: str) -> None:
        raise TypeError(f"Config is read-only; cannot delete {name!r}")

    def __setitem__(self, key: str, value: Any) -> None:
        raise TypeError(f"Config is read-only; cannot set {key!r}")

    def __delitem__(self, key: str) -> None:
        raise TypeError(f"Config is read-only; cannot delete {key!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Return a copy of the underlying data."""
        return dict(self._data)

    def __repr__(self) -> str:
        # Values may be secrets; only show keys
        keys_preview = ", ".join(list(self._data.keys())[:5])
        more = "..." if len(self._data) > 5 else ""
        return f"<Config keys=[{keys_preview}{more}]>"


def _resolve_schema(schema: SchemaLike) -> Schema:
    if isinstance(schema, Schema):
        return schema
    if isinstance(schema, Mapping):
        return define_schema(schema)
    raise TypeError(
        "schema must be a DeclarativeSchema, an ExternalSchema or a mapping of "
        f"field definitions, got {type(schema).__name__}"
    )


class ConfigManager:
    """
    Central orchestrator for loading, merging and validating configuration.

    Typical usage:

        from smartenv import ConfigManager, LoadOptions, define_schema

        manager = ConfigManager(
            define_schema({
                "PORT": {"type": "number", "default": 3000},
                "API_KEY": {"type": "string", "required": True},
            }),
            LoadOptions(source_files=[".env", ".env.local"]),
        )

        cfg = manager.load()
        port = cfg.PORT

    The store defaults to the live process environment. Loads are not
    synchronized; callers sharing a store across threads must serialize them.
    """

    def __init__(
        self,
        schema: SchemaLike,
        options: Optional[LoadOptions] = None,
        *,
        store: Optional[EnvStore] = None,
    ):
        self._schema = _resolve_schema(schema)
        self._options = options or LoadOptions()
        self._store: EnvStore = store if store is not None else ProcessEnvStore()

    def load(self) -> Config:
        """
        Load, merge and validate configuration.

        Source files are applied in the given order; later files override
        earlier ones and the store overrides them all.
        """
        options = self._options
        file_env = read_sources(options.source_files)
        raw_env = load_raw_env(options, self._store, file_env=file_env)

        result = self._schema.validate(raw_env)
        result = self._check_unknown_keys(result, file_env)

        if not result.success:
            if options.strict:
                raise ValidationError(result.errors)
            log_validation_errors(result.errors, options.mask_secrets)
            return Config({})

        if options.scrub_process_env:
            self._scrub()

        return Config(result.data)

    def _check_unknown_keys(
        self, result: ValidationResult, file_env: Mapping[str, Optional[str]]
    ) -> ValidationResult:
        # External engines own their unknown-key policy
        if self._options.allow_unknown_keys or not isinstance(self._schema, DeclarativeSchema):
            return result

        unknown = find_unknown_keys(self._schema, file_env)
        if not unknown:
            return result
        return ValidationResult.fail([*result.errors, *unknown])

    def _scrub(self) -> None:
        keys = self._schema.keys()
        for key in keys:
            self._store.delete(key)
        logger.debug("Scrubbed %d key(s) from the environment store", len(keys))


def load_env(
    schema: SchemaLike,
    options: Optional[LoadOptions] = None,
    *,
    store: Optional[EnvStore] = None,
    **overrides: Any,
) -> Config:
    """
    Load and validate configuration in one call.

    Keyword overrides replace fields of `options`:

        cfg = load_env(schema, strict=False, source_files=[".env.test"])
    """
    options = options or LoadOptions()
    if overrides:
        options = replace(options, **overrides)
    return ConfigManager(schema, options, store=store).load()
