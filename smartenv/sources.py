from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

import yaml
from dotenv import dotenv_values

from .exceptions import ConfigSourceError
from .store import EnvStore
from .utils import merge_records

if TYPE_CHECKING:  # pragma: no cover
    from .manager import LoadOptions

# TOML support:
# - Python >= 3.11: stdlib `tomllib`
# - Older: `tomli` fallback
tomllib: Any | None
try:
    import tomllib as _tomllib
    tomllib = _tomllib
except ImportError:  # pragma: no cover
    try:
        import tomli as _tomli
        tomllib = _tomli
    except ImportError:  # pragma: no cover
        tomllib = None

logger = logging.getLogger(__name__)

EnvRecord = Dict[str, Optional[str]]
SourceEntry = Union[str, "os.PathLike[str]", "ConfigSource"]


class ConfigSource(ABC):
    """Abstract base class for flat key/value configuration sources."""

    @abstractmethod
    def load(self) -> Mapping[str, Optional[str]] | None:
        """Return a flat string record or None if nothing was loaded."""
        raise NotImplementedError


class DictSource(ConfigSource):
    """Configuration source backed by an in-memory dictionary."""

    def __init__(self, data: Mapping[str, Any]):
        self._data = dict(data)

    def load(self) -> Mapping[str, Optional[str]] | None:
        return _flatten_scalars(self._data, origin="DictSource")

    def __repr__(self) -> str:
        return f"<DictSource keys={list(self._data)}>"


class EnvFileSource(ConfigSource):
    """
    Load a flat key/value record from a single file.

    Supported formats (by extension):
      - .json
      - .toml  (requires Python 3.11+ or tomli)
      - .yaml, .yml
      - anything else is read as a dotenv file (KEY=value lines)

    Structured formats must hold a top-level mapping of scalars. Scalars are
    converted to strings so every format yields the same kind of record.
    """

    def __init__(self, path: str | os.PathLike[str], *, optional: bool = False):
        self._path = Path(path).expanduser()
        self._optional = optional

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Mapping[str, Optional[str]] | None:
        if not self._path.is_file():
            if self._optional:
                return None
            raise ConfigSourceError(f"Configuration file not found: {self._path}")

        suffix = self._path.suffix.lower()

        if suffix == ".json":
            return _flatten_scalars(self._load_json(), origin=str(self._path))
        if suffix == ".toml":
            return _flatten_scalars(self._load_toml(), origin=str(self._path))
        if suffix in {".yaml", ".yml"}:
            return _flatten_scalars(self._load_yaml(), origin=str(self._path))
        return self._load_dotenv()

    def _load_dotenv(self) -> Dict[str, Optional[str]]:
        # Interpolation would pull values from os.environ behind our back
        try:
            values = dotenv_values(self._path, interpolate=False, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigSourceError(
                f"Error reading dotenv file {self._path}: {exc}"
            ) from exc
        return dict(values)

    def _load_json(self) -> Any:
        try:
            with self._path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigSourceError(f"Invalid JSON in {self._path}: {exc}") from exc

    def _load_toml(self) -> Any:
        if tomllib is None:
            raise ConfigSourceError(
                "TOML configuration requested but neither 'tomllib' (Python 3.11+) "
                "nor 'tomli' is available. Install 'tomli' to enable TOML support."
            )
        try:
            with self._path.open("rb") as f:
                return tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigSourceError(f"Invalid TOML in {self._path}: {exc}") from exc

    def _load_yaml(self) -> Any:
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigSourceError(f"Invalid YAML in {self._path}: {exc}") from exc

        if data is None:
            return {}
        return data

    def __repr__(self) -> str:
        return f"<EnvFileSource path={str(self._path)!r}>"


def _flatten_scalars(data: Any, *, origin: str) -> Dict[str, Optional[str]]:
    """
    Convert a top-level mapping of scalars to a flat string record.

    Booleans become "true"/"false", None stays undefined, numbers use str().
    """
    if not isinstance(data, Mapping):
        raise ConfigSourceError(f"Top-level structure in {origin} must be a mapping.")

    record: Dict[str, Optional[str]] = {}
    for key, value in data.items():
        if value is None:
            record[str(key)] = None
        elif isinstance(value, bool):
            record[str(key)] = "true" if value else "false"
        elif isinstance(value, (str, int, float)):
            record[str(key)] = str(value)
        else:
            raise ConfigSourceError(
                f"Nested value at {key!r} in {origin} is not supported; "
                "configuration sources must be flat key/value pairs."
            )
    return record


def _as_source(entry: SourceEntry) -> ConfigSource:
    if isinstance(entry, ConfigSource):
        return entry
    return EnvFileSource(entry)


def read_sources(entries: Union[SourceEntry, Iterable[SourceEntry]]) -> EnvRecord:
    """
    Read and merge the file layer.

    Entries are applied in order, later ones override earlier ones. A source
    that is missing or cannot be parsed contributes nothing; the problem is
    logged as a warning and the load carries on. A single path or source is
    read as a one-element list.
    """
    if isinstance(entries, (str, os.PathLike, ConfigSource)):
        entries = [entries]

    merged: EnvRecord = {}

    for entry in entries:
        source = _as_source(entry)
        try:
            data = source.load()
        except ConfigSourceError as exc:
            logger.warning("Skipping configuration source %r: %s", source, exc)
            continue
        if data is None:
            continue
        merged = merge_records(merged, data)

    return merged


def overlay_store(file_env: Mapping[str, Optional[str]], store: EnvStore) -> EnvRecord:
    """Overlay every defined key of the store onto the file layer; the store wins."""
    defined = {key: value for key, value in store.get_all().items() if value is not None}
    return merge_records(file_env, defined)


def load_raw_env(
    options: "LoadOptions",
    store: EnvStore,
    *,
    file_env: Optional[Mapping[str, Optional[str]]] = None,
) -> EnvRecord:
    """
    Merge the configured source files with the environment store.

    `file_env` is an already-read file layer; when omitted the files named
    by `options.source_files` are read.
    """
    if file_env is None:
        file_env = read_sources(options.source_files)
    return overlay_store(file_env, store)
