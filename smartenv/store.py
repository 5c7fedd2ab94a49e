from __future__ import annotations

import os
from collections.abc import Mapping, MutableMapping
from typing import Dict, Optional, Protocol


class EnvStore(Protocol):
    """
    Key/value store the loader reads from and, when scrubbing, deletes from.

    Stores are not synchronized. Concurrent loads against the same store
    must be serialized by the caller.
    """

    def get(self, key: str) -> Optional[str]:
        ...

    def get_all(self) -> Dict[str, str]:
        ...

    def delete(self, key: str) -> None:
        ...


class ProcessEnvStore:
    """Store backed by the live process environment (os.environ by default)."""

    def __init__(self, environ: Optional[MutableMapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ

    def get(self, key: str) -> Optional[str]:
        return self._environ.get(key)

    def get_all(self) -> Dict[str, str]:
        return dict(self._environ)

    def delete(self, key: str) -> None:
        self._environ.pop(key, None)


class DictEnvStore:
    """In-memory store, handy for tests and for isolated loads."""

    def __init__(self, data: Optional[Mapping[str, str]] = None):
        self._data: Dict[str, str] = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def get_all(self) -> Dict[str, str]:
        return dict(self._data)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __repr__(self) -> str:
        return f"<DictEnvStore keys={sorted(self._data)}>"
