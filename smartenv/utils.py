from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Dict, Optional, Union

_TRUE_VALUES = frozenset({"true", "1", "yes"})
_SECRET_MARKERS = ("KEY", "SECRET", "TOKEN", "PASSWORD")
_NUMBER_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_INTEGER_RE = re.compile(r"[+-]?\d+")

MASK = "***"


def coerce_boolean(value: Optional[str]) -> bool:
    """
    Convert an environment string to bool.

    "true", "1" and "yes" (case-insensitive) are True. Everything else,
    including None and the empty string, is False. Never fails.
    """
    if not value:
        return False
    return value.lower() in _TRUE_VALUES


def coerce_number(value: Optional[str]) -> Union[int, float]:
    """
    Convert an environment string to int or float.

    Returns math.nan when the value is undefined or not a decimal literal.
    """
    if not value:
        return math.nan

    text = value.strip()
    if not _NUMBER_RE.fullmatch(text):
        return math.nan
    if _INTEGER_RE.fullmatch(text):
        return int(text)
    return float(text)


def is_secret_key(key: str) -> bool:
    """Return True if the key name looks like it holds a secret."""
    upper = key.upper()
    return any(marker in upper for marker in _SECRET_MARKERS)


def mask_secret(value: str) -> str:
    """Keep the first 3 and last 2 characters of a secret; hide short ones fully."""
    if len(value) <= 5:
        return MASK
    return f"{value[:3]}{MASK}{value[-2:]}"


def maybe_mask_value(key: str, value: str, should_mask: bool) -> str:
    if not should_mask or not is_secret_key(key):
        return value
    return mask_secret(value)


def merge_records(
    base: Mapping[str, Optional[str]], override: Mapping[str, Optional[str]]
) -> Dict[str, Optional[str]]:
    """
    Shallow-merge two flat records.

    Values from `override` take precedence. Neither input is mutated.
    """
    result: Dict[str, Optional[str]] = dict(base)
    result.update(override)
    return result
