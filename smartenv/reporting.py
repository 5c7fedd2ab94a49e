from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, List

from .utils import MASK, maybe_mask_value

if TYPE_CHECKING:  # pragma: no cover
    from .schema import ValidationDetail

logger = logging.getLogger(__name__)

_QUOTED_RE = re.compile(r'"([^"]+)"')
_SECRET_RUN_RE = re.compile(r"[A-Z0-9_]{8,}")


def _header(count: int) -> str:
    return f"smartenv: {count} problem(s) found"


def _bullet(key: str, message: str) -> str:
    return f"  • {key} — {message}"


def format_error_message(details: Sequence["ValidationDetail"]) -> str:
    """Header with the problem count, then one bullet per detail (unmasked)."""
    lines = [_header(len(details))]
    lines.extend(_bullet(d.key, d.message) for d in details)
    return "\n".join(lines)


def mask_error_message(message: str) -> str:
    """
    Hide quoted values that look like secrets.

    A quoted value is masked when it is longer than 10 characters or
    contains a run of 8+ uppercase letters, digits or underscores. This is a
    textual heuristic over the rendered message.
    """

    def _replace(match: "re.Match[str]") -> str:
        value = match.group(1)
        if len(value) > 10 or _SECRET_RUN_RE.search(value):
            return f'"{MASK}"'
        return match.group(0)

    return _QUOTED_RE.sub(_replace, message)


def _masked_message(detail: "ValidationDetail") -> str:
    # Values hidden by the heuristic stay fully masked
    message = mask_error_message(detail.message)
    if detail.value:
        masked = maybe_mask_value(detail.key, detail.value, True)
        message = message.replace(f'"{detail.value}"', f'"{masked}"')
    return message


def log_validation_errors(details: Iterable["ValidationDetail"], mask_secrets: bool) -> str:
    """
    Log a multi-line validation report at ERROR level and return it.

    With `mask_secrets`, the quoted-value heuristic runs over every message,
    then raw values of secret-like keys that it left visible are partially masked.
    """
    details = list(details)
    lines: List[str] = [_header(len(details))]
    for detail in details:
        message = _masked_message(detail) if mask_secrets else detail.message
        lines.append(_bullet(detail.key, message))

    report = "\n".join(lines)
    logger.error("%s", report)
    return report
