from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

from .reporting import format_error_message

if TYPE_CHECKING:  # pragma: no cover
    from .schema import ValidationDetail


class ErrorKind(str, Enum):
    """Category of a single validation problem."""

    MISSING = "Missing"
    INVALID = "Invalid"
    UNKNOWN_KEY = "UnknownKey"


class ConfigurationError(Exception):
    """Raised when there is a problem loading or validating configuration."""


class ConfigSourceError(ConfigurationError):
    """Raised when a configuration source cannot be read or parsed."""


class ValidationError(ConfigurationError):
    """
    Aggregate error for a failed load in strict mode.

    The message lists every problem (unmasked). The structured payload is
    available as `details` (ordered) and `kind`.
    """

    def __init__(
        self,
        details: Iterable["ValidationDetail"],
        kind: Optional[ErrorKind] = None,
    ):
        self.details: Tuple["ValidationDetail", ...] = tuple(details)
        self.kind: ErrorKind = kind or _common_kind(self.details)
        super().__init__(format_error_message(self.details))


def _common_kind(details: Tuple["ValidationDetail", ...]) -> ErrorKind:
    kinds = {detail.kind for detail in details}
    if len(kinds) == 1:
        return kinds.pop()
    return ErrorKind.INVALID
